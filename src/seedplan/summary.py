"""Human-readable structure previews.

The wording is for display only; every number comes straight from the plan.
"""

from seedplan.i18n import DEFAULT_LANGUAGE, get_string, has_string
from seedplan.models import ErrorKind, FormatKind, Stage, StructuralPlan, ValidationIssue


def describe_plan(plan: StructuralPlan, lang: str = DEFAULT_LANGUAGE) -> str:
    """One-line summary of a plan.

    Examples (lang="en"):
        Groups + Playoffs • 16 teams • 4 groups (min 4, max 4) • Top 2 + 0 wildcards • 8-team playoffs
        Playoffs • 32 teams • 32-team bracket • Playoffs: Best of 3 • Random seeding
    """
    parts = [
        get_string(f"formats.{plan.format_kind.value}", lang),
        get_string("summary.teams", lang, count=plan.team_count),
    ]

    if plan.groups is not None:
        note = get_string("summary.single_group", lang) if plan.groups.is_single_group else ""
        parts.append(
            get_string(
                "summary.groups",
                lang,
                count=plan.groups.group_count,
                note=note,
                min=plan.groups.min_group_size,
                max=plan.groups.max_group_size,
            )
        )

    if plan.bracket is not None:
        if plan.groups is not None:
            parts.append(
                get_string(
                    "summary.advance",
                    lang,
                    base=plan.bracket.base_advance,
                    wildcards=plan.bracket.wildcards,
                )
            )
            parts.append(get_string("summary.playoffs", lang, size=plan.bracket.bracket_size))
        else:
            parts.append(get_string("summary.bracket", lang, size=plan.bracket.bracket_size))

    # Fast stages are fixed to single matches and not worth repeating
    if plan.format_kind is not FormatKind.FAST:
        for stage, mode in plan.match_modes.items():
            mode_label = get_string(f"modes.{mode.value}", lang)
            if stage is Stage.LEAGUE:
                parts.append(mode_label)
            else:
                parts.append(
                    get_string(
                        "summary.stage_mode",
                        lang,
                        stage=get_string(f"stages.{stage.value}", lang),
                        mode=mode_label,
                    )
                )

    if plan.seeding is not None and plan.format_kind is FormatKind.KNOCKOUT:
        parts.append(get_string(f"seeding.{plan.seeding.value}", lang))

    if plan.round_duration_minutes is not None:
        parts.append(get_string("summary.round_duration", lang, minutes=plan.round_duration_minutes))

    return get_string("summary.separator", lang).join(parts)


def _issue_key(issue: ValidationIssue) -> str:
    params = issue.params
    if issue.kind is ErrorKind.RANGE:
        if "choices" in params:
            return "errors.range_choices"
        if params.get("even"):
            return "errors.range_even"
        if "minimum" in params:
            return "errors.range_bounds"
        return "errors.range_number"
    if issue.kind is ErrorKind.ILLEGAL_MODE:
        if "allowed" in params:
            return "errors.illegal_mode"
        if "stage" in params:
            return "errors.illegal_stage"
        return "errors.illegal_modes_shape"
    if issue.kind is ErrorKind.UNSUPPORTED_FIELD and "other" in params:
        return "errors.conflicting_field"
    return f"errors.{issue.kind.value}"


def describe_issue(issue: ValidationIssue, lang: str = DEFAULT_LANGUAGE) -> str:
    """Localized message for a validation issue (falls back to issue.message)."""
    key = _issue_key(issue)
    if not has_string(key, lang):
        return issue.message
    params = dict(issue.params)
    params.setdefault("field", issue.field)
    text = get_string(key, lang, **params)
    return text
