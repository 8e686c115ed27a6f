"""Structuring validator.

Turns an operator's draft configuration into a StructuralPlan, or into the
complete list of field-keyed problems with it. Every check runs on every
call so a form can show all of its errors at once; only an unknown format
stops validation early, since nothing else can be checked without its rule.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from seedplan.bracket import size_bracket
from seedplan.formats import FormatRule, SizingRule, lookup_rule
from seedplan.group_builder import MIN_GROUP_SIZE, InfeasiblePartitionError, partition
from seedplan.mathutil import as_int, clamp_int, is_even
from seedplan.models import (
    BracketPlan,
    ErrorKind,
    FormatKind,
    GroupPlan,
    MatchMode,
    SeedingPolicy,
    Stage,
    StructuralPlan,
    ValidationIssue,
    parse_enum,
)


class ValidationError(Exception):
    """Raised when a draft configuration does not validate."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = list(issues)
        super().__init__("; ".join(str(issue) for issue in self.issues))


_SIZING_FIELDS = ("max_group_size", "desired_group_size", "group_size")
_OPTIONAL_FIELDS = _SIZING_FIELDS + ("base_advance", "seeding", "round_duration_minutes")


@dataclass
class DraftConfig:
    """Structure-related fields of a tournament form, as entered."""

    format_kind: Any = None
    team_count: Any = None
    max_group_size: Any = None
    desired_group_size: Any = None
    group_size: Any = None
    base_advance: Any = None
    match_modes: Any = field(default_factory=dict)
    seeding: Any = None
    round_duration_minutes: Any = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "DraftConfig":
        """Build a draft from a loose mapping, ignoring unknown keys.

        ``format`` is accepted as an alias of ``format_kind``.
        """
        if not isinstance(data, Mapping):
            return cls()
        modes = data.get("match_modes")
        return cls(
            format_kind=data.get("format_kind", data.get("format")),
            team_count=data.get("team_count"),
            max_group_size=data.get("max_group_size"),
            desired_group_size=data.get("desired_group_size"),
            group_size=data.get("group_size"),
            base_advance=data.get("base_advance"),
            match_modes=dict(modes) if isinstance(modes, Mapping) else (modes if modes is not None else {}),
            seeding=data.get("seeding"),
            round_duration_minutes=data.get("round_duration_minutes"),
        )

    def to_dict(self) -> dict[str, Any]:
        data = {
            "format_kind": self.format_kind,
            "team_count": self.team_count,
            "max_group_size": self.max_group_size,
            "desired_group_size": self.desired_group_size,
            "group_size": self.group_size,
            "base_advance": self.base_advance,
            "match_modes": dict(self.match_modes) if isinstance(self.match_modes, Mapping) else self.match_modes,
            "seeding": self.seeding,
            "round_duration_minutes": self.round_duration_minutes,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class ValidationResult:
    """Outcome of validate(): a plan, or the issues that prevented one."""

    plan: Optional[StructuralPlan] = None
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.plan is not None and not self.errors

    def errors_by_field(self) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = {}
        for issue in self.errors:
            grouped.setdefault(issue.field, []).append(issue.message)
        return grouped

    def raise_for_errors(self) -> StructuralPlan:
        """Return the plan, or raise ValidationError with every issue."""
        if not self.ok:
            raise ValidationError(self.errors)
        return self.plan


def _choices(values) -> str:
    return ", ".join(str(v) for v in sorted(values))


class _Collector:
    """Accumulates issues in the order checks run."""

    def __init__(self):
        self.issues: list[ValidationIssue] = []

    def add(self, field_name: str, kind: ErrorKind, message: str, **params) -> None:
        self.issues.append(ValidationIssue(field=field_name, kind=kind, message=message, params=params))


def _check_unsupported_fields(draft: DraftConfig, rule: FormatRule, out: _Collector) -> None:
    for name in _OPTIONAL_FIELDS:
        if name not in rule.fields and getattr(draft, name) is not None:
            out.add(
                name,
                ErrorKind.UNSUPPORTED_FIELD,
                f"{name} is not used by the {rule.kind.value} format",
                format=rule.kind.value,
            )


def _check_team_count(draft: DraftConfig, rule: FormatRule, out: _Collector) -> int:
    """Range and parity checks. Returns the effective (clamped) team count."""
    raw = as_int(draft.team_count)

    if raw is None:
        if draft.team_count is None:
            out.add("team_count", ErrorKind.REQUIRED, "Enter the number of teams")
        else:
            out.add(
                "team_count",
                ErrorKind.RANGE,
                f"Team count must be a whole number, got {draft.team_count!r}",
                value=str(draft.team_count),
            )
    else:
        if rule.team_counts is not None and raw not in rule.team_counts:
            out.add(
                "team_count",
                ErrorKind.RANGE,
                f"Team count must be one of {_choices(rule.team_counts)}, got {raw}",
                value=raw,
                choices=_choices(rule.team_counts),
            )
        elif not rule.accepts_team_count(raw):
            out.add(
                "team_count",
                ErrorKind.RANGE,
                f"Teams must be {rule.min_teams}..{rule.max_teams}, got {raw}",
                value=raw,
                minimum=rule.min_teams,
                maximum=rule.max_teams,
            )
        if rule.even_teams and not is_even(raw):
            out.add("team_count", ErrorKind.RANGE, f"Teams must be even, got {raw}", value=raw, even=True)

    return clamp_int(draft.team_count, max(MIN_GROUP_SIZE, rule.min_teams), rule.max_teams)


def _check_sizing_value(sizing: SizingRule, value: Any, out: _Collector) -> Optional[int]:
    size = as_int(value)
    if size is None:
        out.add(
            sizing.field,
            ErrorKind.RANGE,
            f"{sizing.field} must be a whole number, got {value!r}",
            value=str(value),
        )
        return None
    if not sizing.accepts(size):
        if sizing.choices is not None:
            out.add(
                sizing.field,
                ErrorKind.RANGE,
                f"{sizing.field} must be one of {_choices(sizing.choices)}, got {size}",
                value=size,
                choices=_choices(sizing.choices),
            )
        else:
            out.add(
                sizing.field,
                ErrorKind.RANGE,
                f"{sizing.field} must be {sizing.minimum}..{sizing.maximum}, got {size}",
                value=size,
                minimum=sizing.minimum,
                maximum=sizing.maximum,
            )
        return None
    return size


def _plan_groups(draft: DraftConfig, rule: FormatRule, team_count: int, out: _Collector) -> Optional[GroupPlan]:
    supplied = [s for s in rule.sizing if getattr(draft, s.field) is not None]
    if not supplied:
        designated = rule.sizing[0].field
        out.add(designated, ErrorKind.REQUIRED, f"Enter {designated}")
        return None

    sizing = supplied[0]
    for extra in supplied[1:]:
        out.add(
            extra.field,
            ErrorKind.UNSUPPORTED_FIELD,
            f"{extra.field} conflicts with {sizing.field}; supply only one",
            other=sizing.field,
        )

    size = _check_sizing_value(sizing, getattr(draft, sizing.field), out)
    if size is None:
        return None

    try:
        return partition(team_count, size, sizing.mode)
    except InfeasiblePartitionError as e:
        out.add(
            sizing.field,
            ErrorKind.INFEASIBLE_PARTITION,
            f"Invalid grouping (< {MIN_GROUP_SIZE} in a group): {e.plan.group_count} groups "
            f"of {e.plan.min_group_size}",
            group_count=e.plan.group_count,
            min_group_size=e.plan.min_group_size,
            minimum=MIN_GROUP_SIZE,
        )
        return None


def _check_base_advance(draft: DraftConfig, rule: FormatRule, out: _Collector) -> Optional[int]:
    if draft.base_advance is None:
        out.add("base_advance", ErrorKind.REQUIRED, "Select how many teams advance per group")
        return None
    value = as_int(draft.base_advance)
    if value is None or value not in rule.base_advance_choices:
        out.add(
            "base_advance",
            ErrorKind.RANGE,
            f"base_advance must be one of {_choices(rule.base_advance_choices)}, got {draft.base_advance!r}",
            value=str(draft.base_advance),
            choices=_choices(rule.base_advance_choices),
        )
        return None
    return value


def _check_match_modes(draft: DraftConfig, rule: FormatRule, out: _Collector) -> dict[Stage, MatchMode]:
    selections = draft.match_modes if draft.match_modes is not None else {}
    if not isinstance(selections, Mapping):
        out.add("match_modes", ErrorKind.ILLEGAL_MODE, "match_modes must map stages to modes")
        selections = {}

    by_stage: dict[Stage, Any] = {}
    for key in sorted(selections, key=str):
        stage = parse_enum(Stage, key)
        if stage is None or rule.stage_rule(stage) is None:
            out.add(
                f"match_modes.{key}",
                ErrorKind.ILLEGAL_MODE,
                f"The {rule.kind.value} format has no {key} stage",
                stage=str(key),
                format=rule.kind.value,
            )
            continue
        by_stage[stage] = selections[key]

    modes: dict[Stage, MatchMode] = {}
    for stage_rule in rule.stages:
        field_name = f"match_modes.{stage_rule.stage.value}"
        value = by_stage.get(stage_rule.stage)
        if value is None:
            if stage_rule.default is not None:
                modes[stage_rule.stage] = stage_rule.default
            else:
                out.add(field_name, ErrorKind.REQUIRED, f"Select a match mode for the {stage_rule.stage.value} stage")
            continue

        mode = parse_enum(MatchMode, value)
        if mode is None or mode not in stage_rule.modes:
            allowed = [m.value for m in MatchMode if m in stage_rule.modes]
            out.add(
                field_name,
                ErrorKind.ILLEGAL_MODE,
                f"{value} is not allowed for the {stage_rule.stage.value} stage "
                f"(allowed: {', '.join(allowed)})",
                value=str(value),
                stage=stage_rule.stage.value,
                allowed=", ".join(allowed),
            )
            continue
        modes[stage_rule.stage] = mode

    return modes


def _check_seeding(draft: DraftConfig, rule: FormatRule, out: _Collector) -> Optional[SeedingPolicy]:
    if not rule.seeding:
        return None
    if draft.seeding is None:
        if rule.default_seeding is None:
            out.add("seeding", ErrorKind.REQUIRED, "Select seeding")
        return rule.default_seeding
    policy = parse_enum(SeedingPolicy, draft.seeding)
    if policy is None:
        out.add(
            "seeding",
            ErrorKind.RANGE,
            f"Seeding must be random or manual, got {draft.seeding!r}",
            value=str(draft.seeding),
            choices="manual, random",
        )
    return policy


def _check_round_duration(draft: DraftConfig, rule: FormatRule, out: _Collector) -> Optional[int]:
    if rule.round_durations is None:
        return None
    if draft.round_duration_minutes is None:
        return rule.default_round_duration
    minutes = as_int(draft.round_duration_minutes)
    if minutes is None or minutes not in rule.round_durations:
        out.add(
            "round_duration_minutes",
            ErrorKind.RANGE,
            f"Round duration must be one of {_choices(rule.round_durations)} minutes, "
            f"got {draft.round_duration_minutes!r}",
            value=str(draft.round_duration_minutes),
            choices=_choices(rule.round_durations),
        )
        return None
    return minutes


def validate(draft: DraftConfig, rules=None) -> ValidationResult:
    """Validate a draft configuration end to end.

    Args:
        draft: Operator input (a DraftConfig or a plain mapping)
        rules: Optional rule table (defaults to formats.FORMAT_RULES)

    Returns:
        ValidationResult with either a StructuralPlan or every issue found.
        Identical drafts always give identical results.
    """
    if not isinstance(draft, DraftConfig):
        draft = DraftConfig.from_dict(draft)
    out = _Collector()

    rule = lookup_rule(draft.format_kind, rules)
    if rule is None:
        out.add(
            "format_kind",
            ErrorKind.UNKNOWN_FORMAT,
            f"Unknown format: {draft.format_kind!r}",
            value=str(draft.format_kind),
            choices=", ".join(k.value for k in FormatKind),
        )
        return ValidationResult(errors=out.issues)

    _check_unsupported_fields(draft, rule, out)
    team_count = _check_team_count(draft, rule, out)

    groups: Optional[GroupPlan] = None
    bracket: Optional[BracketPlan] = None
    if rule.has_groups:
        groups = _plan_groups(draft, rule, team_count, out)
        base_advance = _check_base_advance(draft, rule, out)
        if groups is not None and base_advance is not None:
            bracket = size_bracket(groups.group_count, base_advance)
    elif rule.has_playoffs:
        bracket = size_bracket(team_count, 1)

    modes = _check_match_modes(draft, rule, out)
    seeding = _check_seeding(draft, rule, out)
    round_duration = _check_round_duration(draft, rule, out)

    if out.issues:
        return ValidationResult(errors=out.issues)

    plan = StructuralPlan(
        format_kind=rule.kind,
        team_count=team_count,
        match_modes=modes,
        groups=groups,
        bracket=bracket,
        seeding=seeding,
        round_duration_minutes=round_duration,
    )
    return ValidationResult(plan=plan)


def build_plan(draft: DraftConfig, rules=None) -> StructuralPlan:
    """Validate and return the plan, raising ValidationError on any issue."""
    return validate(draft, rules).raise_for_errors()


def plan_to_draft(plan: StructuralPlan) -> DraftConfig:
    """Rebuild the draft that validates to ``plan``."""
    draft = DraftConfig(
        format_kind=plan.format_kind.value,
        team_count=plan.team_count,
        match_modes={stage.value: mode.value for stage, mode in plan.match_modes.items()},
        seeding=plan.seeding.value if plan.seeding else None,
        round_duration_minutes=plan.round_duration_minutes,
    )
    if plan.groups is not None:
        rule = lookup_rule(plan.format_kind)
        for sizing in rule.sizing:
            if sizing.mode is plan.groups.sizing:
                setattr(draft, sizing.field, plan.groups.size_limit)
                break
        draft.base_advance = plan.bracket.base_advance if plan.bracket else None
    return draft
