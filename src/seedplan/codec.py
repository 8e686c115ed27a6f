"""Configuration codec.

A tournament's configuration record (the ``rules_text`` JSON object) is
shared with other subsystems: fees, billing plan, matchday schedule and
informational text live there too. This module only reads and writes the
keys listed in OWNED_KEYS; every other key is carried through untouched.

Persisted layout of the owned keys::

    {
      "ux_format": "groups_playoffs",
      "max_teams": 16,
      "league":   {"match_mode": "single"},
      "knockout": {"match_mode": "bo3", "seeding": "random"},
      "groups":   {"max_group_size": 4,            # or desired_group_size / group_size
                   "base_advance": 2,
                   "group_match_mode": "single",
                   "playoffs_mode": "single",
                   "seeding": "random",
                   "preview_power_of_two": {...}},  # derived, informational
      "fast":     {"round_duration_minutes": 25}
    }
"""

import copy
import json
from typing import Any, Dict, Mapping, Optional

from seedplan.models import FormatKind, Stage, StructuralPlan
from seedplan.validation import DraftConfig, plan_to_draft, validate

OWNED_KEYS = ("ux_format", "max_teams", "league", "knockout", "groups", "fast")

_GROUP_SIZE_FIELDS = ("max_group_size", "desired_group_size", "group_size")

# An edited desired_group_size overrides the max_group_size set at creation
_GROUP_SIZE_READ_ORDER = ("desired_group_size", "max_group_size", "group_size")


def parse_config(raw: Any) -> Dict[str, Any]:
    """Read a configuration record; anything unusable becomes {}.

    Accepts a mapping, JSON text or bytes, or None. Never raises.
    """
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return copy.deepcopy(dict(raw))
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return {}
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            return {}
        return data if isinstance(data, dict) else {}
    return {}


def _section(config: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = config.get(key)
    return value if isinstance(value, dict) else {}


def encode_plan(plan: StructuralPlan) -> Dict[str, Any]:
    """Owned sections describing one plan."""
    draft = plan_to_draft(plan)
    sections: Dict[str, Any] = {
        "ux_format": plan.format_kind.value,
        "max_teams": plan.team_count,
    }

    if plan.format_kind is FormatKind.LEAGUE:
        sections["league"] = {"match_mode": plan.match_modes[Stage.LEAGUE].value}

    elif plan.format_kind is FormatKind.KNOCKOUT:
        sections["knockout"] = {
            "match_mode": plan.match_modes[Stage.PLAYOFFS].value,
            "seeding": plan.seeding.value,
        }

    else:
        groups: Dict[str, Any] = {}
        for name in _GROUP_SIZE_FIELDS:
            value = getattr(draft, name)
            if value is not None:
                groups[name] = value
        groups["base_advance"] = plan.bracket.base_advance
        groups["group_match_mode"] = plan.match_modes[Stage.GROUPS].value
        groups["playoffs_mode"] = plan.match_modes[Stage.PLAYOFFS].value
        if plan.seeding is not None:
            groups["seeding"] = plan.seeding.value
        groups["preview_power_of_two"] = {
            "bracket": plan.bracket.bracket_size,
            "wildcards": plan.bracket.wildcards,
            "group_count": plan.groups.group_count,
            "min_group_size": plan.groups.min_group_size,
            "max_group_size": plan.groups.max_group_size,
        }
        sections["groups"] = groups

        if plan.round_duration_minutes is not None:
            sections["fast"] = {"round_duration_minutes": plan.round_duration_minutes}

    return sections


def merge(existing: Any, plan: StructuralPlan) -> Dict[str, Any]:
    """Merge a plan into a configuration record.

    Foreign keys of ``existing`` are kept as they are. Owned keys are
    replaced by the plan's sections; owned sections the plan does not use
    (e.g. ``knockout`` after switching to a league) are dropped. The input
    is never modified.
    """
    config = parse_config(existing)
    merged = {key: value for key, value in config.items() if key not in OWNED_KEYS}
    merged.update(encode_plan(plan))
    return merged


def read_draft(config: Any) -> DraftConfig:
    """Rebuild the draft stored in a configuration record.

    Missing or garbled sections give None fields, which the validator then
    reports; this function itself never raises.
    """
    data = parse_config(config)
    kind = data.get("ux_format")
    draft = DraftConfig(format_kind=kind, team_count=data.get("max_teams"), match_modes={})

    if kind == FormatKind.LEAGUE.value:
        league = _section(data, "league")
        if league.get("match_mode") is not None:
            draft.match_modes[Stage.LEAGUE.value] = league["match_mode"]

    elif kind == FormatKind.KNOCKOUT.value:
        knockout = _section(data, "knockout")
        if knockout.get("match_mode") is not None:
            draft.match_modes[Stage.PLAYOFFS.value] = knockout["match_mode"]
        draft.seeding = knockout.get("seeding")

    elif kind in (FormatKind.GROUPS_PLAYOFFS.value, FormatKind.FAST.value):
        groups = _section(data, "groups")
        for name in _GROUP_SIZE_READ_ORDER:
            if groups.get(name) is not None:
                setattr(draft, name, groups[name])
                break
        draft.base_advance = groups.get("base_advance")
        if groups.get("group_match_mode") is not None:
            draft.match_modes[Stage.GROUPS.value] = groups["group_match_mode"]
        if groups.get("playoffs_mode") is not None:
            draft.match_modes[Stage.PLAYOFFS.value] = groups["playoffs_mode"]
        draft.seeding = groups.get("seeding")
        if kind == FormatKind.FAST.value:
            draft.round_duration_minutes = _section(data, "fast").get("round_duration_minutes")

    return draft


def extract_plan(config: Any, rules=None) -> Optional[StructuralPlan]:
    """Plan stored in a configuration record, or None if it does not validate."""
    return validate(read_draft(config), rules).plan


def owned_sections(config: Any) -> Dict[str, Any]:
    """Only the keys this engine owns."""
    data = parse_config(config)
    return {key: data[key] for key in OWNED_KEYS if key in data}


def dumps(config: Mapping[str, Any]) -> str:
    """Canonical JSON text for the persisted record."""
    return json.dumps(config, sort_keys=True, ensure_ascii=False)
