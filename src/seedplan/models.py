"""Data models for seedplan.

Domain model hierarchy:
- A DraftConfig is what the operator typed (loose, possibly invalid)
- A StructuralPlan is the validated result for one tournament
- A StructuralPlan holds a GroupPlan (group formats) and a BracketPlan
  (formats with an elimination stage)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class FormatKind(str, Enum):
    """Competition format."""

    LEAGUE = "league"
    KNOCKOUT = "knockout"
    GROUPS_PLAYOFFS = "groups_playoffs"
    FAST = "fast"  # One-night groups + single match playoffs


class Stage(str, Enum):
    """Phase of a format that carries its own match mode."""

    LEAGUE = "league"  # Round robin of the whole field
    GROUPS = "groups"  # Group stage
    PLAYOFFS = "playoffs"  # Elimination bracket


class MatchMode(str, Enum):
    """How a single pairing is decided."""

    SINGLE = "single"
    TWO_LEGS = "two_legs"  # Home & away aggregate
    BO3 = "bo3"
    BO5 = "bo5"
    BO7 = "bo7"
    BO9 = "bo9"


# Legs vocabulary: league and group stages
LEGS_MODES: frozenset = frozenset({MatchMode.SINGLE, MatchMode.TWO_LEGS})

# Playoffs vocabulary: elimination stages
PLAYOFFS_MODES: frozenset = frozenset(MatchMode)


class SeedingPolicy(str, Enum):
    """How teams are placed into the bracket."""

    RANDOM = "random"
    MANUAL = "manual"


class GroupSizing(str, Enum):
    """How the operator's group-size input is interpreted."""

    MAXIMUM = "max"  # Hard ceiling, group count by ceiling division
    TARGET = "desired"  # Target size, group count by rounding


class ErrorKind(str, Enum):
    """Validation error taxonomy."""

    RANGE = "range"
    INFEASIBLE_PARTITION = "infeasible_partition"
    ILLEGAL_MODE = "illegal_mode"
    UNKNOWN_FORMAT = "unknown_format"
    REQUIRED = "required"
    UNSUPPORTED_FIELD = "unsupported_field"


def _enum_key(value: Any) -> str:
    return str(value).strip().lower().replace("_", "").replace("-", "").replace(" ", "")


def parse_enum(enum_cls, value: Any):
    """Read an enum member leniently.

    Accepts members, their values, and camelCase or kebab-case spellings of
    the values ("groupsPlayoffs", "two-legs"). Returns None when nothing
    matches.

    Examples:
        >>> parse_enum(MatchMode, "twoLegs")
        <MatchMode.TWO_LEGS: 'two_legs'>
        >>> parse_enum(FormatKind, "chess") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str):
        return None
    key = _enum_key(value)
    for member in enum_cls:
        if _enum_key(member.value) == key:
            return member
    return None


# ============================================================================
# Derived plans
# ============================================================================


@dataclass
class GroupPlan:
    """Balanced partition of the field into groups.

    Only sizes are planned here; which team lands in which group is decided
    later (see group_builder.distribute_snake).
    """

    team_count: int
    group_count: int
    min_group_size: int
    max_group_size: int
    sizing: GroupSizing
    size_limit: int  # Operator input the partition was computed from

    @property
    def larger_groups(self) -> int:
        """Number of groups holding one extra team."""
        return self.team_count - self.group_count * self.min_group_size

    @property
    def group_sizes(self) -> list[int]:
        """Size of every group, larger groups first."""
        extra = self.larger_groups
        return [self.min_group_size + 1] * extra + [self.min_group_size] * (self.group_count - extra)

    @property
    def is_single_group(self) -> bool:
        return self.group_count == 1


@dataclass
class BracketPlan:
    """Power-of-two elimination bracket fed by automatic qualifiers and wildcards."""

    base_advance: int
    base_qualified: int
    bracket_size: int
    wildcards: int

    @property
    def round_count(self) -> int:
        """Number of elimination rounds down to the final."""
        return self.bracket_size.bit_length() - 1


@dataclass
class StructuralPlan:
    """Validated structure of one tournament."""

    format_kind: FormatKind
    team_count: int
    match_modes: dict[Stage, MatchMode] = field(default_factory=dict)
    groups: Optional[GroupPlan] = None
    bracket: Optional[BracketPlan] = None
    seeding: Optional[SeedingPolicy] = None
    round_duration_minutes: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-friendly representation."""
        data: dict[str, Any] = {
            "format_kind": self.format_kind.value,
            "team_count": self.team_count,
            "match_modes": {stage.value: mode.value for stage, mode in self.match_modes.items()},
            "groups": None,
            "bracket": None,
            "seeding": self.seeding.value if self.seeding else None,
            "round_duration_minutes": self.round_duration_minutes,
        }
        if self.groups is not None:
            data["groups"] = {
                "group_count": self.groups.group_count,
                "min_group_size": self.groups.min_group_size,
                "max_group_size": self.groups.max_group_size,
                "group_sizes": self.groups.group_sizes,
                "sizing": self.groups.sizing.value,
                "size_limit": self.groups.size_limit,
            }
        if self.bracket is not None:
            data["bracket"] = {
                "base_advance": self.bracket.base_advance,
                "base_qualified": self.bracket.base_qualified,
                "bracket_size": self.bracket.bracket_size,
                "wildcards": self.bracket.wildcards,
                "round_count": self.bracket.round_count,
            }
        return data


@dataclass
class ValidationIssue:
    """One field-keyed validation failure."""

    field: str
    kind: ErrorKind
    message: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "kind": self.kind.value,
            "message": self.message,
            "params": dict(self.params),
        }

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"
