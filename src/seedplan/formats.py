"""
Format rules: the allowed matrix for every competition format.

The validator consults this table before computing anything. Format-specific
ranges, stages and match-mode vocabularies live here and nowhere else.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from seedplan.models import (
    LEGS_MODES,
    PLAYOFFS_MODES,
    FormatKind,
    GroupSizing,
    MatchMode,
    SeedingPolicy,
    Stage,
    parse_enum,
)

# =============================================================================
# Presets
# =============================================================================

DEFAULT_LEAGUE_TEAM_COUNTS: FrozenSet[int] = frozenset(
    {8, 10, 12, 14, 16, 18, 20, 24, 28, 32, 36, 40}
)
KNOCKOUT_TEAM_COUNTS: FrozenSet[int] = frozenset({8, 16, 32, 64, 128})

BASE_ADVANCE_CHOICES: FrozenSet[int] = frozenset({1, 2})
FAST_GROUP_SIZES: FrozenSet[int] = frozenset({4, 6, 8})
ROUND_DURATION_CHOICES: FrozenSet[int] = frozenset({15, 20, 25, 30, 35})
DEFAULT_ROUND_DURATION = 25


@dataclass(frozen=True)
class StageRule:
    """A stage and the match modes it accepts."""

    stage: Stage
    modes: FrozenSet[MatchMode]
    default: Optional[MatchMode] = None  # Applied when no mode is selected

    @property
    def is_fixed(self) -> bool:
        return len(self.modes) == 1


@dataclass(frozen=True)
class SizingRule:
    """A group-size input field and how the partitioner reads it."""

    field: str
    mode: GroupSizing
    minimum: int
    maximum: int
    choices: Optional[FrozenSet[int]] = None

    def accepts(self, value: int) -> bool:
        if self.choices is not None:
            return value in self.choices
        return self.minimum <= value <= self.maximum


@dataclass(frozen=True)
class FormatRule:
    """Everything that is legal for one format."""

    kind: FormatKind
    min_teams: int
    max_teams: int
    stages: Tuple[StageRule, ...]
    team_counts: Optional[FrozenSet[int]] = None  # Preset list; None means any in range
    even_teams: bool = False
    sizing: Tuple[SizingRule, ...] = ()  # First entry is the designated input
    base_advance_choices: Optional[FrozenSet[int]] = None
    seeding: bool = False
    default_seeding: Optional[SeedingPolicy] = None  # None with seeding=True means required
    round_durations: Optional[FrozenSet[int]] = None
    default_round_duration: Optional[int] = None

    @property
    def has_groups(self) -> bool:
        return bool(self.sizing)

    @property
    def has_playoffs(self) -> bool:
        return any(s.stage is Stage.PLAYOFFS for s in self.stages)

    @property
    def fields(self) -> FrozenSet[str]:
        """Draft fields this format reads, besides format/team count/modes."""
        names = {s.field for s in self.sizing}
        if self.base_advance_choices is not None:
            names.add("base_advance")
        if self.seeding:
            names.add("seeding")
        if self.round_durations is not None:
            names.add("round_duration_minutes")
        return frozenset(names)

    def stage_rule(self, stage: Stage) -> Optional[StageRule]:
        for rule in self.stages:
            if rule.stage is stage:
                return rule
        return None

    def accepts_team_count(self, team_count: int) -> bool:
        if self.team_counts is not None:
            return team_count in self.team_counts
        return self.min_teams <= team_count <= self.max_teams

    def describe(self) -> Dict[str, Any]:
        """JSON-friendly view of the rule, for clients building forms."""
        return {
            "kind": self.kind.value,
            "team_counts": sorted(self.team_counts) if self.team_counts is not None else None,
            "min_teams": self.min_teams,
            "max_teams": self.max_teams,
            "even_teams": self.even_teams,
            "stages": [
                {
                    "stage": s.stage.value,
                    "modes": [m.value for m in MatchMode if m in s.modes],
                    "default": s.default.value if s.default else None,
                }
                for s in self.stages
            ],
            "sizing": [
                {
                    "field": s.field,
                    "mode": s.mode.value,
                    "minimum": s.minimum,
                    "maximum": s.maximum,
                    "choices": sorted(s.choices) if s.choices is not None else None,
                }
                for s in self.sizing
            ],
            "base_advance_choices": (
                sorted(self.base_advance_choices) if self.base_advance_choices is not None else None
            ),
            "seeding": self.seeding,
            "default_seeding": self.default_seeding.value if self.default_seeding else None,
            "round_durations": sorted(self.round_durations) if self.round_durations is not None else None,
            "default_round_duration": self.default_round_duration,
        }


# =============================================================================
# Rule Table
# =============================================================================

def build_format_rules(
    league_team_counts: Optional[Iterable[int]] = None,
) -> Dict[FormatKind, FormatRule]:
    """
    Build the rule table.

    League team counts are operator-defined; every other format is fixed.
    """
    league_counts = (
        frozenset(league_team_counts) if league_team_counts is not None else DEFAULT_LEAGUE_TEAM_COUNTS
    )

    return {
        FormatKind.LEAGUE: FormatRule(
            kind=FormatKind.LEAGUE,
            min_teams=min(league_counts),
            max_teams=max(league_counts),
            team_counts=league_counts,
            stages=(StageRule(Stage.LEAGUE, LEGS_MODES),),
        ),
        FormatKind.KNOCKOUT: FormatRule(
            kind=FormatKind.KNOCKOUT,
            min_teams=min(KNOCKOUT_TEAM_COUNTS),
            max_teams=max(KNOCKOUT_TEAM_COUNTS),
            team_counts=KNOCKOUT_TEAM_COUNTS,
            even_teams=True,
            stages=(StageRule(Stage.PLAYOFFS, PLAYOFFS_MODES),),
            seeding=True,
        ),
        FormatKind.GROUPS_PLAYOFFS: FormatRule(
            kind=FormatKind.GROUPS_PLAYOFFS,
            min_teams=4,
            max_teams=128,
            even_teams=True,
            stages=(
                StageRule(Stage.GROUPS, LEGS_MODES),
                StageRule(Stage.PLAYOFFS, PLAYOFFS_MODES),
            ),
            sizing=(
                SizingRule("max_group_size", GroupSizing.MAXIMUM, 1, 128),
                SizingRule("desired_group_size", GroupSizing.TARGET, 4, 32),
            ),
            base_advance_choices=BASE_ADVANCE_CHOICES,
            seeding=True,
            default_seeding=SeedingPolicy.RANDOM,
        ),
        FormatKind.FAST: FormatRule(
            kind=FormatKind.FAST,
            min_teams=4,
            max_teams=256,
            even_teams=True,
            stages=(
                StageRule(Stage.GROUPS, frozenset({MatchMode.SINGLE}), default=MatchMode.SINGLE),
                StageRule(Stage.PLAYOFFS, frozenset({MatchMode.SINGLE}), default=MatchMode.SINGLE),
            ),
            sizing=(
                SizingRule("group_size", GroupSizing.MAXIMUM, 4, 8, choices=FAST_GROUP_SIZES),
            ),
            base_advance_choices=BASE_ADVANCE_CHOICES,
            round_durations=ROUND_DURATION_CHOICES,
            default_round_duration=DEFAULT_ROUND_DURATION,
        ),
    }


FORMAT_RULES: Dict[FormatKind, FormatRule] = build_format_rules()


def lookup_rule(
    kind: Any,
    rules: Optional[Mapping[FormatKind, FormatRule]] = None,
) -> Optional[FormatRule]:
    """Return the rule for a format kind, or None if it is not in the table."""
    table = FORMAT_RULES if rules is None else rules
    parsed = parse_enum(FormatKind, kind)
    if parsed is None:
        return None
    return table.get(parsed)
