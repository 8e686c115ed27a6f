"""Tests for the structuring validator."""

import pytest

from seedplan.formats import build_format_rules
from seedplan.models import ErrorKind, FormatKind, GroupSizing, MatchMode, SeedingPolicy, Stage
from seedplan.validation import (
    DraftConfig,
    ValidationError,
    build_plan,
    plan_to_draft,
    validate,
)


def groups_playoffs_draft(**overrides):
    data = {
        "format_kind": "groups_playoffs",
        "team_count": 16,
        "max_group_size": 4,
        "base_advance": 2,
        "match_modes": {"groups": "single", "playoffs": "bo3"},
    }
    data.update(overrides)
    return DraftConfig.from_dict(data)


def error_fields(result):
    return [(issue.field, issue.kind) for issue in result.errors]


class TestValidPlans:
    """Drafts that produce a plan."""

    def test_single_group_of_sixteen(self):
        result = validate(groups_playoffs_draft(max_group_size=16))
        assert result.ok
        plan = result.plan
        assert plan.groups.group_count == 1
        assert plan.groups.group_sizes == [16]
        assert plan.bracket.base_qualified == 2
        assert plan.bracket.bracket_size == 4
        assert plan.bracket.wildcards == 2
        assert plan.seeding is SeedingPolicy.RANDOM
        assert plan.round_duration_minutes is None

    def test_four_groups_of_four(self):
        plan = validate(groups_playoffs_draft()).plan
        assert plan.groups.group_sizes == [4, 4, 4, 4]
        assert plan.bracket.bracket_size == 8
        assert plan.bracket.wildcards == 0
        assert plan.match_modes == {Stage.GROUPS: MatchMode.SINGLE, Stage.PLAYOFFS: MatchMode.BO3}

    def test_knockout(self):
        result = validate({
            "format_kind": "knockout",
            "team_count": 32,
            "match_modes": {"playoffs": "bo3"},
            "seeding": "random",
        })
        assert result.ok
        assert result.plan.groups is None
        assert result.plan.bracket.bracket_size == 32
        assert result.plan.bracket.wildcards == 0
        assert result.plan.seeding is SeedingPolicy.RANDOM

    def test_fast_uses_fixed_modes_and_default_duration(self):
        result = validate({
            "format_kind": "fast",
            "team_count": 20,
            "group_size": 4,
            "base_advance": 2,
        })
        assert result.ok
        plan = result.plan
        assert plan.groups.group_sizes == [4, 4, 4, 4, 4]
        assert plan.bracket.base_qualified == 10
        assert plan.bracket.bracket_size == 16
        assert plan.bracket.wildcards == 6
        assert plan.match_modes == {Stage.GROUPS: MatchMode.SINGLE, Stage.PLAYOFFS: MatchMode.SINGLE}
        assert plan.round_duration_minutes == 25
        assert plan.seeding is None

    def test_league(self):
        result = validate({"format_kind": "league", "team_count": 16, "match_modes": {"league": "two_legs"}})
        assert result.ok
        assert result.plan.groups is None
        assert result.plan.bracket is None
        assert result.plan.match_modes == {Stage.LEAGUE: MatchMode.TWO_LEGS}

    def test_legacy_target_sizing(self):
        draft = groups_playoffs_draft(team_count=18, max_group_size=None, desired_group_size=4)
        plan = validate(draft).plan
        assert plan.groups.sizing is GroupSizing.TARGET
        assert plan.groups.group_sizes == [5, 5, 4, 4]

    def test_lenient_spellings_and_numeric_strings(self):
        result = validate({
            "format": "groupsPlayoffs",
            "team_count": "16",
            "max_group_size": "4",
            "base_advance": 1,
            "match_modes": {"groups": "twoLegs", "playoffs": "BO5"},
            "seeding": "Manual",
        })
        assert result.ok
        assert result.plan.format_kind is FormatKind.GROUPS_PLAYOFFS
        assert result.plan.match_modes[Stage.GROUPS] is MatchMode.TWO_LEGS
        assert result.plan.seeding is SeedingPolicy.MANUAL

    def test_custom_league_sizes(self):
        rules = build_format_rules([6])
        draft = {"format_kind": "league", "team_count": 6, "match_modes": {"league": "single"}}
        assert validate(draft, rules).ok
        assert not validate(draft).ok


class TestInvalidDrafts:
    """Drafts that produce field-keyed errors."""

    def test_infeasible_partition(self):
        result = validate(groups_playoffs_draft(team_count=18))
        assert not result.ok
        assert result.plan is None
        assert error_fields(result) == [("max_group_size", ErrorKind.INFEASIBLE_PARTITION)]
        issue = result.errors[0]
        assert issue.params["group_count"] == 5
        assert issue.params["min_group_size"] == 3

    def test_boundary_partition(self):
        assert validate(groups_playoffs_draft(team_count=4, max_group_size=4, base_advance=1)).ok
        result = validate(groups_playoffs_draft(team_count=4, max_group_size=3))
        assert error_fields(result) == [("max_group_size", ErrorKind.INFEASIBLE_PARTITION)]

    def test_stage_not_in_format(self):
        result = validate({
            "format_kind": "knockout",
            "team_count": 32,
            "match_modes": {"league": "two_legs", "playoffs": "bo3"},
            "seeding": "random",
        })
        assert error_fields(result) == [("match_modes.league", ErrorKind.ILLEGAL_MODE)]

    def test_mode_not_allowed_for_stage(self):
        result = validate(groups_playoffs_draft(match_modes={"groups": "bo3", "playoffs": "bo3"}))
        assert error_fields(result) == [("match_modes.groups", ErrorKind.ILLEGAL_MODE)]
        assert result.errors[0].params["allowed"] == "single, two_legs"

    def test_fast_stages_are_fixed(self):
        result = validate({
            "format_kind": "fast",
            "team_count": 20,
            "group_size": 4,
            "base_advance": 2,
            "match_modes": {"playoffs": "bo3"},
        })
        assert error_fields(result) == [("match_modes.playoffs", ErrorKind.ILLEGAL_MODE)]

    def test_unknown_format_stops_early(self):
        result = validate({"format_kind": "swiss", "team_count": -1})
        assert error_fields(result) == [("format_kind", ErrorKind.UNKNOWN_FORMAT)]

    def test_missing_format(self):
        result = validate(DraftConfig())
        assert error_fields(result) == [("format_kind", ErrorKind.UNKNOWN_FORMAT)]

    def test_all_errors_reported_together(self):
        result = validate(groups_playoffs_draft(
            team_count=17,
            max_group_size=None,
            base_advance=3,
            match_modes={"groups": "bo5"},
        ))
        assert set(error_fields(result)) == {
            ("team_count", ErrorKind.RANGE),
            ("max_group_size", ErrorKind.REQUIRED),
            ("base_advance", ErrorKind.RANGE),
            ("match_modes.groups", ErrorKind.ILLEGAL_MODE),
            ("match_modes.playoffs", ErrorKind.REQUIRED),
        }
        assert set(result.errors_by_field()) == {
            "team_count",
            "max_group_size",
            "base_advance",
            "match_modes.groups",
            "match_modes.playoffs",
        }

    def test_team_count_problems(self):
        assert error_fields(validate(groups_playoffs_draft(team_count=None))) == [
            ("team_count", ErrorKind.REQUIRED)
        ]
        assert error_fields(validate(groups_playoffs_draft(team_count="many"))) == [
            ("team_count", ErrorKind.RANGE)
        ]
        over = validate(groups_playoffs_draft(team_count=130))
        assert error_fields(over) == [("team_count", ErrorKind.RANGE)]
        assert over.errors[0].params["maximum"] == 128

    def test_knockout_team_count_must_be_preset(self):
        result = validate({
            "format_kind": "knockout",
            "team_count": 24,
            "match_modes": {"playoffs": "single"},
            "seeding": "manual",
        })
        assert error_fields(result) == [("team_count", ErrorKind.RANGE)]
        assert result.errors[0].params["choices"] == "8, 16, 32, 64, 128"

    def test_knockout_requires_seeding(self):
        result = validate({"format_kind": "knockout", "team_count": 16, "match_modes": {"playoffs": "single"}})
        assert error_fields(result) == [("seeding", ErrorKind.REQUIRED)]

    def test_invalid_seeding(self):
        result = validate(groups_playoffs_draft(seeding="alphabetical"))
        assert error_fields(result) == [("seeding", ErrorKind.RANGE)]

    def test_field_not_used_by_format(self):
        result = validate({
            "format_kind": "league",
            "team_count": 16,
            "match_modes": {"league": "single"},
            "max_group_size": 4,
        })
        assert error_fields(result) == [("max_group_size", ErrorKind.UNSUPPORTED_FIELD)]

    def test_fast_rejects_seeding(self):
        result = validate({
            "format_kind": "fast",
            "team_count": 20,
            "group_size": 4,
            "base_advance": 2,
            "seeding": "random",
        })
        assert error_fields(result) == [("seeding", ErrorKind.UNSUPPORTED_FIELD)]

    def test_both_sizing_fields_conflict(self):
        result = validate(groups_playoffs_draft(desired_group_size=4))
        assert error_fields(result) == [("desired_group_size", ErrorKind.UNSUPPORTED_FIELD)]
        assert result.errors[0].params["other"] == "max_group_size"

    def test_fast_choices(self):
        base = {"format_kind": "fast", "team_count": 20, "base_advance": 2}
        result = validate(dict(base, group_size=5))
        assert error_fields(result) == [("group_size", ErrorKind.RANGE)]
        result = validate(dict(base, group_size=4, round_duration_minutes=40))
        assert error_fields(result) == [("round_duration_minutes", ErrorKind.RANGE)]
        result = validate(dict(base, team_count=300, group_size=4))
        assert error_fields(result) == [("team_count", ErrorKind.RANGE)]

    def test_match_modes_must_be_a_mapping(self):
        result = validate(groups_playoffs_draft(match_modes=["single", "bo3"]))
        assert ("match_modes", ErrorKind.ILLEGAL_MODE) in error_fields(result)


class TestDeterminism:
    """Identical drafts give identical results."""

    def test_repeated_validation(self):
        for draft in (groups_playoffs_draft(), groups_playoffs_draft(team_count=18)):
            assert validate(draft) == validate(draft)

    def test_plan_to_draft_round_trip(self):
        drafts = [
            groups_playoffs_draft(),
            groups_playoffs_draft(max_group_size=128),
            groups_playoffs_draft(team_count=18, max_group_size=None, desired_group_size=4),
            DraftConfig.from_dict({"format_kind": "fast", "team_count": 24, "group_size": 6,
                                   "base_advance": 1, "round_duration_minutes": 30}),
            DraftConfig.from_dict({"format_kind": "knockout", "team_count": 64,
                                   "match_modes": {"playoffs": "bo7"}, "seeding": "manual"}),
            DraftConfig.from_dict({"format_kind": "league", "team_count": 10,
                                   "match_modes": {"league": "single"}}),
        ]
        for draft in drafts:
            plan = validate(draft).plan
            assert plan is not None
            assert validate(plan_to_draft(plan)).plan == plan


def test_build_plan_raises_with_every_issue():
    with pytest.raises(ValidationError) as exc_info:
        build_plan(groups_playoffs_draft(team_count=17, max_group_size=5, base_advance=3))
    fields = [issue.field for issue in exc_info.value.issues]
    assert fields == ["team_count", "base_advance"]
    assert "team_count:" in str(exc_info.value)


def test_draft_to_dict_drops_empty_fields():
    draft = DraftConfig.from_dict({"format": "league", "team_count": 8, "extra": 1})
    assert draft.to_dict() == {"format_kind": "league", "team_count": 8, "match_modes": {}}
