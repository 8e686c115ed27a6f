"""Group partitioner with balanced sizes and snake seeding."""

import sys
from typing import Sequence, TypeVar

from seedplan.mathutil import clamp_int, round_half_up
from seedplan.models import GroupPlan, GroupSizing

T = TypeVar("T")

# Smallest playable group
MIN_GROUP_SIZE = 4

_MAX_TEAMS = sys.maxsize


class InfeasiblePartitionError(ValueError):
    """Raised when a partition would leave a group below MIN_GROUP_SIZE."""

    def __init__(self, plan: GroupPlan):
        self.plan = plan
        super().__init__(
            f"Invalid grouping: {plan.team_count} teams in {plan.group_count} groups "
            f"leaves groups of {plan.min_group_size} (minimum {MIN_GROUP_SIZE})"
        )


def _split(teams: int, group_count: int, sizing: GroupSizing, size_limit: int) -> GroupPlan:
    """Spread teams over group_count groups, extra teams one per group."""
    base = teams // group_count
    remainder = teams % group_count

    plan = GroupPlan(
        team_count=teams,
        group_count=group_count,
        min_group_size=base,
        max_group_size=base + 1 if remainder > 0 else base,
        sizing=sizing,
        size_limit=size_limit,
    )
    if plan.min_group_size < MIN_GROUP_SIZE:
        raise InfeasiblePartitionError(plan)
    return plan


def partition_by_max_size(team_count: int, max_group_size: int) -> GroupPlan:
    """Partition teams so that no group exceeds max_group_size.

    Used by groups+playoffs (max_group_size) and fast (group_size). The
    ceiling may be as large as the field itself, which gives a single group.

    Args:
        team_count: Number of teams (clamped to at least 4)
        max_group_size: Largest allowed group (at least 1; above team_count means one group)

    Returns:
        GroupPlan with min/max sizes differing by at most one

    Raises:
        InfeasiblePartitionError: If a group would hold fewer than 4 teams

    Examples:
        >>> partition_by_max_size(20, 4).group_sizes
        [4, 4, 4, 4, 4]
        >>> partition_by_max_size(18, 5).group_sizes
        [5, 5, 4, 4]
    """
    teams = clamp_int(team_count, MIN_GROUP_SIZE, _MAX_TEAMS)
    size_limit = clamp_int(max_group_size, 1, _MAX_TEAMS)
    limit = min(size_limit, teams)

    group_count = max(1, -(-teams // limit))
    return _split(teams, group_count, GroupSizing.MAXIMUM, size_limit)


def partition_by_target_size(team_count: int, desired_group_size: int) -> GroupPlan:
    """Partition teams into groups close to desired_group_size.

    Legacy settings-editor semantics: the group count is the rounded ratio,
    capped so that no group falls under 4 teams.

    Examples:
        >>> partition_by_target_size(18, 4).group_sizes
        [5, 5, 4, 4]
        >>> partition_by_target_size(16, 6).group_count
        3
    """
    teams = clamp_int(team_count, MIN_GROUP_SIZE, _MAX_TEAMS)
    size_limit = clamp_int(desired_group_size, 1, _MAX_TEAMS)
    desired = min(size_limit, teams)

    group_count = max(1, round_half_up(teams, desired))
    max_groups = max(1, teams // MIN_GROUP_SIZE)
    group_count = min(group_count, max_groups)
    return _split(teams, group_count, GroupSizing.TARGET, size_limit)


def partition(team_count: int, size: int, sizing: GroupSizing) -> GroupPlan:
    """Dispatch to the partitioner for the given sizing mode."""
    if sizing is GroupSizing.TARGET:
        return partition_by_target_size(team_count, size)
    return partition_by_max_size(team_count, size)


def distribute_snake(entries: Sequence[T], plan: GroupPlan) -> list[list[T]]:
    """Lay seeded entries into the planned groups using snake order.

    Seeds flow in a serpentine pattern across the groups:
    - Group 1: 1, 8, 9, 16
    - Group 2: 2, 7, 10, 15
    - Group 3: 3, 6, 11, 14
    - Group 4: 4, 5, 12, 13

    Groups that are already full are skipped, so the result always matches
    plan.group_sizes.

    Args:
        entries: Teams sorted by seed (index 0 = best)
        plan: GroupPlan the entries must fill exactly

    Returns:
        List of groups, each a list of entries
    """
    if len(entries) != plan.team_count:
        raise ValueError(
            f"Expected {plan.team_count} entries for this plan, got {len(entries)}"
        )

    capacities = plan.group_sizes
    groups: list[list[T]] = [[] for _ in range(plan.group_count)]

    order = list(range(plan.group_count))
    row = 0
    idx = 0
    while idx < len(entries):
        lane = order if row % 2 == 0 else list(reversed(order))
        for group_idx in lane:
            if idx >= len(entries):
                break
            if len(groups[group_idx]) < capacities[group_idx]:
                groups[group_idx].append(entries[idx])
                idx += 1
        row += 1

    return groups
