"""Knockout bracket sizing."""

import sys

from seedplan.mathutil import clamp_int, next_power_of_two
from seedplan.models import BracketPlan

# Smallest bracket a playoffs stage may have (semifinals + final)
MIN_BRACKET_SIZE = 4

_ROUND_LABELS = {
    2: "final",
    4: "semifinal",
    8: "quarterfinal",
}


def size_bracket(group_count: int, base_advance: int) -> BracketPlan:
    """Compute the playoffs bracket fed by the group stage.

    The top ``base_advance`` teams of every group qualify automatically. When
    that does not land on a power of two, the gap is filled with wildcard
    slots (best non-qualifying teams) instead of byes.

    Knockout formats reuse this with one "group" per team and base_advance 1.

    Args:
        group_count: Number of groups (clamped to at least 1)
        base_advance: Automatic qualifiers per group (clamped to 1..2)

    Returns:
        BracketPlan; wildcards may be 0 (exact fit)

    Examples:
        >>> size_bracket(5, 2)
        BracketPlan(base_advance=2, base_qualified=10, bracket_size=16, wildcards=6)
        >>> size_bracket(1, 2)
        BracketPlan(base_advance=2, base_qualified=2, bracket_size=4, wildcards=2)
    """
    groups = clamp_int(group_count, 1, sys.maxsize)
    advance = clamp_int(base_advance, 1, 2)

    base_qualified = groups * advance
    bracket_size = next_power_of_two(max(MIN_BRACKET_SIZE, base_qualified))

    return BracketPlan(
        base_advance=advance,
        base_qualified=base_qualified,
        bracket_size=bracket_size,
        wildcards=bracket_size - base_qualified,
    )


def round_label_for_size(bracket_size: int) -> str:
    """Name of the opening round for a bracket of the given size.

    Examples:
        >>> round_label_for_size(8)
        'quarterfinal'
        >>> round_label_for_size(32)
        'round_of_32'
    """
    size = next_power_of_two(bracket_size)
    if size in _ROUND_LABELS:
        return _ROUND_LABELS[size]
    return f"round_of_{size}"
