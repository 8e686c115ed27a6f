"""Integer helpers shared by the partitioner and bracket sizer."""

import math
from typing import Any, Optional


def clamp_int(n: Any, minimum: int, maximum: int) -> int:
    """Truncate toward zero, then clamp into [minimum, maximum].

    Input that is not a finite number becomes ``minimum``. Never raises.

    Examples:
        >>> clamp_int(7.9, 4, 32)
        7
        >>> clamp_int(-3, 4, 32)
        4
        >>> clamp_int("abc", 4, 32)
        4
    """
    if isinstance(n, bool):
        x = float(minimum)
    elif isinstance(n, int):
        return max(minimum, min(maximum, n))
    else:
        try:
            x = float(n)
        except (TypeError, ValueError, OverflowError):
            x = float(minimum)
    if not math.isfinite(x):
        x = float(minimum)
    return max(minimum, min(maximum, int(x)))


def next_power_of_two(n: int) -> int:
    """Return the smallest power of 2 >= n (1 for n <= 0).

    Examples:
        >>> next_power_of_two(5)
        8
        >>> next_power_of_two(8)
        8
        >>> next_power_of_two(0)
        1
    """
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def is_even(n: int) -> bool:
    return n % 2 == 0


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded to nearest, halves rounding up.

    Examples:
        >>> round_half_up(18, 4)
        5
        >>> round_half_up(17, 4)
        4
    """
    return (2 * numerator + denominator) // (2 * denominator)


def as_int(value: Any) -> Optional[int]:
    """Read operator input as an integer, or None if it is not one.

    Accepts ints, integral floats and integral numeric strings ("16", "16.0").
    Booleans are rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None
