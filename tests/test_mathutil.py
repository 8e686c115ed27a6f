"""Tests for integer helpers."""

import math

from seedplan.mathutil import (
    as_int,
    clamp_int,
    is_even,
    is_power_of_two,
    next_power_of_two,
    round_half_up,
)


class TestClampInt:
    """Test cases for clamp_int."""

    def test_truncates_toward_zero(self):
        assert clamp_int(7.9, 4, 32) == 7
        assert clamp_int(12, 4, 32) == 12
        assert clamp_int("12", 4, 32) == 12

    def test_clamps_into_range(self):
        assert clamp_int(-3, 4, 32) == 4
        assert clamp_int(-7.9, 4, 32) == 4
        assert clamp_int(100, 4, 32) == 32
        assert clamp_int(10**400, 4, 128) == 128
        assert clamp_int(-(10**400), 4, 128) == 4

    def test_non_numeric_becomes_minimum(self):
        """Garbage input never raises."""
        assert clamp_int("abc", 4, 32) == 4
        assert clamp_int(None, 4, 32) == 4
        assert clamp_int([1, 2], 4, 32) == 4
        assert clamp_int(True, 4, 32) == 4

    def test_non_finite_becomes_minimum(self):
        assert clamp_int(math.nan, 4, 32) == 4
        assert clamp_int(math.inf, 4, 32) == 4
        assert clamp_int(-math.inf, 4, 32) == 4


def test_next_power_of_two():
    assert next_power_of_two(0) == 1
    assert next_power_of_two(1) == 1
    assert next_power_of_two(2) == 2
    assert next_power_of_two(3) == 4
    assert next_power_of_two(5) == 8
    assert next_power_of_two(8) == 8
    assert next_power_of_two(9) == 16
    assert next_power_of_two(129) == 256


def test_next_power_of_two_is_smallest():
    """Result is a power of two >= n and half of it is < n."""
    for n in range(2, 600):
        p = next_power_of_two(n)
        assert is_power_of_two(p)
        assert p >= n
        assert p // 2 < n


def test_is_power_of_two_and_even():
    assert is_power_of_two(1)
    assert is_power_of_two(64)
    assert not is_power_of_two(0)
    assert not is_power_of_two(12)
    assert is_even(0)
    assert is_even(18)
    assert not is_even(17)


def test_round_half_up():
    assert round_half_up(18, 4) == 5  # 4.5
    assert round_half_up(17, 4) == 4  # 4.25
    assert round_half_up(10, 4) == 3  # 2.5
    assert round_half_up(14, 4) == 4  # 3.5
    assert round_half_up(16, 6) == 3  # 2.67


def test_as_int():
    assert as_int(16) == 16
    assert as_int(7.0) == 7
    assert as_int("16") == 16
    assert as_int(" 16.0 ") == 16
    assert as_int(16.5) is None
    assert as_int("sixteen") is None
    assert as_int(True) is None
    assert as_int(None) is None
    assert as_int([16]) is None
