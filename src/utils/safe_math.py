"""Checked integer helpers for u64/u128 domain arithmetic.

Python ints never overflow, so range limits are enforced explicitly and
violations raise MathOverflowError instead of wrapping or saturating.
"""

from __future__ import annotations

from enum import Enum

from src.constants import U64_MAX, U128_MAX
from src.exceptions import MathOverflowError


class Rounding(Enum):
    UP = "up"
    DOWN = "down"


def checked_u64(value: int) -> int:
    if value < 0 or value > U64_MAX:
        raise MathOverflowError(f"value {value} out of u64 range")
    return value


def checked_u128(value: int) -> int:
    if value < 0 or value > U128_MAX:
        raise MathOverflowError(f"value {value} out of u128 range")
    return value


def safe_sub(a: int, b: int) -> int:
    """a - b, raising on underflow."""
    if b > a:
        raise MathOverflowError(f"underflow: {a} - {b}")
    return a - b


def div_round(numerator: int, denominator: int, rounding: Rounding) -> int:
    if denominator == 0:
        raise MathOverflowError("division by zero")
    if rounding is Rounding.UP:
        return -(-numerator // denominator)
    return numerator // denominator


def mul_div(x: int, y: int, denominator: int, rounding: Rounding) -> int:
    """(x * y) / denominator with explicit rounding, no range check."""
    return div_round(x * y, denominator, rounding)


def mul_div_u64(x: int, y: int, denominator: int, rounding: Rounding) -> int:
    return checked_u64(mul_div(x, y, denominator, rounding))


def mul_div_u128(x: int, y: int, denominator: int, rounding: Rounding) -> int:
    return checked_u128(mul_div(x, y, denominator, rounding))


def pow_q64(base: int, exp: int, resolution: int = 64) -> int:
    """base ** exp for a Q64 fixed-point base, floored after every multiply."""
    one = 1 << resolution
    result = one
    while exp > 0:
        if exp & 1:
            result = (result * base) >> resolution
        base = (base * base) >> resolution
        exp >>= 1
    return result
