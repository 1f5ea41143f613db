"""Checked fixed-point arithmetic.

Amounts are unsigned 256-bit integers. Fees and rates are 18-decimal fixed
point (``WAD``). Any result outside ``[0, MAX_UINT256]`` raises
``ArithmeticOverflow`` so a batch can never settle on a wrapped value.
"""

from __future__ import annotations

from .errors import ArithmeticOverflow

MAX_UINT256: int = 2**256 - 1

WAD: int = 10**18

# 1% in WAD units.
DEFAULT_MAX_FEE_RATE: int = WAD // 100


def is_uint256(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_UINT256


def require_uint256(value: int, *, name: str) -> int:
    if not is_uint256(value):
        raise ArithmeticOverflow(f"{name} outside uint256 domain: {value!r}")
    return int(value)


def checked_add(a: int, b: int) -> int:
    out = a + b
    if out > MAX_UINT256:
        raise ArithmeticOverflow(f"addition overflow: {a} + {b}")
    return out


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise ArithmeticOverflow(f"subtraction underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int) -> int:
    out = a * b
    if out > MAX_UINT256:
        raise ArithmeticOverflow(f"multiplication overflow: {a} * {b}")
    return out


def checked_sum(values) -> int:
    total = 0
    for v in values:
        total = checked_add(total, v)
    return total


def wad_mul_floor(amount: int, rate_wad: int) -> int:
    """floor(amount * rate_wad / WAD)."""
    return checked_mul(amount, rate_wad) // WAD
