"""Realized-rate validation.

A token order is acceptable iff it transacted on both sides and its realized
rate ``obtained / given`` is at least the requested ``to_obtain / to_give``.

Two comparison modes:
- ``exact`` cross-multiplies, so no rate violation can hide behind rounding.
  Python ints are unbounded, so the products never wrap.
- ``truncating`` compares integer quotients the way the legacy on-chain engine
  did. Truncation can admit a marginally worse rate near ratio boundaries; the
  mode exists for parity with settlements produced under those rules.

In both modes a zero ``amount_to_obtain`` means no minimum: the order passes
whenever it obtained and gave something. The legacy quotient divided by zero
there; that case is not reproduced.
"""

from __future__ import annotations

from typing import Callable, Dict

RATE_CHECK_EXACT = "exact"
RATE_CHECK_TRUNCATING = "truncating"


def is_valid_rate_exact(
    amount_obtained: int,
    amount_given: int,
    amount_to_obtain: int,
    amount_to_give: int,
) -> bool:
    if amount_obtained == 0 or amount_given == 0:
        return False
    return amount_obtained * amount_to_give >= amount_to_obtain * amount_given


def is_valid_rate_truncating(
    amount_obtained: int,
    amount_given: int,
    amount_to_obtain: int,
    amount_to_give: int,
) -> bool:
    if amount_obtained == 0 or amount_given == 0:
        return False
    if amount_to_give == 0:
        return False
    if amount_obtained > amount_given:
        return amount_to_obtain // amount_to_give <= amount_obtained // amount_given
    # No requested minimum.
    if amount_to_obtain == 0:
        return True
    return amount_to_give // amount_to_obtain >= amount_given // amount_obtained


RateFn = Callable[[int, int, int, int], bool]

RATE_CHECKS: Dict[str, RateFn] = {
    RATE_CHECK_EXACT: is_valid_rate_exact,
    RATE_CHECK_TRUNCATING: is_valid_rate_truncating,
}


def is_valid_rate(
    amount_obtained: int,
    amount_given: int,
    amount_to_obtain: int,
    amount_to_give: int,
    *,
    mode: str = RATE_CHECK_EXACT,
) -> bool:
    """Return True iff the realized rate meets or beats the requested one."""
    fn = RATE_CHECKS.get(mode)
    if fn is None:
        raise ValueError(f"unknown rate check mode: {mode!r}")
    return fn(amount_obtained, amount_given, amount_to_obtain, amount_to_give)
