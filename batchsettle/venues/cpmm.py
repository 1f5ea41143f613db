"""
Constant-product swap quote (x * y = k, exact input, integers only).

The fee is `ceil(amount_in * fee_rate / WAD)`, taken from the gross input and
left in the pool. Only the net input is priced:

    amount_out = floor(reserve_out * net_in / (reserve_in + net_in))

Both roundings favour the pool, so k never decreases.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..core.math import WAD


def _int_arg(name: str, value: object, *, minimum: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}: {value}")
    return value


@dataclass(frozen=True)
class SwapExactInResult:
    amount_in: int
    fee_total: int
    net_in: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def compute_fee_total(*, gross_in: int, fee_rate: int) -> int:
    _int_arg("gross_in", gross_in, minimum=0)
    _int_arg("fee_rate", fee_rate, minimum=0)
    if fee_rate > WAD:
        raise ValueError(f"fee_rate above 100%: {fee_rate}")
    return -(-gross_in * fee_rate // WAD)


def swap_exact_in(*, reserve_in: int, reserve_out: int, amount_in: int, fee_rate: int) -> SwapExactInResult:
    _int_arg("reserve_in", reserve_in, minimum=1)
    _int_arg("reserve_out", reserve_out, minimum=1)
    _int_arg("amount_in", amount_in, minimum=1)

    fee_total = compute_fee_total(gross_in=amount_in, fee_rate=fee_rate)
    net_in = amount_in - fee_total
    amount_out = reserve_out * net_in // (reserve_in + net_in)

    result = SwapExactInResult(
        amount_in=amount_in,
        fee_total=fee_total,
        net_in=net_in,
        amount_out=amount_out,
        new_reserve_in=reserve_in + amount_in,
        new_reserve_out=reserve_out - amount_out,
        k_before=reserve_in * reserve_out,
        k_after=(reserve_in + amount_in) * (reserve_out - amount_out),
    )
    if result.k_after < result.k_before:
        raise ValueError(f"k decreased: {result.k_before} -> {result.k_after}")
    return result
