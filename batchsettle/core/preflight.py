"""Batch preflight.

Runs before any venue is touched:

1. Structural checks on the struct-of-arrays bundles (pairwise lengths, slot
   counts, uint256 domains, canonical addresses, batch size limits) and the fill
   grouping (every fill must belong to the token order its position implies).
2. Custody pull of ``amount_to_give`` tokens for every SELL order.
3. Declared-liquidity check: attached value plus declared SELL proceeds must
   cover declared BUY spend. This is optimistic; realized amounts are checked
   per order by the rate validator.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from ..state.balances import NATIVE_ASSET
from ..state.canonical import canonical_address, canonical_word
from .config import EngineConfig
from .errors import InsufficientAuthorization, InsufficientDeclaredLiquidity, StructuralMismatch
from .math import checked_add, checked_sum, is_uint256
from .types import (
    ADDRESS_PARAM_SLOTS,
    VALUE_PARAM_SLOTS,
    Batch,
    Direction,
    ExchangeFill,
    ExchangeFillArrays,
    Signature,
    TokenOrder,
    TokenOrderArrays,
)

logger = logging.getLogger(__name__)


def _require_same_length(bundle_name: str, columns: Sequence[Tuple[str, Sequence]]) -> int:
    lengths = {name: len(col) for name, col in columns}
    if len(set(lengths.values())) > 1:
        raise StructuralMismatch(f"{bundle_name} arrays differ in length: {lengths}")
    return next(iter(lengths.values()), 0)


def _require_amount(value: object, *, name: str) -> int:
    if not is_uint256(value):
        raise StructuralMismatch(f"{name} must be a uint256, got {value!r}")
    return int(value)


def _require_address(value: object, *, name: str) -> str:
    try:
        return canonical_address(value, name=name)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise StructuralMismatch(str(exc)) from exc


def _require_token(value: object, *, name: str) -> str:
    addr = _require_address(value, name=name)
    if addr == NATIVE_ASSET:
        raise StructuralMismatch(f"{name} must be a token, not the native asset")
    return addr


def build_token_orders(arrays: TokenOrderArrays, config: EngineConfig) -> Tuple[TokenOrder, ...]:
    n = _require_same_length(
        "token order",
        [
            ("token_addresses", arrays.token_addresses),
            ("directions", arrays.directions),
            ("amounts_to_obtain", arrays.amounts_to_obtain),
            ("amounts_to_give", arrays.amounts_to_give),
        ],
    )
    if n > config.max_token_orders:
        raise StructuralMismatch(f"too many token orders: {n} > {config.max_token_orders}")

    orders: List[TokenOrder] = []
    for i in range(n):
        direction = arrays.directions[i]
        if not isinstance(direction, Direction):
            raise StructuralMismatch(f"directions[{i}] must be a Direction, got {direction!r}")
        orders.append(
            TokenOrder(
                token_address=_require_token(arrays.token_addresses[i], name=f"token_addresses[{i}]"),
                direction=direction,
                amount_to_obtain=_require_amount(arrays.amounts_to_obtain[i], name=f"amounts_to_obtain[{i}]"),
                amount_to_give=_require_amount(arrays.amounts_to_give[i], name=f"amounts_to_give[{i}]"),
            )
        )
    return tuple(orders)


def build_exchange_fills(arrays: ExchangeFillArrays, config: EngineConfig) -> Tuple[ExchangeFill, ...]:
    n = _require_same_length(
        "exchange fill",
        [
            ("token_addresses", arrays.token_addresses),
            ("handler_addresses", arrays.handler_addresses),
            ("address_params", arrays.address_params),
            ("value_params", arrays.value_params),
            ("fee_rates", arrays.fee_rates),
            ("v", arrays.v),
            ("r", arrays.r),
            ("s", arrays.s),
        ],
    )
    if n > config.max_exchange_fills:
        raise StructuralMismatch(f"too many exchange fills: {n} > {config.max_exchange_fills}")

    fills: List[ExchangeFill] = []
    for i in range(n):
        address_params = arrays.address_params[i]
        value_params = arrays.value_params[i]
        if not isinstance(address_params, (list, tuple)) or len(address_params) != ADDRESS_PARAM_SLOTS:
            raise StructuralMismatch(f"address_params[{i}] must have {ADDRESS_PARAM_SLOTS} slots")
        if not isinstance(value_params, (list, tuple)) or len(value_params) != VALUE_PARAM_SLOTS:
            raise StructuralMismatch(f"value_params[{i}] must have {VALUE_PARAM_SLOTS} slots")
        v = arrays.v[i]
        if not isinstance(v, int) or isinstance(v, bool) or not (0 <= v <= 255):
            raise StructuralMismatch(f"v[{i}] must be a uint8, got {v!r}")
        try:
            r = canonical_word(arrays.r[i], name=f"r[{i}]")
            s = canonical_word(arrays.s[i], name=f"s[{i}]")
        except (TypeError, ValueError) as exc:
            raise StructuralMismatch(str(exc)) from exc

        fills.append(
            ExchangeFill(
                token_address=_require_token(arrays.token_addresses[i], name=f"fill token_addresses[{i}]"),
                handler_address=_require_address(arrays.handler_addresses[i], name=f"handler_addresses[{i}]"),
                address_params=tuple(
                    _require_address(a, name=f"address_params[{i}][{j}]") for j, a in enumerate(address_params)
                ),
                value_params=tuple(
                    _require_amount(x, name=f"value_params[{i}][{j}]") for j, x in enumerate(value_params)
                ),
                fee_rate=_require_amount(arrays.fee_rates[i], name=f"fee_rates[{i}]"),
                signature=Signature(v=v, r=r, s=s),
            )
        )
    return tuple(fills)


def check_fill_grouping(orders: Sequence[TokenOrder], fills: Sequence[ExchangeFill]) -> None:
    """
    Walk orders and fills the way the token-order loop will.

    Each order consumes the run of consecutive fills that share its token. Any
    fill left over means the caller did not group fills contiguously in order.
    """
    fill_index = 0
    for order in orders:
        while fill_index < len(fills) and fills[fill_index].token_address == order.token_address:
            fill_index += 1
    if fill_index != len(fills):
        raise StructuralMismatch(
            f"exchange fill {fill_index} ({fills[fill_index].token_address}) does not follow its token order"
        )


def check_declared_liquidity(orders: Sequence[TokenOrder], value: int) -> None:
    """Require attached value + declared SELL proceeds >= declared BUY spend."""
    expected_available = checked_add(
        value,
        checked_sum(o.amount_to_obtain for o in orders if o.direction is Direction.SELL),
    )
    needed = checked_sum(o.amount_to_give for o in orders if o.direction is Direction.BUY)
    if expected_available < needed:
        raise InsufficientDeclaredLiquidity(
            f"declared native available {expected_available} < needed {needed}"
        )


def pull_sell_custody(custody, engine_address: str, caller: str, orders: Sequence[TokenOrder]) -> None:
    for i, order in enumerate(orders):
        if order.direction is not Direction.SELL:
            continue
        ok = custody.pull(order.token_address, caller, engine_address, order.amount_to_give, caller=engine_address)
        if not ok:
            raise InsufficientAuthorization(
                f"custody pull failed for token order {i}: {order.amount_to_give} of {order.token_address}"
            )


def validate_structure(
    token_orders: TokenOrderArrays,
    exchange_fills: ExchangeFillArrays,
    config: EngineConfig,
) -> Tuple[Tuple[TokenOrder, ...], Tuple[ExchangeFill, ...]]:
    """Build record lists from the wire bundles; raises StructuralMismatch."""
    orders = build_token_orders(token_orders, config)
    fills = build_exchange_fills(exchange_fills, config)
    check_fill_grouping(orders, fills)
    return orders, fills


def preflight(
    *,
    custody,
    engine_address: str,
    caller: str,
    orders: Sequence[TokenOrder],
    fills: Sequence[ExchangeFill],
    value: int,
) -> Batch:
    """Pull SELL custody and check declared liquidity for structurally valid records."""
    pull_sell_custody(custody, engine_address, caller, orders)
    check_declared_liquidity(orders, value)

    logger.debug("preflight ok caller=%s orders=%d fills=%d value=%d", caller, len(orders), len(fills), value)
    return Batch(caller=caller, token_orders=tuple(orders), exchange_fills=tuple(fills), value=value)
