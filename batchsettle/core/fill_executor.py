"""Fill executor: drives one exchange fill against its venue handler.

The executor never mutates order counters. It returns a ``FillReceipt`` and the
token-order loop applies the receipt only after the venue call has returned and
its result has been validated. A fill that obtains nothing therefore leaves the
order's ``remaining`` exactly where it was before the fill.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ..state.balances import NATIVE_ASSET
from ..state.registry import HandlerRegistry
from ..state.world import WorldState
from .config import EngineConfig
from .errors import ExcessiveFee, SettlementError, TransferFailure, UnauthorizedVenue, VenueFailure
from .math import is_uint256
from .types import ExchangeFill, FillReceipt, OrderProgress

logger = logging.getLogger(__name__)

SKIP_NO_LIQUIDITY = "no_liquidity"
SKIP_ZERO_OBTAINED = "zero_obtained"


def _call_venue(handler_address: str, what: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> int:
    try:
        out = fn(*args, **kwargs)
    except SettlementError:
        raise
    except Exception as exc:
        raise VenueFailure(f"{what} failed at {handler_address}: {type(exc).__name__}: {exc}") from exc
    if not is_uint256(out):
        raise VenueFailure(f"{what} at {handler_address} returned a non-uint256 amount: {out!r}")
    return int(out)


class FillExecutor:
    def __init__(
        self,
        world: WorldState,
        registry: HandlerRegistry,
        config: EngineConfig,
        engine_address: str,
    ) -> None:
        self.world = world
        self.registry = registry
        self.config = config
        self.engine_address = engine_address

    def _resolve_handler(self, fill: ExchangeFill) -> Any:
        if not self.registry.is_whitelisted(fill.handler_address):
            raise UnauthorizedVenue(f"handler not whitelisted: {fill.handler_address}")
        handler = self.world.contract_at(fill.handler_address)
        if handler is None:
            raise UnauthorizedVenue(f"no handler deployed at {fill.handler_address}")
        return handler

    def execute(self, fill_index: int, progress: OrderProgress, fill: ExchangeFill) -> FillReceipt:
        handler = self._resolve_handler(fill)
        if fill.fee_rate >= self.config.max_fee_rate:
            raise ExcessiveFee(
                f"fill {fill_index} fee_rate {fill.fee_rate} >= max {self.config.max_fee_rate}"
            )

        remaining = progress.remaining
        available = _call_venue(
            fill.handler_address, "query_available", handler.query_available,
            fill.address_params, fill.value_params, fill.fee_rate, fill.signature,
        )
        amount_to_fill = min(remaining, available)

        def receipt(obtained: int, skipped: Optional[str] = None) -> FillReceipt:
            return FillReceipt(
                fill_index=fill_index,
                order_index=progress.index,
                handler_address=fill.handler_address,
                remaining_before=remaining,
                available=available,
                amount_to_fill=amount_to_fill,
                obtained=obtained,
                skipped=skipped,
            )

        if amount_to_fill == 0:
            logger.debug("fill %d skipped: no liquidity at %s", fill_index, fill.handler_address)
            return receipt(0, SKIP_NO_LIQUIDITY)

        token = progress.order.token_address
        if progress.order.direction.is_sell:
            if not self.world.transfer(token, self.engine_address, fill.handler_address, amount_to_fill):
                raise TransferFailure(f"fill {fill_index}: token transfer of {amount_to_fill} to venue failed")
            obtained = _call_venue(
                fill.handler_address, "perform_sell", handler.perform_sell,
                fill.address_params, fill.value_params, fill.fee_rate, amount_to_fill, fill.signature,
                sender=self.engine_address,
            )
        else:
            if not self.world.transfer(
                NATIVE_ASSET, self.engine_address, fill.handler_address, amount_to_fill, notify=False,
            ):
                raise TransferFailure(f"fill {fill_index}: native payment of {amount_to_fill} to venue failed")
            obtained = _call_venue(
                fill.handler_address, "perform_buy", handler.perform_buy,
                fill.address_params, fill.value_params, fill.fee_rate, amount_to_fill, fill.signature,
                sender=self.engine_address,
                value=amount_to_fill,
            )

        if obtained == 0:
            # Nothing is deducted; any tokens already sent to the venue stay there.
            logger.warning(
                "fill %d at %s obtained nothing for %d attempted", fill_index, fill.handler_address, amount_to_fill,
            )
            return receipt(0, SKIP_ZERO_OBTAINED)

        logger.debug(
            "fill %d order=%d handler=%s filled=%d obtained=%d",
            fill_index, progress.index, fill.handler_address, amount_to_fill, obtained,
        )
        return receipt(obtained)
