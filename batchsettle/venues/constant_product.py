"""
Constant-product pool venue (token / native).

The pool's reserves are the venue address's own balances. The engine pays the
input into the pool before calling `perform_buy` / `perform_sell`, so the
pre-trade input reserve is `balance - amount_to_fill`.

    address_params = [0, token, 0, 0, 0, 0, 0, 0]
    value_params   = [max_in, side, 0, 0, 0, 0]

`side` is SIDE_NATIVE_IN (serves taker BUYs) or SIDE_TOKEN_IN (serves taker
SELLs). `max_in` caps a single fill; 0 means "up to the input reserve". The
fill's fee rate is the pool fee.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..core.types import Signature
from ..state.balances import Address, Amount, AssetId, NATIVE_ASSET
from ..state.canonical import canonical_address
from ..state.world import WorldState
from .base import VenueHandler
from .cpmm import swap_exact_in

logger = logging.getLogger(__name__)

SIDE_NATIVE_IN = 0
SIDE_TOKEN_IN = 1


class ConstantProductVenue(VenueHandler):
    def __init__(self, world: WorldState, address: Address, token: AssetId) -> None:
        super().__init__(world, address)
        self.token = canonical_address(token, name="token")

    def _assets(self, address_params: Sequence[Address], side: int):
        if address_params[1] != self.token:
            raise ValueError(f"pool does not trade {address_params[1]}")
        if side == SIDE_NATIVE_IN:
            return NATIVE_ASSET, self.token
        if side == SIDE_TOKEN_IN:
            return self.token, NATIVE_ASSET
        raise ValueError(f"unknown side: {side}")

    def reserves(self) -> tuple[int, int]:
        """(native reserve, token reserve)."""
        return (
            self.world.balance_of(self.address, NATIVE_ASSET),
            self.world.balance_of(self.address, self.token),
        )

    def query_available(
        self,
        address_params: Sequence[Address],
        value_params: Sequence[int],
        fee_rate: int,
        signature: Signature,
    ) -> Amount:
        max_in, side = value_params[0], value_params[1]
        try:
            asset_in, asset_out = self._assets(address_params, side)
        except ValueError:
            return 0
        reserve_in = self.world.balance_of(self.address, asset_in)
        if reserve_in == 0 or self.world.balance_of(self.address, asset_out) == 0:
            return 0
        return reserve_in if max_in == 0 else min(max_in, reserve_in)

    def _swap(self, address_params, value_params, fee_rate, amount_to_fill, side, sender) -> Amount:
        max_in, order_side = value_params[0], value_params[1]
        if order_side != side:
            raise ValueError(f"order side {order_side} cannot serve this direction")
        asset_in, asset_out = self._assets(address_params, side)
        reserve_in = self.world.balance_of(self.address, asset_in) - amount_to_fill
        reserve_out = self.world.balance_of(self.address, asset_out)
        if reserve_in < 0:
            raise ValueError("input was not paid into the pool")
        if max_in and amount_to_fill > max_in:
            raise ValueError("fill exceeds max_in")

        res = swap_exact_in(
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            amount_in=amount_to_fill,
            fee_rate=fee_rate,
        )
        if res.amount_out > 0 and not self.world.transfer(asset_out, self.address, sender, res.amount_out):
            raise ValueError("pool output transfer failed")
        logger.debug(
            "cpmm swap venue=%s in=%d out=%d fee=%d", self.address, amount_to_fill, res.amount_out, res.fee_total,
        )
        return res.amount_out

    def perform_buy(
        self,
        address_params: Sequence[Address],
        value_params: Sequence[int],
        fee_rate: int,
        amount_to_fill: Amount,
        signature: Signature,
        *,
        sender: Address,
        value: Amount,
    ) -> Amount:
        if value != amount_to_fill:
            raise ValueError(f"payment {value} does not match amount_to_fill {amount_to_fill}")
        return self._swap(address_params, value_params, fee_rate, amount_to_fill, SIDE_NATIVE_IN, sender)

    def perform_sell(
        self,
        address_params: Sequence[Address],
        value_params: Sequence[int],
        fee_rate: int,
        amount_to_fill: Amount,
        signature: Signature,
        *,
        sender: Address,
    ) -> Amount:
        return self._swap(address_params, value_params, fee_rate, amount_to_fill, SIDE_TOKEN_IN, sender)
