"""
Fixed-rate quote venue.

An inventory-backed market maker quoting one price per order. The order is
encoded in the fill's parameter vectors:

    address_params = [maker, token, 0, 0, 0, 0, 0, 0]
    value_params   = [price_num, price_den, max_fill, side, 0, 0]

`price_num / price_den` is tokens per native unit. `side` says which way the
maker trades: SIDE_SELLS_TOKEN serves taker BUYs, SIDE_BUYS_TOKEN serves taker
SELLs. `max_fill` caps the order in taker-give units. The fee is taken from the
proceeds and stays in the venue's inventory.

Signature verification is the venue's concern; this venue does not check one.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..core.math import wad_mul_floor
from ..core.types import Signature
from ..state.balances import Address, Amount, NATIVE_ASSET
from .base import VenueHandler

logger = logging.getLogger(__name__)

SIDE_SELLS_TOKEN = 0
SIDE_BUYS_TOKEN = 1


def _unpack(address_params: Sequence[Address], value_params: Sequence[int]):
    token = address_params[1]
    price_num, price_den, max_fill, side = value_params[0], value_params[1], value_params[2], value_params[3]
    return token, price_num, price_den, max_fill, side


class FixedRateVenue(VenueHandler):
    def query_available(
        self,
        address_params: Sequence[Address],
        value_params: Sequence[int],
        fee_rate: int,
        signature: Signature,
    ) -> Amount:
        token, num, den, max_fill, side = _unpack(address_params, value_params)
        if num <= 0 or den <= 0:
            return 0
        if side == SIDE_SELLS_TOKEN:
            capacity = self.world.balance_of(self.address, token) * den // num
        elif side == SIDE_BUYS_TOKEN:
            capacity = self.world.balance_of(self.address, NATIVE_ASSET) * num // den
        else:
            return 0
        return min(max_fill, capacity)

    def _check_fill(self, address_params, value_params, fee_rate, amount_to_fill, signature, side):
        token, num, den, _, order_side = _unpack(address_params, value_params)
        if order_side != side:
            raise ValueError(f"order side {order_side} cannot serve this direction")
        if amount_to_fill > self.query_available(address_params, value_params, fee_rate, signature):
            raise ValueError("fill exceeds available amount")
        return token, num, den

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
        token, num, den = self._check_fill(
            address_params, value_params, fee_rate, amount_to_fill, signature, SIDE_SELLS_TOKEN,
        )
        gross = amount_to_fill * num // den
        out = gross - wad_mul_floor(gross, fee_rate)
        if out > 0 and not self.world.transfer(token, self.address, sender, out):
            raise ValueError("venue token inventory exhausted")
        logger.debug("fixed-rate buy venue=%s in=%d out=%d", self.address, amount_to_fill, out)
        return out

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
        token, num, den = self._check_fill(
            address_params, value_params, fee_rate, amount_to_fill, signature, SIDE_BUYS_TOKEN,
        )
        gross = amount_to_fill * den // num
        out = gross - wad_mul_floor(gross, fee_rate)
        if out > 0 and not self.world.transfer(NATIVE_ASSET, self.address, sender, out):
            raise ValueError("venue native inventory exhausted")
        logger.debug("fixed-rate sell venue=%s in=%d out=%d", self.address, amount_to_fill, out)
        return out
