"""
Venue handler capability.

One implementation per liquidity venue. Handlers are contracts deployed into the
`WorldState` at their handler address; the engine looks them up by the address
recorded in each exchange fill and only calls them if the registry whitelists
that address.

Amount units follow the taker's side of the fill:
- `query_available` and `amount_to_fill` are in units of what the engine gives
  (native currency for a BUY, tokens for a SELL).
- `perform_buy` / `perform_sell` return what the engine obtained, after the
  venue has already transferred it to `sender`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..core.types import Signature
from ..state.balances import Address, Amount
from ..state.canonical import canonical_address
from ..state.world import WorldState


class VenueHandler(ABC):
    def __init__(self, world: WorldState, address: Address) -> None:
        self.world = world
        self.address = canonical_address(address, name="handler address")
        world.deploy(self.address, self, receive=self._receive)

    def _receive(self, sender: Address, amount: Amount) -> None:
        """Venues accept bare native transfers."""

    @abstractmethod
    def query_available(
        self,
        address_params: Sequence[Address],
        value_params: Sequence[int],
        fee_rate: int,
        signature: Signature,
    ) -> Amount:
        """Maximum amount the venue can currently take on this order."""

    @abstractmethod
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
        """Spend `value` native (already paid to the venue) on tokens for `sender`."""

    @abstractmethod
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
        """Sell `amount_to_fill` tokens (already transferred to the venue) for native."""
