"""
Custody proxy: the only contract callers approve for their tokens.

Engines authorized on the proxy can pull approved tokens from a caller into
engine custody. Keeping allowances on the proxy means an engine can be replaced
without every caller re-approving.
"""

from __future__ import annotations

import logging
from typing import Set

from ..state.balances import Address, Amount, AssetId
from ..state.canonical import canonical_address
from ..state.registry import AdminAuthorizationError
from ..state.world import WorldState

logger = logging.getLogger(__name__)


class CustodyProxy:
    def __init__(self, world: WorldState, address: Address, admin: Address) -> None:
        self.world = world
        self.address = canonical_address(address, name="proxy address")
        self.admin = canonical_address(admin, name="admin")
        self._authorized: Set[Address] = set()
        world.deploy(self.address, self)

    def set_authorized(self, caller: Address, spender: Address, allowed: bool) -> None:
        if canonical_address(caller, name="caller") != self.admin:
            raise AdminAuthorizationError(f"caller is not the proxy admin: {caller}")
        addr = canonical_address(spender, name="spender")
        if allowed:
            self._authorized.add(addr)
        else:
            self._authorized.discard(addr)

    def is_authorized(self, spender: Address) -> bool:
        return spender in self._authorized

    def pull(
        self,
        token: AssetId,
        from_: Address,
        to: Address,
        amount: Amount,
        *,
        caller: Address,
    ) -> bool:
        """Move `amount` of `token` from `from_` to `to` using `from_`'s approval of this proxy."""
        if caller not in self._authorized:
            logger.warning("custody pull by unauthorized caller %s", caller)
            return False
        ok = self.world.transfer_from(token, self.address, from_, to, amount)
        if not ok:
            logger.debug(
                "custody pull failed token=%s from=%s amount=%d allowance=%d balance=%d",
                token, from_, amount,
                self.world.allowance(from_, self.address, token),
                self.world.balance_of(from_, token),
            )
        return ok
