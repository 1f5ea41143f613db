"""
Venue handler whitelist.

The registry is injected into the engine instead of living in module globals.
Only the admin may toggle handlers; reads are open.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from .balances import Address
from .canonical import canonical_address

logger = logging.getLogger(__name__)


class AdminAuthorizationError(Exception):
    """Raised when a non-admin caller uses the administrative surface."""


@dataclass
class HandlerRegistry:
    admin: Address
    _whitelisted: Dict[Address, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.admin = canonical_address(self.admin, name="admin")

    def _require_admin(self, caller: Address) -> None:
        if canonical_address(caller, name="caller") != self.admin:
            raise AdminAuthorizationError(f"caller is not the registry admin: {caller}")

    def set_whitelisted(self, caller: Address, handler: Address, allowed: bool) -> None:
        self._require_admin(caller)
        if not isinstance(allowed, bool):
            raise TypeError("allowed must be a bool")
        addr = canonical_address(handler, name="handler")
        if allowed:
            self._whitelisted[addr] = True
        else:
            self._whitelisted.pop(addr, None)
        logger.info("handler %s whitelisted=%s", addr, allowed)

    def transfer_admin(self, caller: Address, new_admin: Address) -> None:
        self._require_admin(caller)
        self.admin = canonical_address(new_admin, name="new_admin")
        logger.info("registry admin transferred to %s", self.admin)

    def is_whitelisted(self, handler: Address) -> bool:
        return self._whitelisted.get(handler, False)

    def whitelisted(self) -> List[Address]:
        return sorted(self._whitelisted)
