from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import pytest

from batchsettle.core import EngineConfig, SettlementEngine
from batchsettle.state import HandlerRegistry, WorldState
from batchsettle.venues import ConstantProductVenue, CustodyProxy, FixedRateVenue

ADMIN = "0x" + "ad" * 20
ENGINE = "0x" + "e0" * 20
PROXY = "0x" + "c0" * 20


@dataclass
class Market:
    """A world with a registry, a custody proxy and an authorized engine."""

    world: WorldState
    registry: HandlerRegistry
    custody: CustodyProxy
    engine: SettlementEngine

    @property
    def admin(self) -> str:
        return ADMIN

    def whitelist(self, handler: str, allowed: bool = True) -> None:
        self.registry.set_whitelisted(ADMIN, handler, allowed)

    def fixed_rate(self, address: str, *, whitelist: bool = True) -> FixedRateVenue:
        venue = FixedRateVenue(self.world, address)
        if whitelist:
            self.whitelist(venue.address)
        return venue

    def pool(self, address: str, token: str, *, whitelist: bool = True) -> ConstantProductVenue:
        venue = ConstantProductVenue(self.world, address, token)
        if whitelist:
            self.whitelist(venue.address)
        return venue

    def approve_custody(self, owner: str, token: str, amount: int) -> None:
        self.world.approve(owner, self.custody.address, token, amount)

    def balances(self):
        return self.world.balances.get_all_balances()


def build_market(config: Optional[EngineConfig] = None) -> Market:
    world = WorldState()
    registry = HandlerRegistry(admin=ADMIN)
    custody = CustodyProxy(world, PROXY, admin=ADMIN)
    engine = SettlementEngine(world, registry, custody, ENGINE, config=config)
    custody.set_authorized(ADMIN, engine.address, True)
    return Market(world=world, registry=registry, custody=custody, engine=engine)


@pytest.fixture
def make_market() -> Callable[..., Market]:
    return build_market


@pytest.fixture
def market() -> Market:
    return build_market()
