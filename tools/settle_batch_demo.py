#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from batchsettle.core import SettlementEngine
from batchsettle.core.math import WAD
from batchsettle.integration import load_engine_config, parse_batch_payload, settle_payload
from batchsettle.state import NATIVE_ASSET, HandlerRegistry, WorldState
from batchsettle.venues import ConstantProductVenue, CustodyProxy, FixedRateVenue
from batchsettle.venues.constant_product import SIDE_NATIVE_IN
from batchsettle.venues.fixed_rate import SIDE_BUYS_TOKEN

ADMIN = "0x" + "ad" * 20
ENGINE = "0x" + "e0" * 20
PROXY = "0x" + "c0" * 20
CALLER = "0x" + "11" * 20
MAKER = "0x" + "99" * 20
TOKEN_X = "0x" + "58" * 20
TOKEN_Y = "0x" + "59" * 20
QUOTE_VENUE = "0x" + "a1" * 20
POOL_VENUE = "0x" + "b1" * 20
ZERO32 = "0x" + "00" * 32


def _demo_payload() -> dict:
    """Sell 1000 X to a quote venue, spend the proceeds on Y from a pool."""
    return {
        "caller": CALLER,
        "value": 0,
        "token_orders": {
            "token_addresses": [TOKEN_X, TOKEN_Y],
            "directions": ["SELL", "BUY"],
            "amounts_to_obtain": [49 * WAD // 100, 350],
            "amounts_to_give": [1000, 4 * WAD // 10],
        },
        "exchange_fills": {
            "token_addresses": [TOKEN_X, TOKEN_Y],
            "handler_addresses": [QUOTE_VENUE, POOL_VENUE],
            "address_params": [
                [MAKER, TOKEN_X] + [NATIVE_ASSET] * 6,
                [NATIVE_ASSET, TOKEN_Y] + [NATIVE_ASSET] * 6,
            ],
            # 2000 X per native unit, capped at 1000 X.
            "value_params": [[2000, WAD, 1000, SIDE_BUYS_TOKEN, 0, 0], [0, SIDE_NATIVE_IN, 0, 0, 0, 0]],
            "fee_rates": [WAD // 1000, 3 * WAD // 1000],
            "v": [27, 27],
            "r": [ZERO32, ZERO32],
            "s": [ZERO32, ZERO32],
        },
    }


def _build_world(config) -> tuple[WorldState, SettlementEngine]:
    world = WorldState()
    registry = HandlerRegistry(admin=ADMIN)
    custody = CustodyProxy(world, PROXY, admin=ADMIN)
    engine = SettlementEngine(world, registry, custody, ENGINE, config=config)
    custody.set_authorized(ADMIN, engine.address, True)

    quote = FixedRateVenue(world, QUOTE_VENUE)
    pool = ConstantProductVenue(world, POOL_VENUE, TOKEN_Y)
    for venue in (quote, pool):
        registry.set_whitelisted(ADMIN, venue.address, True)

    world.mint(quote.address, NATIVE_ASSET, 10 * WAD)
    world.mint(pool.address, NATIVE_ASSET, 5 * WAD)
    world.mint(pool.address, TOKEN_Y, 5_000)
    world.mint(CALLER, TOKEN_X, 1000)
    world.approve(CALLER, custody.address, TOKEN_X, 1000)
    return world, engine


def _print_balances(world: WorldState, label: str) -> None:
    native = world.balance_of(CALLER, NATIVE_ASSET)
    x = world.balance_of(CALLER, TOKEN_X)
    y = world.balance_of(CALLER, TOKEN_Y)
    print(f"[settle-demo] caller {label}: native={native} X={x} Y={y}")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Settle a demo batch against an in-memory world.")
    p.add_argument("--config", type=Path, default=None, help="Engine config YAML (default: $BATCHSETTLE_CONFIG)")
    p.add_argument("--payload", type=Path, default=None, help="Batch payload JSON (default: built-in demo batch)")
    p.add_argument("--dump-payload", action="store_true", help="Print the demo payload as JSON and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.dump_payload:
        print(json.dumps(_demo_payload(), indent=2, sort_keys=True))
        return 0

    try:
        payload = json.loads(args.payload.read_text(encoding="utf-8")) if args.payload else _demo_payload()
        envelope = parse_batch_payload(payload)
    except ValueError as exc:
        print(f"[settle-demo] FAIL [parse]: {exc}")
        return 1
    world, engine = _build_world(load_engine_config(args.config))

    print(f"[settle-demo] batch digest={envelope.digest}")
    _print_balances(world, "before")
    result = settle_payload(engine, payload)
    if not result.ok:
        print(f"[settle-demo] FAIL [{result.error_code}]: {result.error}")
        return 1

    for order in result.orders:
        print(
            f"[settle-demo] order {order.order_index} {order.direction.value}: "
            f"given={order.amount_given} obtained={order.amount_obtained} remaining={order.amount_remaining}"
        )
    _print_balances(world, "after")
    print(f"[settle-demo] OK: refund={result.native_refund}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
