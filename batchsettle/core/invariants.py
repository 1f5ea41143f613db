"""Post-settlement accounting checks.

Each check compares the engine address's balances before the batch (before the
attached value arrived) with its balances after the final refund. The engine
must end holding exactly what it started with:

- a *deficit* in any asset means the batch paid out value it never received
  (a violation; the batch aborts);
- a *surplus* is residual value stranded at the engine, typically a venue that
  delivered more than it reported. Residuals abort the batch unless
  ``EngineConfig.strict_residuals`` is turned off, in which case they are
  only reported.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Tuple

from ..state.world import WorldState
from .ledger import EngineLedger


def engine_balances(world: WorldState, engine_address: str, assets: Iterable[str]) -> Dict[str, int]:
    return {asset: world.balance_of(engine_address, asset) for asset in sorted(set(assets))}


def inv_ledger_drained(ledger: EngineLedger) -> bool:
    return ledger.balance == 0


def check_engine_balances(
    before: Mapping[str, int],
    after: Mapping[str, int],
) -> Tuple[List[str], Dict[str, int]]:
    """Return (violations, residuals) keyed by asset."""
    violations: List[str] = []
    residuals: Dict[str, int] = {}
    for asset in sorted(set(before) | set(after)):
        delta = after.get(asset, 0) - before.get(asset, 0)
        if delta < 0:
            violations.append(f"engine_deficit:{asset}")
        elif delta > 0:
            residuals[asset] = delta
    return violations, residuals


def check_batch(
    *,
    ledger: EngineLedger,
    before: Mapping[str, int],
    after: Mapping[str, int],
) -> Tuple[List[str], Dict[str, int]]:
    violations, residuals = check_engine_balances(before, after)
    if not inv_ledger_drained(ledger):
        violations.insert(0, "ledger_not_drained")
    return violations, residuals
