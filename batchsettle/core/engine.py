"""Settlement engine: the token-order loop.

``execute_or_raise()`` is the entry point. For one batch it:

1. Takes a world snapshot and receives the attached native value.
2. Runs preflight (structure, SELL custody pulls, declared liquidity).
3. For each token order, drives the fill executor over the run of consecutive
   fills that share the order's token, then validates the realized rate.
4. Settles each order against the transient ledger:
   BUY debits the ledger by the native given and sends the tokens obtained;
   SELL credits the ledger by the native obtained and returns unsold tokens.
5. Refunds any positive ledger balance to the caller and checks the engine's
   own balances are unchanged.

Any failure restores the snapshot, so an aborted batch has no observable
effect. ``execute()`` is the non-raising variant returning a ``BatchResult``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..state.balances import NATIVE_ASSET
from ..state.canonical import canonical_address
from ..state.registry import HandlerRegistry
from ..state.world import WorldState
from .config import EngineConfig
from .errors import (
    InvariantViolation,
    RateViolation,
    ReentrancyViolation,
    SettlementError,
    StructuralMismatch,
    TransferFailure,
    UnsolicitedTransfer,
)
from .fill_executor import FillExecutor
from .invariants import check_batch, engine_balances
from .ledger import EngineLedger
from .math import checked_add, checked_sub, is_uint256
from .preflight import preflight, validate_structure
from .rates import is_valid_rate
from .types import (
    Batch,
    BatchResult,
    Direction,
    ExchangeFillArrays,
    FillReceipt,
    OrderPhase,
    OrderProgress,
    OrderSettlement,
    TokenOrderArrays,
)

logger = logging.getLogger(__name__)


class SettlementEngine:
    def __init__(
        self,
        world: WorldState,
        registry: HandlerRegistry,
        custody,
        address: str,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.world = world
        self.registry = registry
        self.custody = custody
        self.address = canonical_address(address, name="engine address")
        self.config = config or EngineConfig()
        self._in_flight = False
        world.deploy(self.address, self, receive=self.receive)

    # -- bare-transfer guard --------------------------------------------------

    def receive(self, sender: str, amount: int) -> None:
        """Accept bare native transfers only from contracts (venues paying out)."""
        if not self.world.is_contract(sender):
            raise UnsolicitedTransfer(f"native transfer of {amount} from non-contract {sender} rejected")

    # -- entry points ---------------------------------------------------------

    def execute(
        self,
        caller: str,
        token_orders: TokenOrderArrays,
        exchange_fills: ExchangeFillArrays,
        value: int = 0,
    ) -> BatchResult:
        """Like ``execute_or_raise()`` but returns a rejected ``BatchResult`` on failure."""
        try:
            return self.execute_or_raise(caller, token_orders, exchange_fills, value)
        except SettlementError as exc:
            return BatchResult(ok=False, error=str(exc), error_code=exc.code)
        except Exception as exc:
            return BatchResult(ok=False, error=f"{type(exc).__name__}: {exc}", error_code="internal")

    def execute_or_raise(
        self,
        caller: str,
        token_orders: TokenOrderArrays,
        exchange_fills: ExchangeFillArrays,
        value: int = 0,
    ) -> BatchResult:
        """Execute one batch atomically.

        Raises:
            SettlementError: any batch failure; the world is left unchanged.
        """
        if self._in_flight:
            raise ReentrancyViolation("settlement engine re-entered during a batch")
        try:
            caller = canonical_address(caller, name="caller")
        except (TypeError, ValueError) as exc:
            raise StructuralMismatch(str(exc)) from exc
        if not is_uint256(value):
            raise StructuralMismatch(f"value must be a uint256, got {value!r}")

        self._in_flight = True
        snap = self.world.snapshot()
        try:
            result = self._run(caller, token_orders, exchange_fills, value)
        except Exception as exc:
            self.world.restore(snap)
            code = exc.code if isinstance(exc, SettlementError) else "internal"
            logger.warning("batch from %s aborted [%s]: %s", caller, code, exc)
            raise
        finally:
            self._in_flight = False
        return result

    # -- batch ----------------------------------------------------------------

    def _run(
        self,
        caller: str,
        token_orders: TokenOrderArrays,
        exchange_fills: ExchangeFillArrays,
        value: int,
    ) -> BatchResult:
        orders, fills = validate_structure(token_orders, exchange_fills, self.config)
        tracked_assets = {NATIVE_ASSET} | {o.token_address for o in orders}
        before = engine_balances(self.world, self.address, tracked_assets)

        if not self.world.transfer(NATIVE_ASSET, caller, self.address, value, notify=False):
            raise TransferFailure(f"caller {caller} cannot attach {value} native")

        batch = preflight(
            custody=self.custody,
            engine_address=self.address,
            caller=caller,
            orders=orders,
            fills=fills,
            value=value,
        )
        logger.info(
            "batch start caller=%s orders=%d fills=%d value=%d",
            caller, len(batch.token_orders), len(batch.exchange_fills), value,
        )

        ledger = EngineLedger(balance=value)
        executor = FillExecutor(self.world, self.registry, self.config, self.address)
        receipts: List[FillReceipt] = []
        settlements: List[OrderSettlement] = []

        fill_index = 0
        for i, order in enumerate(batch.token_orders):
            progress = OrderProgress(index=i, order=order)
            progress.phase = OrderPhase.FILLING
            while (
                fill_index < len(batch.exchange_fills)
                and batch.exchange_fills[fill_index].token_address == order.token_address
            ):
                receipt = executor.execute(fill_index, progress, batch.exchange_fills[fill_index])
                receipts.append(receipt)
                self._apply_receipt(progress, receipt)
                fill_index += 1

            progress.phase = OrderPhase.VALIDATING
            self._validate_rate(progress)
            settlements.append(self._settle_order(batch, progress, ledger))

        if fill_index != len(batch.exchange_fills):
            raise StructuralMismatch(f"{len(batch.exchange_fills) - fill_index} exchange fills were not consumed")

        refund = ledger.balance
        if refund > 0:
            self._send(NATIVE_ASSET, caller, refund, what="native refund")
            ledger.debit(refund)

        after = engine_balances(self.world, self.address, tracked_assets)
        violations, residuals = check_batch(ledger=ledger, before=before, after=after)
        if residuals:
            logger.warning("batch left residual balances at engine: %s", residuals)
            if self.config.strict_residuals:
                violations.extend(f"residual:{asset}" for asset in residuals)
        if violations:
            raise InvariantViolation(violations)

        logger.info("batch settled caller=%s orders=%d refund=%d", caller, len(settlements), refund)
        return BatchResult(
            ok=True,
            orders=tuple(settlements),
            fills=tuple(receipts),
            native_refund=refund,
            residuals=residuals,
        )

    @staticmethod
    def _apply_receipt(progress: OrderProgress, receipt: FillReceipt) -> None:
        if receipt.obtained == 0:
            return
        progress.remaining = checked_sub(progress.remaining, receipt.amount_to_fill)
        progress.obtained = checked_add(progress.obtained, receipt.obtained)

    def _validate_rate(self, progress: OrderProgress) -> None:
        order = progress.order
        if not is_valid_rate(
            progress.obtained,
            progress.given,
            order.amount_to_obtain,
            order.amount_to_give,
            mode=self.config.rate_check,
        ):
            raise RateViolation(
                progress.index,
                order.token_address,
                f"obtained {progress.obtained} for {progress.given}, "
                f"requested {order.amount_to_obtain} for {order.amount_to_give}",
            )

    def _settle_order(self, batch: Batch, progress: OrderProgress, ledger: EngineLedger) -> OrderSettlement:
        order = progress.order
        if order.direction is Direction.BUY:
            ledger.debit(progress.given)
            if progress.obtained > 0:
                self._send(order.token_address, batch.caller, progress.obtained, what="token delivery")
        else:
            ledger.credit(progress.obtained)
            if progress.remaining > 0:
                self._send(order.token_address, batch.caller, progress.remaining, what="unsold token return")
        progress.phase = OrderPhase.SETTLED

        logger.info(
            "order %d %s %s settled given=%d obtained=%d remaining=%d",
            progress.index, order.direction.value, order.token_address,
            progress.given, progress.obtained, progress.remaining,
        )
        return OrderSettlement(
            order_index=progress.index,
            token_address=order.token_address,
            direction=order.direction,
            amount_given=progress.given,
            amount_obtained=progress.obtained,
            amount_remaining=progress.remaining,
            phase=progress.phase,
        )

    def _send(self, asset: str, recipient: str, amount: int, *, what: str) -> None:
        try:
            ok = self.world.transfer(asset, self.address, recipient, amount)
        except SettlementError:
            raise
        except Exception as exc:
            raise TransferFailure(f"{what} of {amount} to {recipient} failed: {exc}") from exc
        if not ok:
            raise TransferFailure(f"{what} of {amount} {asset} to {recipient} failed")
