"""Data types for the settlement engine.

Requests (token orders, exchange fills, the struct-of-arrays wire bundles) are
frozen dataclasses. The only mutable record is ``OrderProgress``, owned by the
token-order loop for the lifetime of one batch.

Units/conventions:
- amounts are unsigned integers in the smallest unit of their asset.
- ``fee_rate`` is 18-decimal fixed point (``WAD = 10**18`` is 100%).
- BUY orders give native currency and obtain tokens; SELL orders give tokens
  and obtain native currency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Dict, Optional, Tuple

ADDRESS_PARAM_SLOTS = 8
VALUE_PARAM_SLOTS = 6


@unique
class Direction(Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def is_sell(self) -> bool:
        return self is Direction.SELL


@unique
class OrderPhase(Enum):
    PENDING = "PENDING"
    FILLING = "FILLING"
    VALIDATING = "VALIDATING"
    SETTLED = "SETTLED"


@dataclass(frozen=True)
class Signature:
    """Detached venue-order signature; opaque to the engine."""

    v: int
    r: str
    s: str


@dataclass(frozen=True)
class TokenOrder:
    token_address: str
    direction: Direction
    amount_to_obtain: int
    amount_to_give: int


@dataclass(frozen=True)
class ExchangeFill:
    token_address: str
    handler_address: str
    address_params: Tuple[str, ...]
    value_params: Tuple[int, ...]
    fee_rate: int
    signature: Signature


@dataclass(frozen=True)
class TokenOrderArrays:
    """Struct-of-arrays bundle of token orders as submitted by the caller."""

    token_addresses: Tuple[str, ...] = ()
    directions: Tuple[Direction, ...] = ()
    amounts_to_obtain: Tuple[int, ...] = ()
    amounts_to_give: Tuple[int, ...] = ()


@dataclass(frozen=True)
class ExchangeFillArrays:
    """Struct-of-arrays bundle of exchange fills as submitted by the caller."""

    token_addresses: Tuple[str, ...] = ()
    handler_addresses: Tuple[str, ...] = ()
    address_params: Tuple[Tuple[str, ...], ...] = ()
    value_params: Tuple[Tuple[int, ...], ...] = ()
    fee_rates: Tuple[int, ...] = ()
    v: Tuple[int, ...] = ()
    r: Tuple[str, ...] = ()
    s: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Batch:
    """Preflighted batch: record lists plus the attached native value."""

    caller: str
    token_orders: Tuple[TokenOrder, ...]
    exchange_fills: Tuple[ExchangeFill, ...]
    value: int


@dataclass
class OrderProgress:
    """Running counters of one token order during the fill loop."""

    index: int
    order: TokenOrder
    remaining: int = field(init=False)
    obtained: int = 0
    phase: OrderPhase = OrderPhase.PENDING

    def __post_init__(self) -> None:
        self.remaining = self.order.amount_to_give

    @property
    def given(self) -> int:
        return self.order.amount_to_give - self.remaining


@dataclass(frozen=True)
class FillReceipt:
    """Outcome of one fill. ``skipped`` is set when nothing was attempted or obtained."""

    fill_index: int
    order_index: int
    handler_address: str
    remaining_before: int
    available: int
    amount_to_fill: int
    obtained: int
    skipped: Optional[str] = None

    @property
    def filled(self) -> int:
        """Amount deducted from the order's remaining balance."""
        return 0 if self.obtained == 0 else self.amount_to_fill


@dataclass(frozen=True)
class OrderSettlement:
    order_index: int
    token_address: str
    direction: Direction
    amount_given: int
    amount_obtained: int
    amount_remaining: int
    phase: OrderPhase = OrderPhase.SETTLED


@dataclass(frozen=True)
class BatchResult:
    """Result of one batch execution."""

    ok: bool
    orders: Tuple[OrderSettlement, ...] = ()
    fills: Tuple[FillReceipt, ...] = ()
    native_refund: int = 0
    residuals: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None
    error_code: Optional[str] = None
