"""Exception types for the settlement engine.

Every batch-level failure is a ``SettlementError``; the engine restores the
world snapshot and re-raises (``execute_or_raise``) or converts the error into a
rejected ``BatchResult`` (``execute``). ``code`` is stable and safe to log.
"""

from __future__ import annotations


class SettlementError(Exception):
    """Base class for errors that abort a whole batch."""

    code = "settlement_error"


class StructuralMismatch(SettlementError):
    """Raised when batch arrays are inconsistent or malformed."""

    code = "structural_mismatch"


class InsufficientAuthorization(SettlementError):
    """Raised when a custody pull for a SELL order fails."""

    code = "insufficient_authorization"


class InsufficientDeclaredLiquidity(SettlementError):
    """Raised when declared proceeds plus attached value cannot cover BUY orders."""

    code = "insufficient_declared_liquidity"


class UnauthorizedVenue(SettlementError):
    """Raised when a fill targets a handler that is not whitelisted."""

    code = "unauthorized_venue"


class ExcessiveFee(SettlementError):
    """Raised when a fill's fee rate is at or above the configured ceiling."""

    code = "excessive_fee"


class RateViolation(SettlementError):
    """Raised when a token order's realized rate is worse than requested."""

    code = "rate_violation"

    def __init__(self, order_index: int, token: str, detail: str) -> None:
        self.order_index = order_index
        self.token = token
        super().__init__(f"token order {order_index} ({token}): {detail}")


class TransferFailure(SettlementError):
    """Raised when a token or native-currency transfer fails."""

    code = "transfer_failure"


class ArithmeticOverflow(SettlementError):
    """Raised when checked uint256 arithmetic leaves its domain."""

    code = "arithmetic_overflow"


class VenueFailure(SettlementError):
    """Raised when a venue handler raises or returns a malformed amount."""

    code = "venue_failure"


class ReentrancyViolation(SettlementError):
    """Raised when the engine is re-entered while a batch is in flight."""

    code = "reentrancy"


class UnsolicitedTransfer(SettlementError):
    """Raised when a non-contract account sends native currency to the engine."""

    code = "unsolicited_transfer"


class InvariantViolation(SettlementError):
    """Raised when post-settlement accounting invariants do not hold."""

    code = "invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
