"""Runtime configuration for the settlement engine."""

from __future__ import annotations

from dataclasses import dataclass

from .math import DEFAULT_MAX_FEE_RATE, WAD
from .rates import RATE_CHECKS, RATE_CHECK_EXACT


@dataclass(frozen=True)
class EngineConfig:
    # Fills with fee_rate >= max_fee_rate are rejected (WAD fixed point; 1% default).
    max_fee_rate: int = DEFAULT_MAX_FEE_RATE

    # "exact" (cross-multiplication) or "truncating" (integer quotients).
    rate_check: str = RATE_CHECK_EXACT

    # DoS limits, applied before any custody pull or venue call.
    max_token_orders: int = 64
    max_exchange_fills: int = 256

    # Value left at the engine address after settlement aborts the batch. Set to
    # False to only log and report it in BatchResult.residuals.
    strict_residuals: bool = True

    def __post_init__(self) -> None:
        for name in ("max_fee_rate", "max_token_orders", "max_exchange_fills"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v <= 0:
                raise ValueError(f"{name} must be positive: {v}")
        if self.max_fee_rate > WAD:
            raise ValueError(f"max_fee_rate must be <= {WAD}: {self.max_fee_rate}")
        if self.rate_check not in RATE_CHECKS:
            raise ValueError(f"unknown rate_check: {self.rate_check!r}")
        if not isinstance(self.strict_residuals, bool):
            raise TypeError("strict_residuals must be a bool")
