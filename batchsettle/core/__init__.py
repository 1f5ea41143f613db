"""
Core settlement algorithms
"""

from .config import EngineConfig
from .engine import SettlementEngine
from .errors import (
    ArithmeticOverflow,
    ExcessiveFee,
    InsufficientAuthorization,
    InsufficientDeclaredLiquidity,
    InvariantViolation,
    RateViolation,
    ReentrancyViolation,
    SettlementError,
    StructuralMismatch,
    TransferFailure,
    UnauthorizedVenue,
    UnsolicitedTransfer,
    VenueFailure,
)
from .fill_executor import FillExecutor
from .ledger import EngineLedger
from .math import DEFAULT_MAX_FEE_RATE, MAX_UINT256, WAD
from .rates import RATE_CHECK_EXACT, RATE_CHECK_TRUNCATING, is_valid_rate
from .types import (
    BatchResult,
    Direction,
    ExchangeFill,
    ExchangeFillArrays,
    FillReceipt,
    OrderPhase,
    OrderSettlement,
    Signature,
    TokenOrder,
    TokenOrderArrays,
)

__all__ = [
    "EngineConfig",
    "SettlementEngine",
    "ArithmeticOverflow",
    "ExcessiveFee",
    "InsufficientAuthorization",
    "InsufficientDeclaredLiquidity",
    "InvariantViolation",
    "RateViolation",
    "ReentrancyViolation",
    "SettlementError",
    "StructuralMismatch",
    "TransferFailure",
    "UnauthorizedVenue",
    "UnsolicitedTransfer",
    "VenueFailure",
    "FillExecutor",
    "EngineLedger",
    "DEFAULT_MAX_FEE_RATE",
    "MAX_UINT256",
    "WAD",
    "RATE_CHECK_EXACT",
    "RATE_CHECK_TRUNCATING",
    "is_valid_rate",
    "BatchResult",
    "Direction",
    "ExchangeFill",
    "ExchangeFillArrays",
    "FillReceipt",
    "OrderPhase",
    "OrderSettlement",
    "Signature",
    "TokenOrder",
    "TokenOrderArrays",
]
