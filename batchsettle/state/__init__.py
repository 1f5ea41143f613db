"""
State for the batch settlement engine
"""

from .balances import NATIVE_ASSET, BalanceTable
from .registry import AdminAuthorizationError, HandlerRegistry
from .world import WorldSnapshot, WorldState

__all__ = [
    "AdminAuthorizationError",
    "NATIVE_ASSET",
    "BalanceTable",
    "HandlerRegistry",
    "WorldSnapshot",
    "WorldState",
]
