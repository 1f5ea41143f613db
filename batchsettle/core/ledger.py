"""
Transient native-currency ledger for one batch.

The ledger starts at the attached value and is credited by SELL proceeds and
debited by BUY spend as each token order settles. Whatever is left when the
last order settles is refunded to the caller. It is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass

from .math import checked_add, checked_sub, require_uint256


@dataclass
class EngineLedger:
    balance: int = 0

    def __post_init__(self) -> None:
        require_uint256(self.balance, name="ledger balance")

    def credit(self, amount: int) -> None:
        self.balance = checked_add(self.balance, require_uint256(amount, name="credit"))

    def debit(self, amount: int) -> None:
        self.balance = checked_sub(self.balance, require_uint256(amount, name="debit"))
