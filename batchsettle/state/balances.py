"""
Per-account, per-asset holdings.

Every asset (each token and the native currency) lives in one sparse table
keyed by `(account, asset)`. A missing key reads as zero and a balance that
drops to zero is removed, so two tables with equal holdings compare equal.
"""

from typing import Dict, Tuple

Address = str  # lowercase 0x-prefixed 20-byte hex
AssetId = str  # token contract address, or NATIVE_ASSET
Amount = int  # non-negative; callers bound it to uint256

# The native currency is addressed as the zero address.
NATIVE_ASSET = "0x" + "00" * 20

Key = Tuple[Address, AssetId]


class BalanceTable:
    def __init__(self) -> None:
        self._holdings: Dict[Key, Amount] = {}

    def get(self, account: Address, asset: AssetId) -> Amount:
        return self._holdings.get((account, asset), 0)

    def set(self, account: Address, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"negative balance for {account} in {asset}: {amount}")
        key = (account, asset)
        if amount:
            self._holdings[key] = amount
        else:
            self._holdings.pop(key, None)

    def add(self, account: Address, asset: AssetId, delta: Amount) -> None:
        """Apply a signed delta. Raises ValueError if the balance would go negative."""
        held = self.get(account, asset)
        if held + delta < 0:
            raise ValueError(f"Insufficient balance: {account} holds {held} of {asset}, delta {delta}")
        self.set(account, asset, held + delta)

    def subtract(self, account: Address, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"subtract amount must be non-negative: {amount}")
        self.add(account, asset, -amount)

    def total_supply(self, asset: AssetId) -> Amount:
        return sum(amount for (_, held_asset), amount in self._holdings.items() if held_asset == asset)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Address, Amount]:
        return {account: amount for (account, held_asset), amount in self._holdings.items() if held_asset == asset}

    def get_all_balances(self) -> Dict[Key, Amount]:
        return dict(self._holdings)

    def copy(self) -> "BalanceTable":
        clone = BalanceTable()
        clone._holdings = dict(self._holdings)
        return clone

    def __len__(self) -> int:
        return len(self._holdings)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self)} holdings)"
