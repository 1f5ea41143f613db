"""
In-memory world state: balances, allowances and deployed contracts.

This is the substrate that gives a batch its all-or-nothing semantics. The
engine takes a `snapshot()` before touching anything and `restore()`s it on
failure, so every balance and allowance mutation made by the engine, the
custody proxy or a venue handler during the batch is discarded together.

Deployed contract objects (venues, proxy, engine) are code, not state: they are
not part of a snapshot and must keep their mutable state in this object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from .balances import Address, Amount, AssetId, BalanceTable, NATIVE_ASSET


ReceiveHook = Callable[[Address, Amount], None]

AllowanceKey = Tuple[Address, Address, AssetId]  # (owner, spender, token)


@dataclass(frozen=True)
class WorldSnapshot:
    balances: BalanceTable
    allowances: Dict[AllowanceKey, Amount]


def _require_amount(amount: Amount, *, name: str = "amount") -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"{name} must be an int")
    if amount < 0:
        raise ValueError(f"{name} must be non-negative: {amount}")


class WorldState:
    """Accounts, token balances, allowances and the contracts deployed at addresses."""

    def __init__(self) -> None:
        self.balances = BalanceTable()
        self._allowances: Dict[AllowanceKey, Amount] = {}
        self._contracts: Dict[Address, Any] = {}
        self._receive_hooks: Dict[Address, ReceiveHook] = {}

    # -- contracts ------------------------------------------------------------

    def deploy(self, address: Address, contract: Any, *, receive: Optional[ReceiveHook] = None) -> None:
        if address in self._contracts:
            raise ValueError(f"address already has code: {address}")
        if address == NATIVE_ASSET:
            raise ValueError("cannot deploy at the zero address")
        self._contracts[address] = contract
        if receive is not None:
            self._receive_hooks[address] = receive

    def contract_at(self, address: Address) -> Optional[Any]:
        return self._contracts.get(address)

    def is_contract(self, address: Address) -> bool:
        """True iff `address` has deployed code (non-zero code size)."""
        return address in self._contracts

    # -- balances -------------------------------------------------------------

    def balance_of(self, account: Address, asset: AssetId) -> Amount:
        return self.balances.get(account, asset)

    def mint(self, account: Address, asset: AssetId, amount: Amount) -> None:
        _require_amount(amount)
        self.balances.add(account, asset, amount)

    def transfer(
        self,
        asset: AssetId,
        sender: Address,
        recipient: Address,
        amount: Amount,
        *,
        notify: bool = True,
    ) -> bool:
        """
        Move `amount` of `asset` from `sender` to `recipient`.

        Returns False when the sender's balance is insufficient. A bare native
        transfer (`notify=True`) into an address with a receive hook runs the hook
        after crediting; if the hook raises, the transfer is undone and the
        exception propagates. Value attached to a call passes `notify=False`.
        """
        _require_amount(amount)
        if self.balances.get(sender, asset) < amount:
            return False
        if amount == 0:
            return True
        self.balances.subtract(sender, asset, amount)
        self.balances.add(recipient, asset, amount)

        if asset == NATIVE_ASSET and notify:
            hook = self._receive_hooks.get(recipient)
            if hook is not None:
                try:
                    hook(sender, amount)
                except Exception:
                    self.balances.subtract(recipient, asset, amount)
                    self.balances.add(sender, asset, amount)
                    raise
        return True

    # -- allowances -----------------------------------------------------------

    def approve(self, owner: Address, spender: Address, token: AssetId, amount: Amount) -> None:
        _require_amount(amount)
        if token == NATIVE_ASSET:
            raise ValueError("native currency has no allowances")
        if amount == 0:
            self._allowances.pop((owner, spender, token), None)
        else:
            self._allowances[(owner, spender, token)] = amount

    def allowance(self, owner: Address, spender: Address, token: AssetId) -> Amount:
        return self._allowances.get((owner, spender, token), 0)

    def transfer_from(
        self,
        token: AssetId,
        spender: Address,
        owner: Address,
        recipient: Address,
        amount: Amount,
    ) -> bool:
        """Spend `owner`'s allowance granted to `spender`. Returns False on any shortfall."""
        _require_amount(amount)
        if token == NATIVE_ASSET:
            return False
        granted = self.allowance(owner, spender, token)
        if granted < amount:
            return False
        if not self.transfer(token, owner, recipient, amount):
            return False
        self.approve(owner, spender, token, granted - amount)
        return True

    # -- atomicity ------------------------------------------------------------

    def snapshot(self) -> WorldSnapshot:
        return WorldSnapshot(balances=self.balances.copy(), allowances=dict(self._allowances))

    def restore(self, snap: WorldSnapshot) -> None:
        self.balances = snap.balances.copy()
        self._allowances = dict(snap.allowances)

    def __repr__(self) -> str:
        return f"WorldState({self.balances!r}, {len(self._contracts)} contracts)"
