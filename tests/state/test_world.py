from __future__ import annotations

import pytest

from batchsettle.state import NATIVE_ASSET, BalanceTable, WorldState

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
TOKEN = "0x" + "58" * 20


class TestBalanceTable:
    def test_zero_balances_are_dropped(self):
        table = BalanceTable()
        table.set(ALICE, TOKEN, 5)
        table.subtract(ALICE, TOKEN, 5)
        assert table.get_all_balances() == {}

    def test_negative_balance_rejected(self):
        table = BalanceTable()
        with pytest.raises(ValueError, match="Insufficient balance"):
            table.subtract(ALICE, TOKEN, 1)

    def test_copy_is_independent(self):
        table = BalanceTable()
        table.add(ALICE, TOKEN, 3)
        clone = table.copy()
        clone.add(ALICE, TOKEN, 1)
        assert table.get(ALICE, TOKEN) == 3
        assert clone.get(ALICE, TOKEN) == 4

    def test_total_supply(self):
        table = BalanceTable()
        table.add(ALICE, TOKEN, 3)
        table.add(BOB, TOKEN, 4)
        table.add(BOB, NATIVE_ASSET, 100)
        assert table.total_supply(TOKEN) == 7
        assert table.get_balances_for_asset(TOKEN) == {ALICE: 3, BOB: 4}


class TestTransfers:
    def test_insufficient_balance_returns_false(self):
        world = WorldState()
        world.mint(ALICE, TOKEN, 1)
        assert not world.transfer(TOKEN, ALICE, BOB, 2)
        assert world.balance_of(ALICE, TOKEN) == 1

    def test_zero_transfer_succeeds(self):
        assert WorldState().transfer(TOKEN, ALICE, BOB, 0)

    def test_negative_amount_is_an_error(self):
        with pytest.raises(ValueError):
            WorldState().transfer(TOKEN, ALICE, BOB, -1)

    def test_receive_hook_runs_on_bare_native_transfer(self):
        world = WorldState()
        seen = []
        world.deploy(BOB, object(), receive=lambda sender, amount: seen.append((sender, amount)))
        world.mint(ALICE, NATIVE_ASSET, 10)

        assert world.transfer(NATIVE_ASSET, ALICE, BOB, 4)
        assert world.transfer(NATIVE_ASSET, ALICE, BOB, 1, notify=False)
        assert seen == [(ALICE, 4)]

    def test_hook_failure_undoes_transfer(self):
        world = WorldState()

        def reject(sender, amount):
            raise RuntimeError("no thanks")

        world.deploy(BOB, object(), receive=reject)
        world.mint(ALICE, NATIVE_ASSET, 10)
        with pytest.raises(RuntimeError, match="no thanks"):
            world.transfer(NATIVE_ASSET, ALICE, BOB, 4)
        assert world.balance_of(ALICE, NATIVE_ASSET) == 10
        assert world.balance_of(BOB, NATIVE_ASSET) == 0

    def test_token_transfers_do_not_notify(self):
        world = WorldState()

        def reject(sender, amount):
            raise AssertionError("hook must not run for tokens")

        world.deploy(BOB, object(), receive=reject)
        world.mint(ALICE, TOKEN, 10)
        assert world.transfer(TOKEN, ALICE, BOB, 10)


class TestAllowances:
    def test_transfer_from_spends_allowance(self):
        world = WorldState()
        world.mint(ALICE, TOKEN, 10)
        world.approve(ALICE, BOB, TOKEN, 7)

        assert world.transfer_from(TOKEN, BOB, ALICE, BOB, 5)
        assert world.allowance(ALICE, BOB, TOKEN) == 2
        assert not world.transfer_from(TOKEN, BOB, ALICE, BOB, 3)

    def test_allowance_does_not_help_without_balance(self):
        world = WorldState()
        world.approve(ALICE, BOB, TOKEN, 7)
        assert not world.transfer_from(TOKEN, BOB, ALICE, BOB, 1)
        assert world.allowance(ALICE, BOB, TOKEN) == 7

    def test_native_has_no_allowances(self):
        world = WorldState()
        with pytest.raises(ValueError):
            world.approve(ALICE, BOB, NATIVE_ASSET, 1)
        assert not world.transfer_from(NATIVE_ASSET, BOB, ALICE, BOB, 1)


class TestSnapshots:
    def test_restore_discards_balance_and_allowance_changes(self):
        world = WorldState()
        world.mint(ALICE, TOKEN, 10)
        world.approve(ALICE, BOB, TOKEN, 10)
        snap = world.snapshot()

        world.transfer_from(TOKEN, BOB, ALICE, BOB, 6)
        world.mint(BOB, NATIVE_ASSET, 1)
        world.restore(snap)

        assert world.balance_of(ALICE, TOKEN) == 10
        assert world.balance_of(BOB, TOKEN) == 0
        assert world.balance_of(BOB, NATIVE_ASSET) == 0
        assert world.allowance(ALICE, BOB, TOKEN) == 10

    def test_snapshot_can_be_restored_twice(self):
        world = WorldState()
        world.mint(ALICE, TOKEN, 1)
        snap = world.snapshot()
        for _ in range(2):
            world.mint(ALICE, TOKEN, 1)
            world.restore(snap)
            assert world.balance_of(ALICE, TOKEN) == 1


class TestContracts:
    def test_deploy_twice_rejected(self):
        world = WorldState()
        world.deploy(BOB, object())
        with pytest.raises(ValueError, match="already has code"):
            world.deploy(BOB, object())

    def test_is_contract(self):
        world = WorldState()
        code = object()
        world.deploy(BOB, code)
        assert world.is_contract(BOB)
        assert world.contract_at(BOB) is code
        assert not world.is_contract(ALICE)
        assert world.contract_at(ALICE) is None
