from __future__ import annotations

from dataclasses import replace

import pytest

from batchsettle.core.config import EngineConfig
from batchsettle.core.errors import InsufficientDeclaredLiquidity, StructuralMismatch
from batchsettle.core.preflight import (
    build_exchange_fills,
    build_token_orders,
    check_declared_liquidity,
    check_fill_grouping,
    validate_structure,
)
from batchsettle.core.types import Direction, ExchangeFillArrays, TokenOrder, TokenOrderArrays
from batchsettle.state import NATIVE_ASSET

TOKEN_X = "0x" + "58" * 20
TOKEN_Y = "0x" + "59" * 20
VENUE = "0x" + "a1" * 20
ZERO32 = "0x" + "00" * 32
CONFIG = EngineConfig()


def _one_fill(**overrides) -> ExchangeFillArrays:
    base = ExchangeFillArrays(
        token_addresses=(TOKEN_X,),
        handler_addresses=(VENUE,),
        address_params=((NATIVE_ASSET,) * 8,),
        value_params=((0,) * 6,),
        fee_rates=(0,),
        v=(27,),
        r=(ZERO32,),
        s=(ZERO32,),
    )
    return replace(base, **overrides)


def _one_order(**overrides) -> TokenOrderArrays:
    base = TokenOrderArrays(
        token_addresses=(TOKEN_X,),
        directions=(Direction.BUY,),
        amounts_to_obtain=(1,),
        amounts_to_give=(1,),
    )
    return replace(base, **overrides)


class TestTokenOrders:
    def test_addresses_are_canonicalized(self):
        (order,) = build_token_orders(_one_order(token_addresses=("AB" * 20,)), CONFIG)
        assert order.token_address == "0x" + "ab" * 20

    def test_native_asset_is_not_a_token(self):
        with pytest.raises(StructuralMismatch, match="not the native asset"):
            build_token_orders(_one_order(token_addresses=(NATIVE_ASSET,)), CONFIG)

    def test_direction_must_be_enum(self):
        with pytest.raises(StructuralMismatch, match="Direction"):
            build_token_orders(_one_order(directions=("BUY",)), CONFIG)

    @pytest.mark.parametrize("amount", [-1, 2**256, True, "1"])
    def test_amounts_must_be_uint256(self, amount):
        with pytest.raises(StructuralMismatch, match="uint256"):
            build_token_orders(_one_order(amounts_to_give=(amount,)), CONFIG)

    def test_batch_size_limit(self):
        config = EngineConfig(max_token_orders=1)
        orders = _one_order(
            token_addresses=(TOKEN_X, TOKEN_Y),
            directions=(Direction.BUY, Direction.BUY),
            amounts_to_obtain=(1, 1),
            amounts_to_give=(1, 1),
        )
        with pytest.raises(StructuralMismatch, match="too many token orders"):
            build_token_orders(orders, config)


class TestExchangeFills:
    def test_valid_fill(self):
        (fill,) = build_exchange_fills(_one_fill(r=("00" * 32,)), CONFIG)
        assert fill.signature.r == ZERO32
        assert fill.value_params == (0,) * 6

    def test_ragged_arrays(self):
        with pytest.raises(StructuralMismatch, match="differ in length"):
            build_exchange_fills(_one_fill(fee_rates=(0, 0)), CONFIG)

    def test_address_param_slot_count(self):
        with pytest.raises(StructuralMismatch, match="8 slots"):
            build_exchange_fills(_one_fill(address_params=((NATIVE_ASSET,) * 7,)), CONFIG)

    def test_value_param_slot_count(self):
        with pytest.raises(StructuralMismatch, match="6 slots"):
            build_exchange_fills(_one_fill(value_params=((0,) * 5,)), CONFIG)

    def test_v_must_be_uint8(self):
        with pytest.raises(StructuralMismatch, match="uint8"):
            build_exchange_fills(_one_fill(v=(256,)), CONFIG)

    def test_r_must_be_32_bytes(self):
        with pytest.raises(StructuralMismatch, match="32 bytes"):
            build_exchange_fills(_one_fill(r=("0x00",)), CONFIG)

    def test_handler_must_be_an_address(self):
        with pytest.raises(StructuralMismatch):
            build_exchange_fills(_one_fill(handler_addresses=("venue",)), CONFIG)


class TestGrouping:
    def _orders(self, *tokens):
        return tuple(TokenOrder(t, Direction.BUY, 1, 1) for t in tokens)

    def test_contiguous_runs(self):
        orders, fills = validate_structure(
            _one_order(
                token_addresses=(TOKEN_X, TOKEN_Y),
                directions=(Direction.BUY, Direction.SELL),
                amounts_to_obtain=(1, 1),
                amounts_to_give=(1, 1),
            ),
            _one_fill(
                token_addresses=(TOKEN_X, TOKEN_X, TOKEN_Y),
                handler_addresses=(VENUE,) * 3,
                address_params=((NATIVE_ASSET,) * 8,) * 3,
                value_params=((0,) * 6,) * 3,
                fee_rates=(0,) * 3,
                v=(27,) * 3,
                r=(ZERO32,) * 3,
                s=(ZERO32,) * 3,
            ),
            CONFIG,
        )
        assert [f.token_address for f in fills] == [TOKEN_X, TOKEN_X, TOKEN_Y]
        check_fill_grouping(orders, fills)

    def test_order_without_fills_is_allowed(self):
        (fill,) = build_exchange_fills(_one_fill(token_addresses=(TOKEN_Y,)), CONFIG)
        check_fill_grouping(self._orders(TOKEN_X, TOKEN_Y), (fill,))

    def test_out_of_order_fill_is_left_over(self):
        (fill,) = build_exchange_fills(_one_fill(), CONFIG)
        with pytest.raises(StructuralMismatch, match="exchange fill 0"):
            check_fill_grouping(self._orders(TOKEN_Y), (fill,))


class TestDeclaredLiquidity:
    def test_value_covers_buys(self):
        check_declared_liquidity([TokenOrder(TOKEN_X, Direction.BUY, 1, 10)], 10)

    def test_sell_proceeds_count_toward_buys(self):
        check_declared_liquidity(
            [
                TokenOrder(TOKEN_X, Direction.SELL, 7, 100),
                TokenOrder(TOKEN_Y, Direction.BUY, 1, 10),
            ],
            3,
        )

    def test_shortfall(self):
        with pytest.raises(InsufficientDeclaredLiquidity, match="9 < needed 10"):
            check_declared_liquidity(
                [
                    TokenOrder(TOKEN_X, Direction.SELL, 6, 100),
                    TokenOrder(TOKEN_Y, Direction.BUY, 1, 10),
                ],
                3,
            )
