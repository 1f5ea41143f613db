"""
Wire format for batch submissions.

A batch payload is a JSON-compatible object:

    {
      "caller": "0x...",
      "value": 1000000000000000000,
      "token_orders": {
        "token_addresses": [...], "directions": ["BUY" | "SELL", ...],
        "amounts_to_obtain": [...], "amounts_to_give": [...]
      },
      "exchange_fills": {
        "token_addresses": [...], "handler_addresses": [...],
        "address_params": [[8 addresses], ...], "value_params": [[6 ints], ...],
        "fee_rates": [...], "v": [...], "r": [...], "s": [...]
      }
    }

Parsing checks types only. Array-length consistency is left to preflight so
that a malformed batch fails with the same StructuralMismatch whether it came
from the wire or from Python callers.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ..core.engine import SettlementEngine
from ..core.errors import SettlementError
from ..core.types import BatchResult, Direction, ExchangeFillArrays, TokenOrderArrays
from ..state.canonical import payload_digest

logger = logging.getLogger(__name__)

MAX_ARRAY_LEN = 100_000


def _require_str(value: Any, *, name: str, max_len: int = 256) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str, non_negative: bool = True) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an int")
    if non_negative and value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


def _require_list(value: Any, *, name: str) -> List[Any]:
    if not isinstance(value, list):
        raise ValueError(f"{name} must be a list, got {type(value).__name__}")
    if len(value) > MAX_ARRAY_LEN:
        raise ValueError(f"{name} too large")
    return value


def _require_mapping(value: Any, *, name: str) -> Mapping:
    if not isinstance(value, Mapping):
        raise ValueError(f"{name} must be an object")
    return value


def _str_column(obj: Mapping, key: str, *, prefix: str) -> Tuple[str, ...]:
    col = _require_list(obj.get(key, []), name=f"{prefix}.{key}")
    return tuple(_require_str(x, name=f"{prefix}.{key}[{i}]") for i, x in enumerate(col))


def _int_column(obj: Mapping, key: str, *, prefix: str) -> Tuple[int, ...]:
    col = _require_list(obj.get(key, []), name=f"{prefix}.{key}")
    return tuple(_require_int(x, name=f"{prefix}.{key}[{i}]") for i, x in enumerate(col))


def _parse_direction(value: Any, *, name: str) -> Direction:
    s = _require_str(value, name=name, max_len=8)
    try:
        return Direction(s.upper())
    except ValueError as exc:
        raise ValueError(f"{name} must be BUY or SELL, got {value!r}") from exc


def parse_token_orders(obj: Any) -> TokenOrderArrays:
    obj = _require_mapping(obj, name="token_orders")
    directions = _require_list(obj.get("directions", []), name="token_orders.directions")
    return TokenOrderArrays(
        token_addresses=_str_column(obj, "token_addresses", prefix="token_orders"),
        directions=tuple(
            _parse_direction(d, name=f"token_orders.directions[{i}]") for i, d in enumerate(directions)
        ),
        amounts_to_obtain=_int_column(obj, "amounts_to_obtain", prefix="token_orders"),
        amounts_to_give=_int_column(obj, "amounts_to_give", prefix="token_orders"),
    )


def parse_exchange_fills(obj: Any) -> ExchangeFillArrays:
    obj = _require_mapping(obj, name="exchange_fills")
    address_params = _require_list(obj.get("address_params", []), name="exchange_fills.address_params")
    value_params = _require_list(obj.get("value_params", []), name="exchange_fills.value_params")
    return ExchangeFillArrays(
        token_addresses=_str_column(obj, "token_addresses", prefix="exchange_fills"),
        handler_addresses=_str_column(obj, "handler_addresses", prefix="exchange_fills"),
        address_params=tuple(
            tuple(
                _require_str(a, name=f"exchange_fills.address_params[{i}][{j}]")
                for j, a in enumerate(_require_list(row, name=f"exchange_fills.address_params[{i}]"))
            )
            for i, row in enumerate(address_params)
        ),
        value_params=tuple(
            tuple(
                _require_int(x, name=f"exchange_fills.value_params[{i}][{j}]")
                for j, x in enumerate(_require_list(row, name=f"exchange_fills.value_params[{i}]"))
            )
            for i, row in enumerate(value_params)
        ),
        fee_rates=_int_column(obj, "fee_rates", prefix="exchange_fills"),
        v=_int_column(obj, "v", prefix="exchange_fills"),
        r=_str_column(obj, "r", prefix="exchange_fills"),
        s=_str_column(obj, "s", prefix="exchange_fills"),
    )


@dataclass(frozen=True)
class BatchEnvelope:
    caller: str
    value: int
    token_orders: TokenOrderArrays
    exchange_fills: ExchangeFillArrays
    digest: str


def batch_digest(payload: Mapping[str, Any]) -> str:
    """Domain-separated sha256 of the canonical JSON payload."""
    return payload_digest("batch", dict(payload))


def parse_batch_payload(payload: Any) -> BatchEnvelope:
    """
    Parse a batch payload.

    Raises:
        ValueError: If the payload structure or any field type is invalid
    """
    payload = _require_mapping(payload, name="payload")
    unknown = sorted(set(payload) - {"caller", "value", "token_orders", "exchange_fills"})
    if unknown:
        raise ValueError(f"unknown payload keys: {unknown}")
    try:
        digest = batch_digest(payload)
    except TypeError as exc:
        raise ValueError(f"payload is not canonically encodable: {exc}") from exc
    return BatchEnvelope(
        caller=_require_str(payload.get("caller"), name="caller"),
        value=_require_int(payload.get("value", 0), name="value"),
        token_orders=parse_token_orders(payload.get("token_orders", {})),
        exchange_fills=parse_exchange_fills(payload.get("exchange_fills", {})),
        digest=digest,
    )


def create_batch_payload(
    caller: str,
    value: int,
    token_orders: TokenOrderArrays,
    exchange_fills: ExchangeFillArrays,
) -> Dict[str, Any]:
    """Inverse of `parse_batch_payload` (minus the digest)."""
    return {
        "caller": caller,
        "value": int(value),
        "token_orders": {
            "token_addresses": list(token_orders.token_addresses),
            "directions": [d.value for d in token_orders.directions],
            "amounts_to_obtain": list(token_orders.amounts_to_obtain),
            "amounts_to_give": list(token_orders.amounts_to_give),
        },
        "exchange_fills": {
            "token_addresses": list(exchange_fills.token_addresses),
            "handler_addresses": list(exchange_fills.handler_addresses),
            "address_params": [list(row) for row in exchange_fills.address_params],
            "value_params": [list(row) for row in exchange_fills.value_params],
            "fee_rates": list(exchange_fills.fee_rates),
            "v": list(exchange_fills.v),
            "r": list(exchange_fills.r),
            "s": list(exchange_fills.s),
        },
    }


def settle_payload(engine: SettlementEngine, payload: Any) -> BatchResult:
    """Parse and execute a wire batch. Never raises for malformed or failing batches."""
    try:
        envelope = parse_batch_payload(payload)
    except ValueError as exc:
        logger.warning("rejected malformed batch payload: %s", exc)
        return BatchResult(ok=False, error=str(exc), error_code="parse")

    try:
        result = engine.execute_or_raise(
            envelope.caller, envelope.token_orders, envelope.exchange_fills, envelope.value,
        )
    except SettlementError as exc:
        logger.warning("batch %s aborted [%s]", envelope.digest, exc.code)
        return BatchResult(ok=False, error=str(exc), error_code=exc.code)

    logger.info("batch %s settled", envelope.digest)
    return result
