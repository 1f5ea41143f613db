"""
Engine configuration loading.

Sources, later ones win:
1. `EngineConfig` defaults.
2. An optional YAML file (mapping of EngineConfig field names).
3. Environment overrides (`BATCHSETTLE_*`).

Unknown YAML keys are rejected so a typo cannot silently fall back to a default.
"""

from __future__ import annotations

import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..core.config import EngineConfig
from ..core.math import WAD

logger = logging.getLogger(__name__)

ENV_PREFIX = "BATCHSETTLE_"
ENV_CONFIG_PATH = "BATCHSETTLE_CONFIG"

_FIELD_NAMES = tuple(f.name for f in fields(EngineConfig))


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        logger.warning("ignoring non-integer %s=%r", name, raw)
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def _bool_env(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return bool(default)
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def load_yaml_overrides(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ValueError(f"{p}: engine config must be a mapping, got {type(obj).__name__}")
    unknown = sorted(set(obj) - set(_FIELD_NAMES))
    if unknown:
        raise ValueError(f"{p}: unknown engine config keys: {unknown}")
    return dict(obj)


def load_engine_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Build an EngineConfig from defaults, an optional YAML file and the environment.

    If `path` is None, `$BATCHSETTLE_CONFIG` is used when set.
    """
    values: Dict[str, Any] = {name: getattr(EngineConfig(), name) for name in _FIELD_NAMES}

    if path is None:
        env_path = os.environ.get(ENV_CONFIG_PATH, "").strip()
        path = env_path or None
    if path is not None:
        values.update(load_yaml_overrides(path))
        logger.info("loaded engine config from %s", path)

    values["max_fee_rate"] = _env_int(ENV_PREFIX + "MAX_FEE_RATE", values["max_fee_rate"], lo=1, hi=WAD)
    values["rate_check"] = _env_str(ENV_PREFIX + "RATE_CHECK", values["rate_check"])
    values["max_token_orders"] = _env_int(
        ENV_PREFIX + "MAX_TOKEN_ORDERS", values["max_token_orders"], lo=1, hi=10_000,
    )
    values["max_exchange_fills"] = _env_int(
        ENV_PREFIX + "MAX_EXCHANGE_FILLS", values["max_exchange_fills"], lo=1, hi=100_000,
    )
    values["strict_residuals"] = _bool_env(ENV_PREFIX + "STRICT_RESIDUALS", default=values["strict_residuals"])

    return EngineConfig(**values)
