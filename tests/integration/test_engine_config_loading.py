from __future__ import annotations

import pytest

from batchsettle.core.math import WAD
from batchsettle.integration.config import load_engine_config, load_yaml_overrides

_ENV_VARS = (
    "BATCHSETTLE_CONFIG",
    "BATCHSETTLE_MAX_FEE_RATE",
    "BATCHSETTLE_RATE_CHECK",
    "BATCHSETTLE_MAX_TOKEN_ORDERS",
    "BATCHSETTLE_MAX_EXCHANGE_FILLS",
    "BATCHSETTLE_STRICT_RESIDUALS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_file_or_env() -> None:
    config = load_engine_config()
    assert config.max_fee_rate == WAD // 100
    assert config.rate_check == "exact"
    assert config.max_token_orders == 64


def test_yaml_file(tmp_path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("rate_check: truncating\nmax_exchange_fills: 16\nstrict_residuals: false\n", encoding="utf-8")

    config = load_engine_config(path)

    assert config.rate_check == "truncating"
    assert config.max_exchange_fills == 16
    assert config.strict_residuals is False


def test_config_path_from_env(tmp_path, monkeypatch) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("max_token_orders: 3\n", encoding="utf-8")
    monkeypatch.setenv("BATCHSETTLE_CONFIG", str(path))

    assert load_engine_config().max_token_orders == 3


def test_env_overrides_yaml(tmp_path, monkeypatch) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("max_fee_rate: 1000\nstrict_residuals: true\n", encoding="utf-8")
    monkeypatch.setenv("BATCHSETTLE_MAX_FEE_RATE", "2000")
    monkeypatch.setenv("BATCHSETTLE_STRICT_RESIDUALS", "off")

    config = load_engine_config(path)

    assert config.max_fee_rate == 2000
    assert config.strict_residuals is False


def test_env_ints_are_clamped(monkeypatch) -> None:
    monkeypatch.setenv("BATCHSETTLE_MAX_FEE_RATE", str(10 * WAD))
    monkeypatch.setenv("BATCHSETTLE_MAX_TOKEN_ORDERS", "0")

    config = load_engine_config()

    assert config.max_fee_rate == WAD
    assert config.max_token_orders == 1


def test_unparseable_env_falls_back(monkeypatch) -> None:
    monkeypatch.setenv("BATCHSETTLE_MAX_EXCHANGE_FILLS", "lots")
    monkeypatch.setenv("BATCHSETTLE_STRICT_RESIDUALS", "maybe")

    config = load_engine_config()

    assert config.max_exchange_fills == 256
    assert config.strict_residuals is True


def test_unknown_rate_check_from_env_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("BATCHSETTLE_RATE_CHECK", "fuzzy")
    with pytest.raises(ValueError, match="unknown rate_check"):
        load_engine_config()


def test_unknown_yaml_key(tmp_path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("max_fee_bps: 30\n", encoding="utf-8")
    with pytest.raises(ValueError, match="unknown engine config keys"):
        load_yaml_overrides(path)


def test_non_mapping_yaml(tmp_path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must be a mapping"):
        load_yaml_overrides(path)


def test_empty_yaml(tmp_path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("", encoding="utf-8")
    assert load_yaml_overrides(path) == {}
