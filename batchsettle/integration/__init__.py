"""
Integration layer: wire-format parsing and configuration loading
"""

from .config import load_engine_config, load_yaml_overrides
from .operations import (
    BatchEnvelope,
    batch_digest,
    create_batch_payload,
    parse_batch_payload,
    settle_payload,
)

__all__ = [
    "load_engine_config",
    "load_yaml_overrides",
    "BatchEnvelope",
    "batch_digest",
    "create_batch_payload",
    "parse_batch_payload",
    "settle_payload",
]
