"""
Canonical forms for addresses, signature words and batch payloads.

Addresses are normalized once at the parsing boundary so every balance,
allowance and whitelist lookup compares lowercase 0x-prefixed hex. Payload
digests are sha256 over a domain tag plus canonical JSON, so equal batches
hash equal regardless of key order or whitespace.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

ADDRESS_NBYTES = 20
WORD_NBYTES = 32

DIGEST_PREFIX = b"batchsettle"

_HEX_RE = re.compile(r"[0-9a-fA-F]*")


def _walk_for_floats(value: Any, path: str = "$") -> None:
    if isinstance(value, float):
        raise TypeError(f"{path}: floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"{path}: object keys must be str, got {type(key).__name__}")
            _walk_for_floats(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _walk_for_floats(item, f"{path}[{i}]")


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys, no whitespace, no NaN and no floats."""
    _walk_for_floats(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode(
        "utf-8"
    )


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """`batchsettle:<label>:v<version>` followed by NUL, so tags never prefix each other."""
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if not label.isascii() or "\x00" in label or ":" in label:
        raise ValueError(f"label must be ASCII without ':' or NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"%s:%s:v%d\x00" % (DIGEST_PREFIX, label.encode("ascii"), version)


def payload_digest(label: str, value: Any, *, version: int = 1) -> str:
    return sha256_hex(domain_sep_bytes(label, version) + canonical_json_bytes(value))


def canonical_hex(value: str, *, nbytes: int, name: str) -> str:
    """Lowercase 0x-prefixed hex of exactly `nbytes` bytes; the 0x prefix is optional on input."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    digits = value.strip()
    if digits[:2] in ("0x", "0X"):
        digits = digits[2:]
    if len(digits) != 2 * nbytes:
        raise ValueError(f"{name} must be {nbytes} bytes (hex length {2 * nbytes}), got {len(digits)} hex chars")
    if not _HEX_RE.fullmatch(digits):
        raise ValueError(f"{name} must be valid hex")
    return "0x" + digits.lower()


def canonical_address(value: str, *, name: str = "address") -> str:
    return canonical_hex(value, nbytes=ADDRESS_NBYTES, name=name)


def canonical_word(value: str, *, name: str = "word") -> str:
    """A 32-byte value such as a signature's r or s."""
    return canonical_hex(value, nbytes=WORD_NBYTES, name=name)
