"""
Canonical JSON serialization and hashing helpers.

Provides a single canonical JSON policy and SHA-256 helpers so a rendered
chart or a plot specification can be fingerprinted independently of key order.
Used to check that rendering is deterministic. Zero-IO, stdlib only.

Notes:
    - Canonical JSON:
        - sort_keys=True
        - separators=(",", ":")
        - ensure_ascii=False
    - Hashing is performed over the UTF-8 encoded canonical JSON string.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

__all__ = [
    "json_dumps_canonical",
    "hash_mapping",
]


def json_dumps_canonical(obj: Any) -> str:
    """
    Serialize an object to a canonical JSON string.

    Args:
        obj (Any): JSON-serializable object.

    Returns:
        str: Canonical JSON string with sort_keys=True, compact separators,
        and ensure_ascii=False.

    Notes:
        This function assumes the input is JSON-serializable and does not perform
        coercion of unsupported types.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _sha256_hexdigest(s: str) -> str:
    h = hashlib.sha256()
    h.update(s.encode("utf-8"))
    return h.hexdigest()


def hash_mapping(obj: Mapping[str, Any]) -> str:
    """
    Hash a mapping (a Vega-Lite dict, a dumped PlotSpec) by its canonical JSON.

    Examples:
        >>> from plotgram.core.hashing import hash_mapping
        >>> hash_mapping({"a": 1, "b": 2}) == hash_mapping({"b": 2, "a": 1})
        True
    """
    return _sha256_hexdigest(json_dumps_canonical(dict(obj)))
