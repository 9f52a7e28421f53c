"""
JSON utilities for request bodies and websocket payloads.

Backed by orjson. Request bodies are produced once as bytes with
`dumps_bytes` and those exact bytes are both signed and transmitted.

Usage:
    from zapbroker.core.json_utils import dumps, dumps_bytes, loads

    body = dumps_bytes({"api_key": key, "nonce": nonce})
"""

from __future__ import annotations

from typing import Any

import orjson

JSONDecodeError = orjson.JSONDecodeError


def dumps(obj: Any) -> str:
    """Compact JSON encode to string."""
    return orjson.dumps(obj).decode("utf-8")


def dumps_bytes(obj: Any) -> bytes:
    """Compact JSON encode to bytes."""
    return orjson.dumps(obj)


def loads(s: str | bytes) -> Any:
    """JSON decode. Raises JSONDecodeError (a ValueError) on bad input."""
    return orjson.loads(s)
