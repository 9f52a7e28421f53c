"""
Utility helpers.
"""

from __future__ import annotations

import time
from decimal import Decimal, InvalidOperation
from typing import Any


def now_ms() -> int:
    return int(time.time() * 1000)


def to_decimal(value: Any) -> Decimal:
    """
    Parse an exact decimal from its wire representation.

    Only strings and ints are accepted; binary floats would already have
    lost precision by the time they reach us.
    """
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueError(f"expected decimal string, got {type(value).__name__}")
    try:
        dec = Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"invalid decimal {value!r}") from exc
    if not dec.is_finite():
        raise ValueError(f"non-finite decimal {value!r}")
    return dec
