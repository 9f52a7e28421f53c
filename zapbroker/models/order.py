"""
Broker order model.

The server owns every order's lifecycle:

    created -> ready -> incoming -> confirmed -> exchange -> withdraw -> completed
       |          |
       +----------+--> expired / cancelled

The client only decodes the status it is given; it never computes a
transition. `none` is a client-local placeholder for orders not yet
loaded and is rejected if it ever appears on the wire.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from zapbroker.core.utils import to_decimal
from zapbroker.models.errors import DecodeError, require_mapping


class MarketSide(str, Enum):
    BID = "bid"
    ASK = "ask"

    @classmethod
    def parse(cls, text: str) -> "MarketSide":
        try:
            return cls(str(text).lower())
        except ValueError as exc:
            raise DecodeError(f"unknown market side {text!r}") from exc


class OrderStatus(str, Enum):
    NONE = "none"
    CREATED = "created"
    READY = "ready"
    INCOMING = "incoming"
    CONFIRMED = "confirmed"
    EXCHANGE = "exchange"
    WITHDRAW = "withdraw"
    COMPLETED = "completed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, text: Any) -> "OrderStatus":
        """Decode a server status name, case-insensitively."""
        if not isinstance(text, str):
            raise DecodeError(f"order status must be a string, got {type(text).__name__}")
        try:
            status = cls(text.lower())
        except ValueError as exc:
            raise DecodeError(f"unknown order status {text!r}") from exc
        if status is cls.NONE:
            raise DecodeError("order status 'none' is not a server status")
        return status

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.EXPIRED, OrderStatus.CANCELLED)

    @property
    def is_pending(self) -> bool:
        # awaiting user acceptance or payment
        return self in (OrderStatus.CREATED, OrderStatus.READY)


# fromisoformat on 3.10 only takes 3 or 6 fraction digits
_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


def _parse_datetime(value: Any, key: str) -> datetime:
    if not isinstance(value, str):
        raise DecodeError(f"{key} must be an ISO 8601 string")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise DecodeError(f"invalid {key} {value!r}") from exc


@dataclass(frozen=True)
class BrokerOrder:
    """
    Server-authoritative broker order snapshot, identified by `token`.

    Never patched field by field: a newer snapshot with the same token
    replaces the held one wholesale.
    """
    token: str
    date: datetime
    expiry: datetime
    market: str
    base_asset: str
    quote_asset: str
    base_amount: Decimal
    quote_amount: Decimal
    recipient: str
    status: OrderStatus
    payment_url: Optional[str] = None
    side: Optional[MarketSide] = None

    @classmethod
    def parse(cls, obj: Mapping[str, Any]) -> "BrokerOrder":
        obj = require_mapping(obj, "broker order")
        try:
            side = obj.get("side")
            return cls(
                token=obj["token"],
                date=_parse_datetime(obj["date"], "date"),
                expiry=_parse_datetime(obj["expiry"], "expiry"),
                market=obj["market"],
                base_asset=obj["base_asset"],
                quote_asset=obj["quote_asset"],
                base_amount=to_decimal(obj["base_amount_dec"]),
                quote_amount=to_decimal(obj["quote_amount_dec"]),
                recipient=obj["recipient"],
                status=OrderStatus.parse(obj["status"]),
                payment_url=obj.get("payment_url"),
                side=MarketSide.parse(side) if side is not None else None,
            )
        except DecodeError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise DecodeError(f"invalid broker order: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation, the inverse of parse()."""
        out: Dict[str, Any] = {
            "token": self.token,
            "date": self.date.isoformat(),
            "expiry": self.expiry.isoformat(),
            "market": self.market,
            "base_asset": self.base_asset,
            "quote_asset": self.quote_asset,
            "base_amount_dec": format(self.base_amount, "f"),
            "quote_amount_dec": format(self.quote_amount, "f"),
            "recipient": self.recipient,
            "status": self.status.value,
            "payment_url": self.payment_url,
        }
        if self.side is not None:
            out["side"] = self.side.value
        return out

    @classmethod
    def empty(cls) -> "BrokerOrder":
        now = datetime.now()
        return cls(
            token="",
            date=now,
            expiry=now,
            market="",
            base_asset="",
            quote_asset="",
            base_amount=Decimal(0),
            quote_amount=Decimal(0),
            recipient="",
            status=OrderStatus.NONE,
        )
