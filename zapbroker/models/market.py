"""
Market data models: assets, markets and orderbooks.

All amounts are Decimal, parsed from their string wire form.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Mapping

from zapbroker.core.utils import to_decimal
from zapbroker.models.errors import DecodeError, require_mapping


def _decimal(obj: Mapping[str, Any], key: str) -> Decimal:
    try:
        return to_decimal(obj[key])
    except ValueError as exc:
        raise DecodeError(f"{key}: {exc}") from exc


@dataclass(frozen=True)
class Asset:
    symbol: str
    name: str
    coin_type: str
    status: str
    min_confs: int
    message: str
    decimals: int

    @classmethod
    def parse(cls, item: Mapping[str, Any]) -> "Asset":
        try:
            return cls(
                symbol=item["symbol"],
                name=item["name"],
                coin_type=item["coin_type"],
                status=item["status"],
                min_confs=int(item["min_confs"]),
                message=item["message"],
                decimals=int(item["decimals"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(f"invalid asset: {exc}") from exc

    @classmethod
    def parse_list(cls, obj: Mapping[str, Any]) -> List["Asset"]:
        try:
            items = obj["assets"]
        except (KeyError, TypeError) as exc:
            raise DecodeError("missing assets") from exc
        return [cls.parse(item) for item in items]


@dataclass(frozen=True)
class Market:
    symbol: str
    base_symbol: str
    quote_symbol: str
    precision: int
    status: str
    min_trade: Decimal
    message: str

    @classmethod
    def parse(cls, item: Mapping[str, Any]) -> "Market":
        try:
            return cls(
                symbol=item["symbol"],
                base_symbol=item["base_symbol"],
                quote_symbol=item["quote_symbol"],
                precision=int(item["precision"]),
                status=item["status"],
                min_trade=_decimal(item, "min_trade"),
                message=item["message"],
            )
        except (KeyError, TypeError, ValueError) as exc:
            if isinstance(exc, DecodeError):
                raise
            raise DecodeError(f"invalid market: {exc}") from exc

    @classmethod
    def parse_list(cls, obj: Mapping[str, Any]) -> List["Market"]:
        try:
            items = obj["markets"]
        except (KeyError, TypeError) as exc:
            raise DecodeError("missing markets") from exc
        return [cls.parse(item) for item in items]


@dataclass(frozen=True)
class Rate:
    quantity: Decimal
    rate: Decimal

    @classmethod
    def parse(cls, item: Mapping[str, Any]) -> "Rate":
        item = require_mapping(item, "rate")
        return cls(quantity=_decimal(item, "quantity"), rate=_decimal(item, "rate"))


@dataclass(frozen=True)
class Orderbook:
    bids: List[Rate] = field(default_factory=list)
    asks: List[Rate] = field(default_factory=list)
    min_order: Decimal = Decimal(0)
    base_asset_withdraw_fee: Decimal = Decimal(0)
    quote_asset_withdraw_fee: Decimal = Decimal(0)
    broker_fee: Decimal = Decimal(0)

    @classmethod
    def empty(cls) -> "Orderbook":
        return cls()

    @classmethod
    def parse(cls, obj: Mapping[str, Any]) -> "Orderbook":
        try:
            book = obj["order_book"]
            return cls(
                bids=[Rate.parse(item) for item in book["bids"]],
                asks=[Rate.parse(item) for item in book["asks"]],
                min_order=_decimal(obj, "min_order"),
                base_asset_withdraw_fee=_decimal(obj, "base_asset_withdraw_fee"),
                quote_asset_withdraw_fee=_decimal(obj, "quote_asset_withdraw_fee"),
                broker_fee=_decimal(obj, "broker_fee"),
            )
        except (KeyError, TypeError) as exc:
            raise DecodeError(f"invalid orderbook: {exc}") from exc
