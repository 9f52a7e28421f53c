"""
Operation results: a payload paired with an ApiError.

On failure the payload is a placeholder (None, empty list, empty
orderbook or an empty order with status `none`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from zapbroker.models.errors import ApiError
from zapbroker.models.market import Asset, Market, Orderbook
from zapbroker.models.order import BrokerOrder
from zapbroker.models.user import ApiKey, UserInfo


@dataclass(frozen=True)
class UserInfoResult:
    info: Optional[UserInfo]
    error: ApiError


@dataclass(frozen=True)
class ApiKeyResult:
    apikey: Optional[ApiKey]
    error: ApiError


@dataclass(frozen=True)
class ApiKeyRequestResult:
    token: Optional[str]
    error: ApiError


@dataclass(frozen=True)
class KycRequestResult:
    kyc_url: Optional[str]
    error: ApiError


@dataclass(frozen=True)
class AssetsResult:
    assets: List[Asset]
    error: ApiError


@dataclass(frozen=True)
class MarketsResult:
    markets: List[Market]
    error: ApiError


@dataclass(frozen=True)
class OrderbookResult:
    orderbook: Orderbook
    error: ApiError


@dataclass(frozen=True)
class BrokerOrderResult:
    order: BrokerOrder
    error: ApiError


@dataclass(frozen=True)
class BrokerOrdersResult:
    orders: List[BrokerOrder] = field(default_factory=list)
    error: ApiError = field(default_factory=ApiError.none)
