"""
Domain models package.

Typed, immutable representations of server payloads with their parse
contracts, and the result/error types returned by the API client.
"""

from zapbroker.models.errors import (
    ApiError,
    DecodeError,
    ErrorType,
    MissingCredentialsError,
)
from zapbroker.models.market import Asset, Market, Orderbook, Rate
from zapbroker.models.order import BrokerOrder, MarketSide, OrderStatus
from zapbroker.models.results import (
    ApiKeyRequestResult,
    ApiKeyResult,
    AssetsResult,
    BrokerOrderResult,
    BrokerOrdersResult,
    KycRequestResult,
    MarketsResult,
    OrderbookResult,
    UserInfoResult,
)
from zapbroker.models.user import AccountRegistration, ApiKey, Permission, Role, UserInfo

__all__ = [
    "AccountRegistration",
    "ApiError",
    "ApiKey",
    "ApiKeyRequestResult",
    "ApiKeyResult",
    "Asset",
    "AssetsResult",
    "BrokerOrder",
    "BrokerOrderResult",
    "BrokerOrdersResult",
    "DecodeError",
    "ErrorType",
    "KycRequestResult",
    "Market",
    "MarketSide",
    "MarketsResult",
    "MissingCredentialsError",
    "Orderbook",
    "OrderbookResult",
    "OrderStatus",
    "Permission",
    "Rate",
    "Role",
    "UserInfo",
    "UserInfoResult",
]
