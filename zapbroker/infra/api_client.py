"""
Async REST client for the broker API.

Every operation is an HTTP POST of a JSON body to `<base>apiv1/<operation>`.
Authenticated operations add the API key and a fresh nonce to the body and
sign the exact body bytes into the X-Signature header.

Operations never raise for transport or server failures. They return a
result whose `error` is:
    - none     HTTP 200 and the payload decoded
    - auth     HTTP 400; message from the JSON `message` field, else raw text
    - network  no endpoint configured, connection/timeout/TLS failure,
               any other status, or a 200 payload that failed to decode
The one exception is MissingCredentialsError, raised when an authenticated
operation is called before credentials were stored.
"""

from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from zapbroker.config.credentials import CredentialStore
from zapbroker.config.endpoints import EndpointResolver
from zapbroker.core.json_utils import dumps_bytes, loads
from zapbroker.infra.logging_cfg import DEBUG, WARNING, log_event
from zapbroker.infra.nonce import NonceGenerator
from zapbroker.infra.signing import build_signed_request
from zapbroker.models.errors import ApiError, DecodeError, ErrorType, MissingCredentialsError
from zapbroker.models.market import Asset, Market, Orderbook
from zapbroker.models.order import BrokerOrder, MarketSide
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
from zapbroker.models.user import AccountRegistration, ApiKey, UserInfo
from zapbroker.monitoring.metrics import ClientMetrics

log = logging.getLogger("zapbroker")

Decoder = Callable[[Any], Any]

# Failures below the HTTP layer that all map to a network error
_TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError, TypeError)


def _broker_order(obj: Any) -> BrokerOrder:
    return BrokerOrder.parse(obj["broker_order"])


def _broker_orders(obj: Any) -> list:
    return [BrokerOrder.parse(item) for item in obj["broker_orders"]]


class ApiClient:
    def __init__(
        self,
        endpoints: EndpointResolver,
        credentials: CredentialStore,
        nonce: Optional[NonceGenerator] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[ClientMetrics] = None,
    ) -> None:
        self.endpoints = endpoints
        self.credentials = credentials
        self.nonce = nonce or NonceGenerator()
        self.metrics = metrics
        # If a shared client is passed in, we won't close it in close(); otherwise we own the client.
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(http2=True, timeout=timeout)
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def server(self) -> Optional[str]:
        """Base URL of the selected network, or None if unconfigured."""
        return self.endpoints.base_url()

    # -------------------------------------------------------------------------
    # Account (unauthenticated)
    # -------------------------------------------------------------------------

    async def user_register(self, reg: AccountRegistration) -> ApiError:
        _, err = await self._post("user_register", reg.to_payload(), signed=False)
        return err

    async def api_key_create(self, email: str, password: str, device_name: str) -> ApiKeyResult:
        apikey, err = await self._post(
            "api_key_create",
            {"email": email, "password": password, "device_name": device_name},
            decode=ApiKey.parse,
            signed=False,
        )
        return ApiKeyResult(apikey, err)

    async def api_key_request(self, email: str, device_name: str) -> ApiKeyRequestResult:
        """Start the email-confirmed key flow; the returned token is later claimed."""
        token, err = await self._post(
            "api_key_request",
            {"email": email, "device_name": device_name},
            decode=lambda obj: obj["token"],
            signed=False,
        )
        return ApiKeyRequestResult(token, err)

    async def api_key_claim(self, token: str) -> ApiKeyResult:
        apikey, err = await self._post("api_key_claim", {"token": token}, decode=ApiKey.parse, signed=False)
        return ApiKeyResult(apikey, err)

    # -------------------------------------------------------------------------
    # User
    # -------------------------------------------------------------------------

    async def user_info(self, email: Optional[str] = None) -> UserInfoResult:
        info, err = await self._post("user_info", {"email": email}, decode=UserInfo.parse)
        return UserInfoResult(info, err)

    async def user_reset_password(self) -> ApiError:
        _, err = await self._post("user_reset_password", {})
        return err

    async def user_update_email(self, email: str) -> ApiError:
        _, err = await self._post("user_update_email", {"email": email})
        return err

    async def user_update_password(self, current_password: str, new_password: str) -> ApiError:
        _, err = await self._post(
            "user_update_password",
            {"current_password": current_password, "new_password": new_password},
        )
        return err

    async def user_update_photo(self, photo: Optional[str], photo_type: Optional[str]) -> ApiError:
        _, err = await self._post("user_update_photo", {"photo": photo, "photo_type": photo_type})
        return err

    async def kyc_request_create(self) -> KycRequestResult:
        kyc_url, err = await self._post("user_kyc_request_create", {}, decode=lambda obj: obj["kyc_url"])
        return KycRequestResult(kyc_url, err)

    # -------------------------------------------------------------------------
    # Market data
    # -------------------------------------------------------------------------

    async def assets(self) -> AssetsResult:
        assets, err = await self._post("assets", {}, decode=Asset.parse_list)
        return AssetsResult(assets if err.ok else [], err)

    async def markets(self) -> MarketsResult:
        markets, err = await self._post("markets", {}, decode=Market.parse_list)
        return MarketsResult(markets if err.ok else [], err)

    async def orderbook(self, symbol: str) -> OrderbookResult:
        book, err = await self._post("order_book", {"symbol": symbol}, decode=Orderbook.parse)
        return OrderbookResult(book if err.ok else Orderbook.empty(), err)

    # -------------------------------------------------------------------------
    # Broker orders
    # -------------------------------------------------------------------------

    async def order_create(
        self,
        market: str,
        side: MarketSide,
        amount: Decimal,
        recipient: str,
    ) -> BrokerOrderResult:
        fields = {
            "market": market,
            "side": MarketSide(side).value,
            "amount_dec": format(amount, "f"),
            "recipient": recipient,
        }
        return await self._order_call("broker_order_create", fields)

    async def order_accept(self, token: str) -> BrokerOrderResult:
        return await self._order_call("broker_order_accept", {"token": token})

    async def order_status(self, token: str) -> BrokerOrderResult:
        return await self._order_call("broker_order_status", {"token": token})

    async def order_list(self, offset: int, limit: int) -> BrokerOrdersResult:
        orders, err = await self._post(
            "broker_orders",
            {"offset": offset, "limit": limit},
            decode=_broker_orders,
        )
        return BrokerOrdersResult(orders if err.ok else [], err)

    async def _order_call(self, operation: str, fields: Dict[str, Any]) -> BrokerOrderResult:
        order, err = await self._post(operation, fields, decode=_broker_order)
        return BrokerOrderResult(order if err.ok else BrokerOrder.empty(), err)

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _require_credentials(self) -> ApiKey:
        apikey = self.credentials.get()
        if apikey is None:
            raise MissingCredentialsError("API key and secret must be stored before calling authenticated operations")
        return apikey

    def _build_body(self, fields: Dict[str, Any], signed: bool) -> Tuple[bytes, Dict[str, str]]:
        headers = {"Content-Type": "application/json"}
        if not signed:
            return dumps_bytes(fields), headers
        apikey = self._require_credentials()
        payload = {"api_key": apikey.token, "nonce": self.nonce.next_nonce(), **fields}
        request = build_signed_request(apikey.secret, payload)
        headers.update(request.headers)
        return request.body, headers

    async def _post(
        self,
        operation: str,
        fields: Dict[str, Any],
        decode: Optional[Decoder] = None,
        signed: bool = True,
    ) -> Tuple[Any, ApiError]:
        base_url = self.endpoints.base_url()
        if base_url is None:
            log_event(log, "http_network_error", level=WARNING, operation=operation, error="no server configured")
            return self._finish(operation, None, ApiError.network(), None)

        body, headers = self._build_body(fields, signed)
        started = time.monotonic()
        try:
            resp = await self.client.post(base_url + operation, content=body, headers=headers)
        except _TRANSPORT_ERRORS as exc:
            log_event(
                log,
                "http_network_error",
                level=WARNING,
                operation=operation,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return self._finish(operation, None, ApiError.network(), started)

        log_event(log, "api_request", level=DEBUG, operation=operation, status=resp.status_code)

        if resp.status_code == 200:
            if decode is None:
                return self._finish(operation, None, ApiError.none(), started)
            try:
                value = decode(loads(resp.content))
            except (DecodeError, ValueError, KeyError, TypeError, AttributeError) as exc:
                log_event(
                    log,
                    "response_decode_error",
                    level=WARNING,
                    operation=operation,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                return self._finish(operation, None, ApiError.network(), started)
            return self._finish(operation, value, ApiError.none(), started)

        if resp.status_code == 400:
            err = ApiError.auth(resp.text)
            log_event(log, "api_auth_error", level=WARNING, operation=operation, message=err.msg)
            return self._finish(operation, None, err, started)

        log_event(log, "http_unexpected_status", level=WARNING, operation=operation, status=resp.status_code)
        return self._finish(operation, None, ApiError.network(), started)

    def _finish(self, operation: str, value: Any, err: ApiError, started: Optional[float]) -> Tuple[Any, ApiError]:
        if self.metrics is not None:
            outcome = {ErrorType.NONE: "ok", ErrorType.AUTH: "auth", ErrorType.NETWORK: "network"}[err.type]
            self.metrics.api_requests.labels(operation=operation, outcome=outcome).inc()
            if started is not None:
                self.metrics.api_latency_ms.labels(operation=operation).observe((time.monotonic() - started) * 1000)
        return value, err
