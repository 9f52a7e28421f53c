"""
Pytest configuration and shared fixtures.
"""

from typing import Any, Callable, Dict, List

import httpx
import pytest

from zapbroker.config.credentials import MemoryCredentialStore
from zapbroker.config.endpoints import EndpointResolver
from zapbroker.infra.api_client import ApiClient
from zapbroker.infra.nonce import NonceGenerator
from zapbroker.models.order import BrokerOrder
from zapbroker.models.user import ApiKey

SERVER = "https://broker.example.test/"
API_TOKEN = "key-token"
API_SECRET = "key-secret"


def order_payload(token: str, status: str = "created", **overrides: Any) -> Dict[str, Any]:
    payload = {
        "token": token,
        "date": "2024-03-01T10:00:00+00:00",
        "expiry": "2024-03-01T10:15:00+00:00",
        "market": "BTC-NZD",
        "base_asset": "BTC",
        "quote_asset": "NZD",
        "base_amount_dec": "0.01",
        "quote_amount_dec": "1050.25",
        "recipient": "bc1qrecipient",
        "status": status,
        "payment_url": None,
    }
    payload.update(overrides)
    return payload


def make_order(token: str, status: str = "created", **overrides: Any) -> BrokerOrder:
    return BrokerOrder.parse(order_payload(token, status, **overrides))


class Recorder:
    """MockTransport handler that records requests and replays a canned response."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self.responder = responder
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


@pytest.fixture
def credentials():
    return MemoryCredentialStore(ApiKey(API_TOKEN, API_SECRET))


@pytest.fixture
def endpoints():
    return EndpointResolver(SERVER, "https://testnet.example.test/")


@pytest.fixture
def make_client(endpoints, credentials):
    """Build an ApiClient whose HTTP traffic goes to `responder`."""

    def factory(responder, **kwargs):
        recorder = Recorder(responder)
        http = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        kwargs.setdefault("nonce", NonceGenerator())
        client = ApiClient(endpoints, kwargs.pop("credentials", credentials), client=http, **kwargs)
        return client, recorder

    return factory
