"""
Tests for domain model decoding.
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tests.conftest import order_payload
from zapbroker.models.errors import ApiError, DecodeError, ErrorType
from zapbroker.models.market import Asset, Market, Orderbook
from zapbroker.models.order import BrokerOrder, MarketSide, OrderStatus
from zapbroker.models.user import Permission, Role, UserInfo


class TestOrderStatus:

    @pytest.mark.parametrize("name", [
        "created", "ready", "incoming", "confirmed", "exchange",
        "withdraw", "completed", "expired", "cancelled",
    ])
    def test_known_statuses(self, name):
        assert OrderStatus.parse(name).value == name

    def test_case_insensitive(self):
        assert OrderStatus.parse("CONFIRMED") is OrderStatus.CONFIRMED
        assert OrderStatus.parse("Ready") is OrderStatus.READY

    def test_unknown_status_fails(self):
        with pytest.raises(DecodeError):
            OrderStatus.parse("settled")

    def test_none_is_not_a_wire_status(self):
        with pytest.raises(DecodeError):
            OrderStatus.parse("none")

    def test_non_string_fails(self):
        with pytest.raises(DecodeError):
            OrderStatus.parse(3)

    def test_terminal_and_pending(self):
        assert OrderStatus.COMPLETED.is_terminal
        assert OrderStatus.CANCELLED.is_terminal
        assert not OrderStatus.EXCHANGE.is_terminal
        assert OrderStatus.CREATED.is_pending
        assert not OrderStatus.INCOMING.is_pending


class TestBrokerOrder:

    def test_parse(self):
        order = BrokerOrder.parse(order_payload("tok1", "READY", payment_url="https://pay/1", side="bid"))
        assert order.token == "tok1"
        assert order.status is OrderStatus.READY
        assert order.base_amount == Decimal("0.01")
        assert order.quote_amount == Decimal("1050.25")
        assert order.date == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        assert order.payment_url == "https://pay/1"
        assert order.side is MarketSide.BID

    def test_parse_zulu_timestamp(self):
        order = BrokerOrder.parse(order_payload("tok1", date="2024-03-01T10:00:00Z"))
        assert order.date.tzinfo is not None

    @pytest.mark.parametrize("stamp,micros", [
        ("2024-03-01T10:00:00.5Z", 500000),
        ("2024-03-01T10:00:00.12345+00:00", 123450),
        ("2024-03-01T10:00:00.123456789Z", 123456),
        ("2024-03-01T10:00:00.250Z", 250000),
    ])
    def test_fraction_widths(self, stamp, micros):
        order = BrokerOrder.parse(order_payload("tok1", date=stamp))
        assert order.date.microsecond == micros
        assert order.date.tzinfo is not None

    @pytest.mark.parametrize("obj", [None, [1, 2], "tok1", 3])
    def test_non_object_fails(self, obj):
        with pytest.raises(DecodeError):
            BrokerOrder.parse(obj)

    def test_missing_field_fails(self):
        payload = order_payload("tok1")
        del payload["recipient"]
        with pytest.raises(DecodeError):
            BrokerOrder.parse(payload)

    def test_float_amount_rejected(self):
        with pytest.raises(DecodeError):
            BrokerOrder.parse(order_payload("tok1", base_amount_dec=0.1))

    def test_unknown_status_fails(self):
        with pytest.raises(DecodeError):
            BrokerOrder.parse(order_payload("tok1", "pending"))

    def test_to_dict_keeps_small_amounts_plain(self):
        order = BrokerOrder.parse(order_payload("tok1", base_amount_dec="0.00000001"))
        wire = order.to_dict()
        assert wire["base_amount_dec"] == "0.00000001"
        assert BrokerOrder.parse(wire) == order

    def test_empty_placeholder(self):
        order = BrokerOrder.empty()
        assert order.token == ""
        assert order.status is OrderStatus.NONE


class TestUserInfo:

    BASE = {
        "email": "a@example.com",
        "photo": None,
        "photo_type": None,
        "roles": ["admin"],
        "kyc_validated": True,
        "kyc_url": None,
    }

    def test_parse_without_permissions_is_absent(self):
        info = UserInfo.parse(self.BASE)
        assert info.permissions is None
        assert info.roles == frozenset({Role.ADMIN})

    def test_parse_empty_permissions_is_empty(self):
        info = UserInfo.parse({**self.BASE, "permissions": []})
        assert info.permissions == frozenset()

    @pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
    def test_kyc_validated_must_be_boolean(self, value):
        with pytest.raises(DecodeError):
            UserInfo.parse({**self.BASE, "kyc_validated": value})

    def test_kyc_validated_missing_fails(self):
        payload = {k: v for k, v in self.BASE.items() if k != "kyc_validated"}
        with pytest.raises(DecodeError):
            UserInfo.parse(payload)

    @pytest.mark.parametrize("obj", [None, ["a"], "a@example.com"])
    def test_non_object_fails(self, obj):
        with pytest.raises(DecodeError):
            UserInfo.parse(obj)

    def test_unknown_permission_fails(self):
        with pytest.raises(DecodeError):
            UserInfo.parse({**self.BASE, "permissions": ["teleport"]})

    def test_merge_keeps_permissions_when_omitted(self):
        existing = UserInfo.parse({**self.BASE, "permissions": ["receive", "balance"]})
        update = UserInfo.parse({**self.BASE, "kyc_validated": False})
        merged = existing.merge(update)
        assert merged.permissions == frozenset({Permission.RECEIVE, Permission.BALANCE})
        assert merged.kyc_validated is False

    def test_merge_replaces_permissions_when_present(self):
        existing = UserInfo.parse({**self.BASE, "permissions": ["receive", "balance"]})
        update = UserInfo.parse({**self.BASE, "permissions": []})
        assert existing.merge(update).permissions == frozenset()


class TestApiError:

    def test_auth_json_message(self):
        err = ApiError.auth('{"message":"bad nonce"}')
        assert err.type is ErrorType.AUTH
        assert err.msg == "bad nonce"

    def test_auth_raw_text(self):
        err = ApiError.auth("oops")
        assert err.type is ErrorType.AUTH
        assert err.msg == "oops"

    def test_auth_json_without_message_uses_raw_text(self):
        assert ApiError.auth('{"error":"x"}').msg == '{"error":"x"}'

    def test_none_and_network(self):
        assert ApiError.none().ok
        assert not ApiError.network().ok
        assert ApiError.network().msg == "network error"


class TestMarketData:

    def test_orderbook_decimal_fidelity(self):
        book = Orderbook.parse({
            "order_book": {
                "bids": [{"quantity": "0.00000001", "rate": "65000.5"}],
                "asks": [{"quantity": "0.00000002", "rate": "65100"}],
            },
            "min_order": "0.0001",
            "base_asset_withdraw_fee": "0.0005",
            "quote_asset_withdraw_fee": "2",
            "broker_fee": "0.01",
        })
        bid, ask = book.bids[0], book.asks[0]
        assert bid.quantity == Decimal("0.00000001")
        assert bid.quantity < ask.quantity
        assert ask.quantity - bid.quantity == Decimal("0.00000001")
        assert book.broker_fee == Decimal("0.01")

    def test_orderbook_rejects_floats(self):
        with pytest.raises(DecodeError):
            Orderbook.parse({
                "order_book": {"bids": [{"quantity": 0.1, "rate": "1"}], "asks": []},
                "min_order": "0", "base_asset_withdraw_fee": "0",
                "quote_asset_withdraw_fee": "0", "broker_fee": "0",
            })

    def test_empty_orderbook(self):
        book = Orderbook.empty()
        assert book.bids == [] and book.asks == []
        assert book.min_order == Decimal(0)

    def test_assets_and_markets(self):
        assets = Asset.parse_list({"assets": [{
            "symbol": "BTC", "name": "Bitcoin", "coin_type": "btc", "status": "ok",
            "min_confs": 2, "message": "", "decimals": 8,
        }]})
        markets = Market.parse_list({"markets": [{
            "symbol": "BTC-NZD", "base_symbol": "BTC", "quote_symbol": "NZD", "precision": 2,
            "status": "ok", "min_trade": "0.0001", "message": "",
        }]})
        assert assets[0].decimals == 8
        assert markets[0].min_trade == Decimal("0.0001")

    def test_market_side(self):
        assert MarketSide.parse("ASK") is MarketSide.ASK
        with pytest.raises(DecodeError):
            MarketSide.parse("buy")
