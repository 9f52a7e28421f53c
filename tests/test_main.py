"""
Tests for the command-line entry point.
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tests.conftest import make_order
from zapbroker.config.config import Settings
from zapbroker.main import _emit, build_parser, run, to_jsonable
from zapbroker.models.errors import ApiError
from zapbroker.models.user import Permission, Role, UserInfo


def settings(**overrides):
    base = dict(
        testnet=False, server_mainnet="https://main.test/", server_testnet=None,
        api_key=None, api_secret=None, device_name="t", http_timeout=1.0,
        log_level="INFO", log_file=None,
    )
    base.update(overrides)
    return Settings(**base)


class TestToJsonable:

    def test_order(self):
        out = to_jsonable(make_order("1", "ready", base_amount_dec="0.00000001"))
        assert out["status"] == "ready"
        assert out["base_amount"] == "0.00000001"
        assert out["date"] == datetime(2024, 3, 1, 10, tzinfo=timezone.utc).isoformat()

    def test_sets_sorted(self):
        info = UserInfo("a@x", None, None, frozenset({Permission.TRANSFER, Permission.BALANCE}),
                        frozenset({Role.ADMIN}), True, None)
        out = to_jsonable(info)
        assert out["permissions"] == ["balance", "transfer"]
        assert to_jsonable([Decimal("1.50")]) == ["1.50"]


class TestParser:

    def test_commands(self):
        args = build_parser().parse_args(["orders", "--offset", "5", "--limit", "3"])
        assert (args.command, args.offset, args.limit) == ("orders", 5, 3)
        args = build_parser().parse_args(["--testnet", "accept", "tok"])
        assert args.testnet and args.token == "tok"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestRun:

    @pytest.mark.asyncio
    async def test_server(self, capsys):
        code = await run(build_parser().parse_args(["server"]), settings())
        assert code == 0
        assert capsys.readouterr().out.strip() == "https://main.test/apiv1/"

    @pytest.mark.asyncio
    async def test_server_unconfigured_testnet(self, capsys):
        code = await run(build_parser().parse_args(["--testnet", "server"]), settings())
        assert code == 1


class TestEmit:

    def test_error_message_printed_verbatim(self, capsys):
        assert _emit(None, ApiError.auth('{"message":"insufficient balance"}')) == 1
        captured = capsys.readouterr()
        assert captured.err == "insufficient balance\n"
        assert captured.out == ""

    def test_payload_printed_as_json(self, capsys):
        assert _emit([Decimal("0.00000001")], ApiError.none()) == 0
        assert capsys.readouterr().out.strip() == '["0.00000001"]'
