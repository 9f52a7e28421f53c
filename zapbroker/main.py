"""
Command-line entry point.

    zapbroker markets
    zapbroker orderbook BTC-NZD
    zapbroker orders --limit 20
    zapbroker accept <token>

Prints the result payload as JSON. On error prints the server message
verbatim to stderr and exits 1.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from zapbroker.config.config import Settings
from zapbroker.config.credentials import MemoryCredentialStore
from zapbroker.config.endpoints import EndpointResolver
from zapbroker.core.json_utils import dumps
from zapbroker.infra.api_client import ApiClient
from zapbroker.infra.logging_cfg import build_logger
from zapbroker.models.errors import ApiError, MissingCredentialsError


def to_jsonable(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return format(obj, "f")
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (frozenset, set)):
        return sorted(to_jsonable(v) for v in obj)
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    return obj


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="zapbroker", description="Broker API client")
    parser.add_argument("--testnet", action="store_true", default=None, help="use the testnet server")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("server", help="print the resolved API base URL")
    sub.add_parser("assets", help="list assets")
    sub.add_parser("markets", help="list markets")
    sub.add_parser("user-info", help="show the account's user info")
    sub.add_parser("kyc", help="create a KYC request and print its URL")

    p = sub.add_parser("orderbook", help="show the orderbook for a market")
    p.add_argument("symbol")

    p = sub.add_parser("orders", help="list broker orders")
    p.add_argument("--offset", type=int, default=0)
    p.add_argument("--limit", type=int, default=20)

    p = sub.add_parser("order", help="show a broker order")
    p.add_argument("token")

    p = sub.add_parser("accept", help="accept a created broker order")
    p.add_argument("token")
    return parser


async def run(args: argparse.Namespace, cfg: Settings) -> int:
    endpoints = EndpointResolver.from_settings(cfg)
    if args.testnet:
        endpoints.use_testnet = True
    client = ApiClient(endpoints, MemoryCredentialStore.from_settings(cfg), timeout=cfg.http_timeout)

    async with client:
        if args.command == "server":
            print(client.server() or "")
            return 0 if client.server() else 1

        if args.command == "assets":
            res = await client.assets()
            return _emit(res.assets, res.error)
        if args.command == "markets":
            res = await client.markets()
            return _emit(res.markets, res.error)
        if args.command == "user-info":
            res = await client.user_info()
            return _emit(res.info, res.error)
        if args.command == "kyc":
            res = await client.kyc_request_create()
            return _emit(res.kyc_url, res.error)
        if args.command == "orderbook":
            res = await client.orderbook(args.symbol)
            return _emit(res.orderbook, res.error)
        if args.command == "orders":
            res = await client.order_list(args.offset, args.limit)
            return _emit(res.orders, res.error)
        if args.command == "order":
            res = await client.order_status(args.token)
            return _emit(res.order, res.error)
        if args.command == "accept":
            res = await client.order_accept(args.token)
            return _emit(res.order, res.error)
    return 2


def _emit(payload: Any, error: ApiError) -> int:
    if not error.ok:
        print(error.msg, file=sys.stderr)
        return 1
    print(dumps(to_jsonable(payload)))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = Settings.load()
    build_logger("zapbroker", level=getattr(logging, cfg.log_level), file_path=cfg.log_file)
    try:
        return asyncio.run(run(args, cfg))
    except MissingCredentialsError as exc:
        print(f"config error: {exc} (set ZC_API_KEY and ZC_API_SECRET)", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
