"""
Environment-driven configuration with validation.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger("zapbroker")


def env_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "y"}


def _opt_env(key: str) -> Optional[str]:
    val = os.getenv(key)
    if val is None or val.strip() == "":
        return None
    return val.strip()


@dataclass(frozen=True)
class Settings:
    testnet: bool
    server_mainnet: str | None
    server_testnet: str | None
    api_key: str | None
    api_secret: str | None
    device_name: str
    http_timeout: float
    log_level: str
    log_file: str | None

    def dump(self) -> dict:
        """Settings for logging, with the secret redacted."""
        out = self.__dict__.copy()
        if out.get("api_secret"):
            out["api_secret"] = "***"
        return out

    @classmethod
    def load(cls) -> "Settings":
        def _float_env(key: str, default: float) -> float:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return float(raw)

        cfg = cls(
            testnet=env_bool("ZC_TESTNET", False),
            server_mainnet=_opt_env("ZC_SERVER_MAINNET"),
            server_testnet=_opt_env("ZC_SERVER_TESTNET"),
            api_key=_opt_env("ZC_API_KEY"),
            api_secret=_opt_env("ZC_API_SECRET"),
            device_name=os.getenv("ZC_DEVICE_NAME", "zapbroker"),
            http_timeout=_float_env("ZC_HTTP_TIMEOUT", 10.0),
            log_level=os.getenv("ZC_LOG_LEVEL", "INFO").upper(),
            log_file=_opt_env("ZC_LOG_FILE"),
        )
        cfg._validate()
        _log_loaded(cfg)
        return cfg

    def _validate(self) -> None:
        if self.http_timeout <= 0:
            raise ValueError("ZC_HTTP_TIMEOUT must be > 0")
        for key, url in (("ZC_SERVER_MAINNET", self.server_mainnet), ("ZC_SERVER_TESTNET", self.server_testnet)):
            if url is None:
                continue
            parsed = urlparse(url)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError(f"{key} must be an http(s) URL, got {url!r}")
        if (self.api_key is None) != (self.api_secret is None):
            raise ValueError("ZC_API_KEY and ZC_API_SECRET must be set together")
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"ZC_LOG_LEVEL {self.log_level!r} is not a logging level")
        if self.server_testnet is None and self.testnet:
            log.warning(json.dumps({"event": "config_warning", "msg": "ZC_TESTNET set but ZC_SERVER_TESTNET is empty"}))


def _log_loaded(cfg: Settings) -> None:
    payload = {
        "event": "config_loaded",
        "testnet": cfg.testnet,
        "server_mainnet": cfg.server_mainnet,
        "server_testnet": cfg.server_testnet,
        "has_credentials": cfg.api_key is not None,
        "http_timeout": cfg.http_timeout,
    }
    log.info(json.dumps(payload))
