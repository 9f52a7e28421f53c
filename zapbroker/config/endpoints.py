"""
Base endpoint resolution for mainnet / testnet.
"""

from __future__ import annotations

from typing import Optional

API_PATH = "apiv1/"


class EndpointResolver:
    """
    Resolve the REST base URL from the current network selection.

    Either server may be unconfigured; base_url() then returns None and
    callers treat that as a network error.
    """

    def __init__(self, mainnet: Optional[str], testnet: Optional[str] = None, use_testnet: bool = False) -> None:
        self.mainnet = mainnet
        self.testnet = testnet
        self.use_testnet = use_testnet

    @classmethod
    def from_settings(cls, cfg) -> "EndpointResolver":
        return cls(cfg.server_mainnet, cfg.server_testnet, cfg.testnet)

    def server(self) -> Optional[str]:
        return self.testnet if self.use_testnet else self.mainnet

    def base_url(self) -> Optional[str]:
        server = self.server()
        if not server:
            return None
        if not server.endswith("/"):
            server += "/"
        return server + API_PATH
