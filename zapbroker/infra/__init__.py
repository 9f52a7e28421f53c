"""
Infrastructure package.

Logging configuration, nonce generation and request signing. The API
client lives in zapbroker.infra.api_client.
"""

from zapbroker.infra.logging_cfg import build_logger, log_event
from zapbroker.infra.nonce import NonceGenerator
from zapbroker.infra.signing import SignedRequest, build_signed_request, sign, verify

__all__ = [
    "build_logger",
    "log_event",
    "NonceGenerator",
    "SignedRequest",
    "build_signed_request",
    "sign",
    "verify",
]
