"""
HMAC request signing.

The server recomputes HMAC-SHA256 over the raw request body with the
account's API secret and compares it with the X-Signature header
(base64). The body is therefore serialized exactly once; the signed
bytes are the transmitted bytes.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass
from typing import Any, Mapping

from zapbroker.core.json_utils import dumps_bytes

SIGNATURE_HEADER = "X-Signature"


def sign(secret: str, body: bytes) -> str:
    """Base64 HMAC-SHA256 of `body` keyed with `secret`."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify(secret: str, body: bytes, signature: str) -> bool:
    return hmac.compare_digest(sign(secret, body), signature)


@dataclass(frozen=True)
class SignedRequest:
    body: bytes
    signature: str

    @property
    def headers(self) -> dict[str, str]:
        return {SIGNATURE_HEADER: self.signature}


def build_signed_request(secret: str, payload: Mapping[str, Any]) -> SignedRequest:
    body = dumps_bytes(dict(payload))
    return SignedRequest(body=body, signature=sign(secret, body))
