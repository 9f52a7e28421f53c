"""
Error taxonomy for API results.

Operations never raise for transport or server failures; they return a
result carrying an ApiError. The only exception surfaced to callers is
MissingCredentialsError, a configuration precondition.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from zapbroker.core.json_utils import loads


class ErrorType(Enum):
    NONE = "none"
    NETWORK = "network"
    AUTH = "auth"


class DecodeError(ValueError):
    """A server payload did not match the expected shape."""


class MissingCredentialsError(RuntimeError):
    """An authenticated call was made before credentials were stored."""


def require_mapping(obj: Any, what: str) -> Mapping[str, Any]:
    """Return `obj` if it is a JSON object, else raise DecodeError."""
    if not isinstance(obj, Mapping):
        raise DecodeError(f"{what} must be an object, got {type(obj).__name__}")
    return obj


@dataclass(frozen=True)
class ApiError:
    type: ErrorType
    msg: str

    @property
    def ok(self) -> bool:
        return self.type is ErrorType.NONE

    @classmethod
    def none(cls) -> "ApiError":
        return cls(ErrorType.NONE, "no error")

    @classmethod
    def network(cls) -> "ApiError":
        return cls(ErrorType.NETWORK, "network error")

    @classmethod
    def auth(cls, body: str) -> "ApiError":
        """
        Build an auth error from a 400 response body.

        Uses the `message` field when the body is a JSON object carrying a
        string message, otherwise the raw body text verbatim.
        """
        try:
            parsed = loads(body)
        except ValueError:
            return cls(ErrorType.AUTH, body)
        if isinstance(parsed, dict) and isinstance(parsed.get("message"), str):
            return cls(ErrorType.AUTH, parsed["message"])
        return cls(ErrorType.AUTH, body)
