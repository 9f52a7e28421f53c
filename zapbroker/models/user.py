"""
Account-level models: user info and API keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional

from zapbroker.models.errors import DecodeError, require_mapping


class Permission(str, Enum):
    RECEIVE = "receive"
    BALANCE = "balance"
    HISTORY = "history"
    TRANSFER = "transfer"
    ISSUE = "issue"


class Role(str, Enum):
    ADMIN = "admin"
    PROPOSER = "proposer"
    AUTHORIZER = "authorizer"


def _parse_names(enum_cls, names: Any, field_name: str) -> FrozenSet:
    if not isinstance(names, list):
        raise DecodeError(f"{field_name} must be a list")
    values = set()
    for name in names:
        try:
            values.add(enum_cls(name))
        except ValueError as exc:
            raise DecodeError(f"unknown {field_name} value {name!r}") from exc
    return frozenset(values)


@dataclass(frozen=True)
class UserInfo:
    """
    User account snapshot.

    `permissions` is None when the source omitted the field (websocket
    user events never carry it); an empty frozenset means "no permissions".
    """
    email: str
    photo: Optional[str]
    photo_type: Optional[str]
    permissions: Optional[FrozenSet[Permission]]
    roles: FrozenSet[Role]
    kyc_validated: bool
    kyc_url: Optional[str]

    def merge(self, incoming: "UserInfo") -> "UserInfo":
        """Adopt `incoming`, keeping our permissions if it has none."""
        permissions = self.permissions if incoming.permissions is None else incoming.permissions
        return UserInfo(
            email=incoming.email,
            photo=incoming.photo,
            photo_type=incoming.photo_type,
            permissions=permissions,
            roles=incoming.roles,
            kyc_validated=incoming.kyc_validated,
            kyc_url=incoming.kyc_url,
        )

    @classmethod
    def parse(cls, obj: Mapping[str, Any]) -> "UserInfo":
        obj = require_mapping(obj, "user info")
        kyc_validated = obj.get("kyc_validated")
        if not isinstance(kyc_validated, bool):
            raise DecodeError(f"kyc_validated must be a boolean, got {kyc_validated!r}")
        try:
            permissions = None
            if "permissions" in obj:
                permissions = _parse_names(Permission, obj["permissions"], "permissions")
            return cls(
                email=obj["email"],
                photo=obj.get("photo"),
                photo_type=obj.get("photo_type"),
                permissions=permissions,
                roles=_parse_names(Role, obj["roles"], "roles"),
                kyc_validated=kyc_validated,
                kyc_url=obj.get("kyc_url"),
            )
        except (KeyError, TypeError) as exc:
            raise DecodeError(f"invalid user info: {exc}") from exc


@dataclass(frozen=True)
class ApiKey:
    token: str
    secret: str

    def __repr__(self) -> str:
        return f"ApiKey(token={self.token!r}, secret='***')"

    @classmethod
    def parse(cls, obj: Mapping[str, Any]) -> "ApiKey":
        obj = require_mapping(obj, "api key")
        try:
            return cls(token=obj["token"], secret=obj["secret"])
        except (KeyError, TypeError) as exc:
            raise DecodeError(f"invalid api key: {exc}") from exc


@dataclass(frozen=True)
class AccountRegistration:
    first_name: str
    last_name: str
    email: str
    mobile_number: str
    address: str
    password: str
    photo: Optional[str] = None
    photo_type: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "mobile_number": self.mobile_number,
            "address": self.address,
            "password": self.password,
            "photo": self.photo,
            "photo_type": self.photo_type,
        }
