"""
API credential storage.

Persistence belongs to the host application's preference store; the
client only needs something satisfying CredentialStore. The in-memory
store is used for sessions seeded from the environment and in tests.
"""

from __future__ import annotations

import threading
from typing import Optional, Protocol

from zapbroker.models.user import ApiKey


class CredentialStore(Protocol):
    def get(self) -> Optional[ApiKey]: ...

    def set(self, apikey: ApiKey) -> None: ...

    def clear(self) -> None: ...


class MemoryCredentialStore:
    def __init__(self, apikey: Optional[ApiKey] = None) -> None:
        self._apikey = apikey
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, cfg) -> "MemoryCredentialStore":
        if cfg.api_key and cfg.api_secret:
            return cls(ApiKey(cfg.api_key, cfg.api_secret))
        return cls()

    def get(self) -> Optional[ApiKey]:
        with self._lock:
            return self._apikey

    def set(self, apikey: ApiKey) -> None:
        with self._lock:
            self._apikey = apikey

    def clear(self) -> None:
        with self._lock:
            self._apikey = None
