"""
Configuration package.

Environment settings, endpoint resolution and credential storage.
"""

from zapbroker.config.config import Settings
from zapbroker.config.credentials import CredentialStore, MemoryCredentialStore
from zapbroker.config.endpoints import EndpointResolver

__all__ = [
    "Settings",
    "CredentialStore",
    "MemoryCredentialStore",
    "EndpointResolver",
]
