"""Shared credential store.

Provides:
- The store contract used by the token, passcode and rate-limit layers
- A Redis implementation with its own connection pool
"""

from rentauth.core.cache.redis import RedisStore
from rentauth.core.cache.store import CredentialStore, WindowCount


__all__ = [
    "CredentialStore",
    "RedisStore",
    "WindowCount",
]
