"""Contract of the shared credential store.

Every piece of mutable state the core keeps (refresh tokens, reset tokens,
passcodes, tenant sessions and abuse counters) goes through this interface.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class WindowCount:
    """Hit count of a fixed window and the seconds left before it resets."""

    count: int
    ttl: int


class CredentialStore(Protocol):
    """Key-value store with per-key expiration."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None: ...

    async def add(self, key: str, value: str, ttl_seconds: int) -> bool: ...

    async def delete(self, key: str) -> bool: ...

    async def get_and_delete(self, key: str) -> str | None: ...

    async def hit(self, key: str, window_seconds: int) -> WindowCount: ...

    async def ping(self) -> bool: ...

    async def aclose(self) -> None: ...
