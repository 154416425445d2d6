"""Redis implementation of the shared credential store.

One ``RedisStore`` is created per application and kept on ``app.state``;
it owns its connection pool and must be closed on shutdown.
"""

import redis.asyncio as redis
import structlog
from redis.asyncio.connection import ConnectionPool

from rentauth.core.cache.store import WindowCount


logger = structlog.get_logger()


class RedisStore:
    """Credential store backed by Redis.

    Keys are namespaced by the callers (``otp:``, ``refresh:``...), the
    optional prefix isolates several deployments sharing one server.
    """

    def __init__(
        self,
        client: redis.Redis,  # type: ignore[type-arg]
        prefix: str = "",
        pool: ConnectionPool | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            client: Redis client with ``decode_responses=True``
            prefix: Prefix for all keys (e.g., "rentauth:")
            pool: Connection pool owned by this store, closed by ``aclose``
        """
        self.client = client
        self.prefix = prefix
        self._pool = pool

    @classmethod
    def from_url(
        cls, url: str, max_connections: int = 50, prefix: str = ""
    ) -> "RedisStore":
        """Create a store with its own connection pool.

        No connection is opened until the first command.
        """
        pool = ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )
        return cls(redis.Redis(connection_pool=pool), prefix=prefix, pool=pool)

    async def aclose(self) -> None:
        """Close the client and disconnect the pool.

        Call this during application shutdown.
        """
        await self.client.aclose()
        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    def _key(self, key: str) -> str:
        """Generate prefixed key."""
        return f"{self.prefix}{key}" if self.prefix else key

    async def get(self, key: str) -> str | None:
        """Get a value.

        Args:
            key: Store key

        Returns:
            Stored value or None if not found
        """
        return await self.client.get(self._key(key))

    async def set(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
    ) -> None:
        """Set a value.

        Args:
            key: Store key
            value: Value to store
            ttl_seconds: Optional TTL in seconds
        """
        if ttl_seconds:
            await self.client.setex(self._key(key), ttl_seconds, value)
        else:
            await self.client.set(self._key(key), value)

    async def add(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Set a value only if the key does not exist yet.

        Returns:
            True if the value was stored, False if the key was taken
        """
        result = await self.client.set(self._key(key), value, ex=ttl_seconds, nx=True)
        return bool(result)

    async def delete(self, key: str) -> bool:
        """Delete a key.

        Returns:
            True if key was deleted, False if it didn't exist
        """
        result = await self.client.delete(self._key(key))
        return result > 0

    async def get_and_delete(self, key: str) -> str | None:
        """Get a value and delete it atomically (one-time use).

        Concurrent callers racing on the same key get the value at most once.

        Returns:
            Stored value or None if not found
        """
        return await self.client.getdel(self._key(key))

    async def hit(self, key: str, window_seconds: int) -> WindowCount:
        """Count one hit in a fixed window starting at the first hit.

        The window key is created with its TTL and incremented in one
        transaction, so every instance of the service shares the counter.

        Args:
            key: Counter key
            window_seconds: Window length

        Returns:
            The hit count including this one and the seconds left in the window
        """
        full_key = self._key(key)
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.set(full_key, 0, ex=window_seconds, nx=True)
            pipe.incr(full_key)
            pipe.ttl(full_key)
            _, count, ttl = await pipe.execute()

        if ttl < 0:
            # Counter survived without expiry (e.g. manual edit); re-arm it
            await self.client.expire(full_key, window_seconds)
            ttl = window_seconds

        return WindowCount(count=int(count), ttl=int(ttl))

    async def ping(self) -> bool:
        """Check connectivity for readiness probes."""
        try:
            return bool(await self.client.ping())
        except redis.RedisError as exc:
            logger.warning("redis_ping_failed", error=str(exc))
            return False
