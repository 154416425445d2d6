"""Fixed-window rate limiter and progressive slow-down.

Both keep their counters in the shared credential store, so every instance
of the service sees the same budget. A window starts at the first hit of a
scope and its counter expires with it.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from rentauth.core.cache import CredentialStore
from rentauth.core.rate_limit.policies import RateLimitPolicy, SlowDownPolicy


logger = structlog.get_logger()


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int | None = None


def _endpoint_key(endpoint: str | None) -> str:
    if not endpoint:
        return "global"
    return endpoint.replace("/", "_").strip("_") or "root"


class FixedWindowRateLimiter:
    """Store-backed fixed-window rate limiter.

    Each (policy, endpoint, scope) triple has its own counter, so a budget
    exhausted on one route never blocks another.
    """

    def __init__(self, store: CredentialStore, prefix: str = "ratelimit") -> None:
        """Initialize the rate limiter.

        Args:
            store: Shared credential store holding the counters
            prefix: Key prefix for counter keys
        """
        self.store = store
        self.prefix = prefix

    def _build_key(
        self, policy: RateLimitPolicy, scope: str, endpoint: str | None = None
    ) -> str:
        """Build the counter key.

        Args:
            policy: Policy the counter belongs to
            scope: IP address, or IP and account identifier
            endpoint: Optional endpoint path for per-route counters

        Returns:
            Store key string
        """
        return f"{self.prefix}:{policy.name}:{_endpoint_key(endpoint)}:{scope}"

    async def hit(
        self,
        policy: RateLimitPolicy,
        scope: str,
        endpoint: str | None = None,
    ) -> RateLimitResult:
        """Count one request and check it against the policy budget.

        The Nth request of a window is allowed while N <= limit.

        Args:
            policy: Budget to enforce
            scope: Scope key derived from the request
            endpoint: Optional endpoint path

        Returns:
            RateLimitResult with allowed status and metadata
        """
        window = await self.store.hit(self._build_key(policy, scope, endpoint), policy.window)
        allowed = window.count <= policy.limit

        return RateLimitResult(
            allowed=allowed,
            limit=policy.limit,
            remaining=max(0, policy.limit - window.count),
            retry_after=None if allowed else max(1, window.ttl),
        )


class SlowDown:
    """Progressive delay keyed by client IP.

    The first ``delay_after`` requests of a window run at full speed; each
    later one waits ``step`` longer than the previous, up to ``max_delay``.
    Nothing is ever rejected.
    """

    def __init__(
        self,
        store: CredentialStore,
        policy: SlowDownPolicy,
        prefix: str = "slowdown",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.policy = policy
        self.prefix = prefix
        self._sleep = sleep

    def delay_for(self, hits: int) -> float:
        """Delay in seconds for the ``hits``-th request of a window."""
        excess = hits - self.policy.delay_after
        if excess <= 0:
            return 0.0
        delay_ms = min(excess * self.policy.step_ms, self.policy.max_delay_ms)
        return delay_ms / 1000

    async def throttle(self, ip: str, endpoint: str | None = None) -> float:
        """Count a request from ``ip`` and wait the delay it earned.

        Every throttled route shares one count per IP; ``endpoint`` is only
        logged.

        Returns:
            The delay applied, in seconds
        """
        key = f"{self.prefix}:{ip}"
        window = await self.store.hit(key, self.policy.window)
        delay = self.delay_for(window.count)
        if delay > 0:
            logger.info(
                "slow_down_applied",
                client_ip=ip,
                endpoint=endpoint,
                hits=window.count,
                delay_seconds=delay,
            )
            await self._sleep(delay)
        return delay
