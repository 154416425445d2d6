"""Abuse mitigation: store-backed fixed windows and progressive slow-down.

Counters live in the shared credential store so the budgets hold across
horizontally scaled instances.
"""

from rentauth.core.rate_limit.backend import (
    FixedWindowRateLimiter,
    RateLimitResult,
    SlowDown,
)
from rentauth.core.rate_limit.dependencies import rate_limit, scope_key
from rentauth.core.rate_limit.policies import (
    RateLimitPolicy,
    SlowDownPolicy,
    build_policies,
    build_slow_down_policy,
)


__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitPolicy",
    "RateLimitResult",
    "SlowDown",
    "SlowDownPolicy",
    "build_policies",
    "build_slow_down_policy",
    "rate_limit",
    "scope_key",
]
