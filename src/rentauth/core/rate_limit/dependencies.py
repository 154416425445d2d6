"""FastAPI dependencies chaining the abuse-mitigation checks on a route.

Usage:
    @router.post(
        "/signin",
        dependencies=[Depends(rate_limit("auth", "auth_account", slow_down=True))],
    )
    async def signin(...): ...

The chain runs the IP counter, then the slow-down, then the account
counter. Scope keys are derived from the request alone: the client IP and,
for account policies, the identifier found in the JSON body.
"""

import json
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response

from rentauth.core.errors import RateLimitError
from rentauth.core.logging.middleware import get_client_ip
from rentauth.core.rate_limit.backend import RateLimitResult
from rentauth.core.rate_limit.policies import RateLimitPolicy


logger = structlog.get_logger()

# Body fields naming the account a request targets, in lookup order
IDENTIFIER_FIELDS = ("email", "phoneNumber", "clientId")


def scope_key(ip: str, identifier: str | None = None) -> str:
    """Counter scope for an IP, optionally narrowed to one account."""
    if identifier:
        return f"{ip}:{identifier}"
    return ip


def normalize_identifier(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value or None


async def request_identifier(request: Request) -> str | None:
    """Extract the account identifier from a JSON request body.

    Returns:
        The normalized identifier, or None if the body has none
    """
    body = await request.body()
    if not body:
        return None
    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None

    for field in IDENTIFIER_FIELDS:
        identifier = normalize_identifier(payload.get(field))
        if identifier:
            return identifier
    return None


def _enforce(
    policy: RateLimitPolicy,
    result: RateLimitResult,
    ip: str,
    endpoint: str,
) -> None:
    if result.allowed:
        return
    # Which scope tripped is logged, never returned
    logger.warning(
        "rate_limit_exceeded",
        policy=policy.name,
        scope="account" if policy.per_account else "ip",
        client_ip=ip,
        endpoint=endpoint,
        retry_after=result.retry_after,
    )
    raise RateLimitError(retry_after=result.retry_after or policy.window, reason=policy.reason)


def rate_limit(
    ip_policy: str,
    account_policy: str | None = None,
    slow_down: bool = False,
) -> Callable[[Request, Response], Awaitable[None]]:
    """Build a dependency enforcing the named policies on a route.

    Args:
        ip_policy: Policy counted per client IP
        account_policy: Policy counted per client IP and body identifier
        slow_down: Apply the progressive delay after the IP counter

    Returns:
        A dependency raising RateLimitError when a budget is spent
    """

    async def check_rate_limit(request: Request, response: Response) -> None:
        state = request.app.state
        ip = get_client_ip(request) or "unknown"
        endpoint = request.url.path
        results: list[RateLimitResult] = []

        policy = state.rate_limit_policies[ip_policy]
        result = await state.rate_limiter.hit(policy, scope_key(ip), endpoint)
        _enforce(policy, result, ip, endpoint)
        results.append(result)

        if slow_down:
            await state.slow_down.throttle(ip, endpoint)

        if account_policy:
            policy = state.rate_limit_policies[account_policy]
            identifier = await request_identifier(request)
            result = await state.rate_limiter.hit(
                policy, scope_key(ip, identifier), endpoint
            )
            _enforce(policy, result, ip, endpoint)
            results.append(result)

        tightest = min(results, key=lambda r: r.remaining)
        request.state.rate_limit = tightest
        response.headers["X-RateLimit-Limit"] = str(tightest.limit)
        response.headers["X-RateLimit-Remaining"] = str(tightest.remaining)

    return check_rate_limit
