"""Request logging middleware.

One ``request_completed`` event per request. Query strings are never
logged: the passcode verification routes carry the code in them.
"""

import time
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


logger = structlog.get_logger()

QUIET_PATHS = ("/health/", "/docs", "/redoc", "/openapi.json")


def get_client_ip(request: Request) -> str | None:
    """Client address, honouring the first ``X-Forwarded-For`` hop.

    The service runs behind the platform's reverse proxy, which appends
    to ``X-Forwarded-For`` or sets ``X-Real-IP``.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else None


def _route_template(request: Request) -> str:
    """Matched route path (``/tenant/signedin``), or the raw path if none matched."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, route, status, duration and resolved principal."""

    def __init__(self, app: Any, quiet_paths: tuple[str, ...] = QUIET_PATHS) -> None:
        super().__init__(app)
        self.quiet_paths = quiet_paths

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path.startswith(self.quiet_paths):
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                method=request.method,
                route=_route_template(request),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        event: dict[str, Any] = {
            "method": request.method,
            "route": _route_template(request),
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            "client_ip": get_client_ip(request),
        }
        principal = getattr(request.state, "principal", None)
        if principal is not None:
            event["principal_kind"] = str(principal.kind)
            event["principal_role"] = str(principal.role)

        if response.status_code >= 500:
            logger.error("request_completed", **event)
        elif response.status_code >= 400:
            logger.warning("request_completed", **event)
        else:
            logger.info("request_completed", **event)

        return response
