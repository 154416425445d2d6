"""Request tracing and security audit middleware."""

import uuid
from typing import ClassVar

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from rentauth.core.logging.middleware import get_client_ip


logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that adds a unique request ID to each request.

    The request ID is added to:
    - request.state.request_id
    - Response header X-Request-ID
    - Structlog context
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process the request and add request ID.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response with X-Request-ID header
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id
        request.state.trace_id = request_id  # Alias for error handler

        structlog.contextvars.bind_contextvars(request_id=request_id)

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars(
                "request_id", "principal_kind", "principal_role"
            )

        response.headers["X-Request-ID"] = request_id
        return response


class SecurityAuditMiddleware(BaseHTTPMiddleware):
    """Logs security-relevant outcomes of authentication routes.

    Rejections (401, 403, 429) are logged with the client IP and user agent
    so repeated probing shows up in one place, and automated clients are
    flagged on sign-in attempts.
    """

    AUDITED_STATUSES: ClassVar[set[int]] = {401, 403, 429}
    BOT_MARKERS: ClassVar[tuple[str, ...]] = ("bot", "crawler", "spider", "curl", "python-requests")

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        client_ip = get_client_ip(request)
        user_agent = request.headers.get("User-Agent", "")

        if request.method in ("GET", "POST") and "signin" in path:
            lowered = user_agent.lower()
            if any(marker in lowered for marker in self.BOT_MARKERS):
                logger.warning(
                    "security_automated_client",
                    client_ip=client_ip,
                    user_agent=user_agent,
                    path=path,
                )

        response = await call_next(request)

        if response.status_code in self.AUDITED_STATUSES:
            logger.warning(
                "security_request_rejected",
                status_code=response.status_code,
                method=request.method,
                path=path,
                client_ip=client_ip,
                user_agent=user_agent,
            )
        elif "signin" in path and response.status_code < 300:
            logger.info("security_signin_step", path=path, client_ip=client_ip)

        return response
