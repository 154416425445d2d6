"""FastAPI dependencies for authentication.

Resolves the bearer header or the session cookie to a principal. Role
checks that depend on organization membership live in the services.
"""

from typing import Annotated

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rentauth.api.dependencies import Validator
from rentauth.core.auth.schemas import Principal
from rentauth.core.constants import SESSION_TOKEN_COOKIE


# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


def extract_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    """Token from the Authorization header, else from the session cookie.

    Service-to-service calls send headers; the tenant portal sends cookies.
    """
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_TOKEN_COOKIE)


async def get_current_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    validator: Validator,
) -> Principal:
    """Resolve the request's token to a principal.

    Raises:
        InvalidCredentialsError: If the token is missing or invalid
    """
    principal = await validator.resolve(extract_token(request, credentials))
    request.state.principal = principal
    structlog.contextvars.bind_contextvars(
        principal_kind=str(principal.kind),
        principal_role=str(principal.role),
    )
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
