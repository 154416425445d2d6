"""Authentication module: token lifecycle, principals and session validation.

Routers and request dependencies live in their own modules
(``routes``, ``tenant_routes``, ``dependencies``) and are imported from
there, not from this package.
"""

from rentauth.core.auth.backend import (
    TokenError,
    decode_token,
    encode_token,
    hash_password,
    hash_token,
    verify_password,
)
from rentauth.core.auth.middleware import RequestIdMiddleware, SecurityAuditMiddleware
from rentauth.core.auth.schemas import (
    Principal,
    PrincipalKind,
    Role,
    TenantSession,
    TokenPair,
)
from rentauth.core.auth.service import TokenService
from rentauth.core.auth.sessions import SessionValidator


__all__ = [
    # Schemas
    "Principal",
    "PrincipalKind",
    # Middleware
    "RequestIdMiddleware",
    "Role",
    "SecurityAuditMiddleware",
    # Services
    "SessionValidator",
    "TenantSession",
    "TokenError",
    "TokenPair",
    "TokenService",
    # Token utilities
    "decode_token",
    "encode_token",
    # Password utilities
    "hash_password",
    "hash_token",
    "verify_password",
]
