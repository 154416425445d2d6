"""Authentication backend for JWT and password handling.

This module provides core authentication utilities including:
- Password and client secret hashing with bcrypt
- JWT token creation and verification
- Token hashing
"""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from passlib.context import CryptContext

from rentauth.core.constants import ACCESS_TOKEN_JTI_LENGTH, BCRYPT_ROUNDS


# Password hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


class TokenError(Exception):
    """A token failed verification.

    ``reason`` is one of ``expired``, ``not_yet_valid``, ``malformed`` or
    ``invalid`` and is meant for logs only.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


# ============================================================
# Password Utilities
# ============================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash of the password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a password against its hash.

    When there is no hash (unknown account) a dummy hash is checked instead
    so the call costs the same either way.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Bcrypt hash to verify against, or None

    Returns:
        True if password matches, False otherwise
    """
    if not hashed_password:
        pwd_context.verify(plain_password, _dummy_hash())
        return False
    return pwd_context.verify(plain_password, hashed_password)


@lru_cache
def _dummy_hash() -> str:
    return pwd_context.hash(secrets.token_urlsafe(16))


def hash_client_secret(client_secret: str) -> str:
    """Hash an application client secret for storage.

    Client secrets are JWTs, far longer than the 72 bytes bcrypt reads,
    so they are reduced with SHA-256 first.
    """
    return pwd_context.hash(hash_token(client_secret))


def verify_client_secret(client_secret: str, hashed_secret: str) -> bool:
    """Verify an application client secret against its stored hash."""
    return pwd_context.verify(hash_token(client_secret), hashed_secret)


def hash_token(token: str) -> str:
    """Hash a token with SHA-256.

    Args:
        token: The token to hash

    Returns:
        SHA-256 hex digest of the token
    """
    return hashlib.sha256(token.encode()).hexdigest()


# ============================================================
# JWT Token Utilities
# ============================================================


def encode_token(
    claims: dict[str, Any],
    secret: str,
    algorithm: str,
    expires_in: int | None = None,
    token_type: str | None = None,
    expires_at: datetime | None = None,
) -> str:
    """Sign a JWT.

    Args:
        claims: Payload claims
        secret: Signing secret of the token family
        algorithm: JWT algorithm
        expires_in: Lifetime in seconds
        token_type: Value of the ``type`` claim
        expires_at: Absolute expiry, used instead of ``expires_in``

    Returns:
        Encoded JWT
    """
    now = datetime.now(UTC)
    to_encode: dict[str, Any] = dict(claims)
    to_encode.setdefault("iat", now)
    to_encode.setdefault("nbf", now)
    to_encode.setdefault("jti", secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH))
    if expires_at is not None:
        to_encode["exp"] = expires_at
    elif expires_in is not None:
        to_encode["exp"] = now + timedelta(seconds=expires_in)
    if token_type:
        to_encode["type"] = token_type

    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_token(
    token: str,
    secret: str,
    algorithm: str,
    token_type: str | None = None,
) -> dict[str, Any]:
    """Decode and validate a JWT.

    Args:
        token: The JWT to decode
        secret: Secret of the expected token family
        algorithm: JWT algorithm
        token_type: Required ``type`` claim, if any

    Returns:
        The decoded claims

    Raises:
        TokenError: If the token is expired, not yet valid, malformed or
            of the wrong type
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except ExpiredSignatureError as exc:
        raise TokenError("expired") from exc
    except JWTClaimsError as exc:
        reason = "not_yet_valid" if "nbf" in str(exc) else "invalid"
        raise TokenError(reason) from exc
    except JWTError as exc:
        raise TokenError("malformed") from exc

    if token_type and payload.get("type") != token_type:
        raise TokenError("invalid")

    return payload
