"""Token lifecycle: issuance, rotation and revocation of signed tokens.

Every token family has its own signing secret. Tokens that can be revoked
(refresh, reset, tenant session) are only valid while their entry exists
in the credential store; the entry carries a native TTL matching the
token lifetime.
"""

import uuid
from datetime import datetime

import structlog

from rentauth.config import Settings
from rentauth.core.auth.backend import (
    TokenError,
    decode_token,
    encode_token,
    hash_client_secret,
    verify_client_secret,
)
from rentauth.core.auth.schemas import (
    AppCredentials,
    MachineToken,
    Principal,
    PrincipalKind,
    Role,
    TokenPair,
)
from rentauth.core.cache import CredentialStore
from rentauth.core.constants import (
    ACCESS_TOKEN_TTL_SECONDS,
    MACHINE_TOKEN_TTL_SECONDS,
    RESET_TOKEN_TTL_SECONDS,
    SERVICE_TOKEN_TTL_SECONDS,
)
from rentauth.core.directory import OrganizationDirectory
from rentauth.core.errors import InvalidCredentialsError


logger = structlog.get_logger()

REFRESH_PREFIX = "refresh:"
RESET_PREFIX = "reset:"
SESSION_PREFIX = "session:"


class TokenService:
    """Mints, verifies, rotates and revokes tokens.

    Handles user access/refresh pairs, machine tokens for applications,
    password-reset tokens, tenant sessions and internal service tokens.
    """

    def __init__(self, store: CredentialStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    # ============================================================
    # User access / refresh pairs
    # ============================================================

    async def issue(self, principal: Principal) -> TokenPair:
        """Issue an access/refresh pair for a principal.

        Args:
            principal: Identity embedded in both tokens

        Returns:
            The new token pair
        """
        claims = principal.to_claims()
        access_token = encode_token(
            claims,
            self.settings.access_token_secret,
            self.settings.jwt_algorithm,
            expires_in=ACCESS_TOKEN_TTL_SECONDS,
            token_type="access",
        )
        refresh_ttl = self.settings.refresh_token_ttl_seconds
        refresh_token = encode_token(
            claims,
            self.settings.refresh_token_secret,
            self.settings.jwt_algorithm,
            expires_in=refresh_ttl,
            token_type="refresh",
        )
        await self.store.set(REFRESH_PREFIX + refresh_token, access_token, refresh_ttl)

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=ACCESS_TOKEN_TTL_SECONDS,
        )

    async def rotate(self, refresh_token: str) -> TokenPair | None:
        """Exchange a refresh token for a new pair.

        The stored entry is deleted whatever the verification outcome, so
        a refresh token is usable at most once.

        Returns:
            The new pair, or None if the token is unknown, revoked or invalid
        """
        key = REFRESH_PREFIX + refresh_token
        if await self.store.get_and_delete(key) is None:
            logger.info("refresh_token_rejected", reason="not_found")
            return None

        try:
            payload = decode_token(
                refresh_token,
                self.settings.refresh_token_secret,
                self.settings.jwt_algorithm,
                token_type="refresh",
            )
        except TokenError as exc:
            logger.info("refresh_token_rejected", reason=exc.reason)
            return None

        principal = Principal.from_claims(payload)
        if principal is None:
            logger.info("refresh_token_rejected", reason="unknown_shape")
            return None

        return await self.issue(principal)

    async def revoke(self, refresh_token: str) -> None:
        """Revoke a refresh token. Revoking an unknown token is a no-op."""
        await self.store.delete(REFRESH_PREFIX + refresh_token)

    # ============================================================
    # Applications (machine-to-machine)
    # ============================================================

    def create_app_credentials(
        self, organization_id: str, expires_at: datetime
    ) -> AppCredentials:
        """Mint credentials for a new application of an organization.

        The client secret is itself a signed token naming the organization,
        with the client id as its ``jti``.
        """
        client_id = str(uuid.uuid4())
        client_secret = encode_token(
            {"organizationId": organization_id, "jti": client_id},
            self.settings.appcredz_token_secret,
            self.settings.jwt_algorithm,
            expires_at=expires_at,
        )
        return AppCredentials(
            client_id=client_id,
            client_secret=client_secret,
            client_secret_hash=hash_client_secret(client_secret),
        )

    async def issue_machine_token(
        self,
        client_id: str,
        client_secret: str,
        organizations: OrganizationDirectory,
    ) -> MachineToken:
        """Issue an access token to an application from its own credentials.

        No refresh token is issued; applications re-authenticate each time.

        Raises:
            InvalidCredentialsError: If any check on the credentials fails
        """
        try:
            payload = decode_token(
                client_secret,
                self.settings.appcredz_token_secret,
                self.settings.jwt_algorithm,
            )
        except TokenError as exc:
            logger.info("machine_signin_rejected", reason=exc.reason)
            raise InvalidCredentialsError from exc

        organization_id = payload.get("organizationId")
        if not organization_id or payload.get("jti") != client_id:
            logger.info("machine_signin_rejected", reason="client_id_mismatch")
            raise InvalidCredentialsError

        application = await organizations.get_application(organization_id, client_id)
        if application is None:
            logger.info("machine_signin_rejected", reason="application_not_found")
            raise InvalidCredentialsError

        if not verify_client_secret(client_secret, application.client_secret_hash):
            logger.info("machine_signin_rejected", reason="secret_mismatch")
            raise InvalidCredentialsError

        principal = Principal(
            kind=PrincipalKind.APPLICATION,
            role=Role.API_CLIENT,
            client_id=client_id,
            organization_id=organization_id,
        )
        access_token = encode_token(
            principal.to_claims(),
            self.settings.access_token_secret,
            self.settings.jwt_algorithm,
            expires_in=MACHINE_TOKEN_TTL_SECONDS,
            token_type="access",
        )
        return MachineToken(access_token=access_token, organization_id=organization_id)

    def issue_service_token(
        self, service_id: str, organization_id: str | None = None
    ) -> str:
        """Issue a short-lived token for an internal platform service."""
        principal = Principal(
            kind=PrincipalKind.SERVICE,
            role=Role.ADMINISTRATOR,
            service_id=service_id,
            organization_id=organization_id,
        )
        return encode_token(
            principal.to_claims(),
            self.settings.access_token_secret,
            self.settings.jwt_algorithm,
            expires_in=SERVICE_TOKEN_TTL_SECONDS,
            token_type="access",
        )

    # ============================================================
    # Password reset
    # ============================================================

    async def issue_reset_token(self, email: str) -> str:
        """Issue a single-use password-reset token for an email."""
        token = encode_token(
            {"email": email},
            self.settings.reset_token_secret,
            self.settings.jwt_algorithm,
            expires_in=RESET_TOKEN_TTL_SECONDS,
            token_type="reset",
        )
        await self.store.set(RESET_PREFIX + token, email, RESET_TOKEN_TTL_SECONDS)
        return token

    async def consume_reset_token(self, token: str) -> str | None:
        """Consume a reset token.

        The entry is deleted on first read, whether or not the token is
        still valid.

        Returns:
            The email the token was issued for, or None
        """
        email = await self.store.get_and_delete(RESET_PREFIX + token)
        if email is None:
            logger.info("reset_token_rejected", reason="not_found")
            return None

        try:
            payload = decode_token(
                token,
                self.settings.reset_token_secret,
                self.settings.jwt_algorithm,
                token_type="reset",
            )
        except TokenError as exc:
            logger.info("reset_token_rejected", reason=exc.reason)
            return None

        if payload.get("email") != email:
            logger.warning("reset_token_rejected", reason="email_mismatch")
            return None
        return email

    # ============================================================
    # Tenant sessions
    # ============================================================

    async def issue_session(self, principal: Principal, subject_key: str) -> str:
        """Issue a tenant session token and record it in the store.

        Args:
            principal: Tenant principal embedded in the token
            subject_key: Email or phone the session belongs to

        Returns:
            The session token
        """
        ttl = self.settings.session_token_ttl_seconds
        token = encode_token(
            principal.to_claims(),
            self.settings.access_token_secret,
            self.settings.jwt_algorithm,
            expires_in=ttl,
            token_type="session",
        )
        await self.store.set(SESSION_PREFIX + token, subject_key, ttl)
        return token

    async def session_exists(self, token: str) -> bool:
        return await self.store.get(SESSION_PREFIX + token) is not None

    async def end_session(self, token: str) -> None:
        await self.store.delete(SESSION_PREFIX + token)
