"""Landlord authentication: password and application sign-in, sign-up,
password reset and application credentials.
"""

from datetime import UTC, datetime

import structlog

from rentauth.core.auth.backend import hash_password, verify_password
from rentauth.core.auth.monitoring import FailedAttemptTracker
from rentauth.core.auth.schemas import (
    AppCredentials,
    MachineToken,
    Principal,
    PrincipalKind,
    Role,
    TokenPair,
)
from rentauth.core.auth.service import TokenService
from rentauth.core.directory import AccountDirectory, OrganizationDirectory
from rentauth.core.errors import (
    DeliveryError,
    ForbiddenError,
    InvalidCredentialsError,
    ValidationError,
)
from rentauth.core.notify import EmailNotifier
from rentauth.core.utils.timing import response_floor


logger = structlog.get_logger()


class LandlordAuthService:
    """Service for landlord authentication operations.

    Every outcome that could reveal whether an account exists (sign-up,
    forgot password) looks the same to the caller and takes at least
    ``guard_floor_seconds``.
    """

    def __init__(
        self,
        tokens: TokenService,
        accounts: AccountDirectory,
        organizations: OrganizationDirectory,
        emailer: EmailNotifier,
        failed_attempts: FailedAttemptTracker,
        guard_floor_seconds: float = 0.0,
    ) -> None:
        self.tokens = tokens
        self.accounts = accounts
        self.organizations = organizations
        self.emailer = emailer
        self.failed_attempts = failed_attempts
        self.guard_floor_seconds = guard_floor_seconds

    async def sign_in(self, email: str, password: str, client_ip: str) -> TokenPair:
        """Sign a landlord in with email and password.

        Args:
            email: Account email (case-insensitive)
            password: Plain text password
            client_ip: Caller IP, for failed-attempt tracking

        Returns:
            A new access/refresh pair

        Raises:
            InvalidCredentialsError: If the account is unknown or the
                password does not match
        """
        email = email.strip().lower()
        account = await self.accounts.get_by_email(email)

        # Verify against a dummy hash when the account is unknown
        valid = verify_password(password, account.password_hash if account else None)
        if account is None or not valid:
            logger.info(
                "signin_failed",
                reason="account_not_found" if account is None else "bad_password",
            )
            await self.failed_attempts.record_failure(client_ip, email)
            raise InvalidCredentialsError

        await self.failed_attempts.clear(client_ip, email)
        principal = Principal(
            kind=PrincipalKind.USER,
            role=Role.ADMINISTRATOR,
            id=account.id,
            email=account.email,
        )
        logger.info("signin_succeeded", account_id=account.id)
        return await self.tokens.issue(principal)

    async def sign_in_application(
        self, client_id: str, client_secret: str, client_ip: str
    ) -> MachineToken:
        """Issue an access token to an application.

        Raises:
            InvalidCredentialsError: If any credential check fails
        """
        try:
            token = await self.tokens.issue_machine_token(
                client_id.strip(), client_secret.strip(), self.organizations
            )
        except InvalidCredentialsError:
            await self.failed_attempts.record_failure(client_ip, client_id.strip().lower())
            raise

        logger.info(
            "application_signin_succeeded",
            client_id=client_id,
            organization_id=token.organization_id,
        )
        return token

    async def sign_up(
        self, firstname: str, lastname: str, email: str, password: str
    ) -> None:
        """Create a landlord account.

        An already registered email is silently accepted.
        """
        email = email.strip().lower()
        async with response_floor(self.guard_floor_seconds):
            password_hash = hash_password(password)
            if await self.accounts.get_by_email(email) is not None:
                logger.info("signup_skipped", reason="account_exists")
                return
            account = await self.accounts.create(
                email, firstname.strip(), lastname.strip(), password_hash
            )
            logger.info("signup_succeeded", account_id=account.id)

    async def forgot_password(self, email: str, locale: str) -> None:
        """Email a password-reset link if the account exists.

        Delivery failures are logged, not raised: an error here would only
        ever happen for existing accounts.
        """
        email = email.strip().lower()
        async with response_floor(self.guard_floor_seconds):
            account = await self.accounts.get_by_email(email)
            if account is None:
                logger.info("reset_not_issued", reason="account_not_found")
                return

            token = await self.tokens.issue_reset_token(email)
            try:
                await self.emailer.send_reset_password(email, token, locale)
            except DeliveryError:
                logger.error("reset_delivery_failed", account_id=account.id)
                return
            logger.info("reset_issued", account_id=account.id)

    async def reset_password(self, reset_token: str, password: str) -> None:
        """Set a new password with a reset token. The token is single use.

        Raises:
            InvalidCredentialsError: If the token is unknown, used or expired
        """
        email = await self.tokens.consume_reset_token(reset_token.strip())
        if email is None:
            raise InvalidCredentialsError

        if not await self.accounts.set_password(email, hash_password(password)):
            logger.warning("reset_failed", reason="account_not_found")
            raise InvalidCredentialsError
        logger.info("password_reset")

    async def create_app_credentials(
        self,
        principal: Principal,
        organization_id: str,
        expiry: datetime,
        name: str = "",
    ) -> AppCredentials:
        """Mint and register credentials for a new application.

        Raises:
            ForbiddenError: If the caller is not an administrator of the
                organization
            ValidationError: If the expiry is in the past
        """
        role = None
        if principal.kind is PrincipalKind.USER and principal.email:
            role = await self.organizations.get_member_role(
                organization_id, principal.email
            )
        if role != Role.ADMINISTRATOR:
            logger.warning(
                "appcredz_forbidden",
                organization_id=organization_id,
                principal_kind=str(principal.kind),
                member_role=role,
            )
            raise ForbiddenError("Your current role does not allow this action")

        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        if expiry <= datetime.now(UTC):
            raise ValidationError(
                "Invalid expiry",
                errors=[{"field": "expiry", "message": "Expiry must be in the future"}],
            )

        credentials = self.tokens.create_app_credentials(organization_id, expiry)
        await self.organizations.register_application(
            organization_id,
            credentials.client_id,
            credentials.client_secret_hash,
            name,
        )
        logger.info(
            "appcredz_created",
            organization_id=organization_id,
            client_id=credentials.client_id,
        )
        return credentials
