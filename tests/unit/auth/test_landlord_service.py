"""Unit tests for landlord sign-in, sign-up, password reset and app credentials."""

from datetime import UTC, datetime, timedelta

import pytest

from rentauth.core.auth.backend import verify_password
from rentauth.core.auth.landlord import LandlordAuthService
from rentauth.core.auth.monitoring import FailedAttemptTracker
from rentauth.core.auth.schemas import Principal, PrincipalKind, Role
from rentauth.core.errors import ForbiddenError, InvalidCredentialsError, ValidationError


CLIENT_IP = "203.0.113.7"
LANDLORD_EMAIL = "landlord@example.com"
LANDLORD_PASSWORD = "correct-horse-battery"
ORGANIZATION_ID = "6f1c2a0e-5b7d-4c3e-9a8f-1d2e3f4a5b6c"


@pytest.fixture
def failed_attempts(store) -> FailedAttemptTracker:
    return FailedAttemptTracker(store, threshold=3, window_seconds=900)


@pytest.fixture
def service(tokens, accounts, organizations, email_notifier, failed_attempts):
    return LandlordAuthService(
        tokens=tokens,
        accounts=accounts,
        organizations=organizations,
        emailer=email_notifier,
        failed_attempts=failed_attempts,
    )


@pytest.fixture
def administrator(landlord_account, organizations) -> Principal:
    organizations.add_member(ORGANIZATION_ID, LANDLORD_EMAIL, "administrator")
    return Principal(role=Role.ADMINISTRATOR, id=landlord_account.id, email=LANDLORD_EMAIL)


class TestSignIn:
    async def test_sign_in_is_case_insensitive(self, service, landlord_account):
        pair = await service.sign_in("  Landlord@Example.com ", LANDLORD_PASSWORD, CLIENT_IP)

        assert pair.access_token
        assert pair.refresh_token

    async def test_wrong_password(self, service, landlord_account, failed_attempts):
        with pytest.raises(InvalidCredentialsError):
            await service.sign_in(LANDLORD_EMAIL, "wrong-password", CLIENT_IP)

        assert await failed_attempts.record_failure(CLIENT_IP, LANDLORD_EMAIL) == 2

    async def test_unknown_account_looks_the_same(self, service):
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await service.sign_in("nobody@example.com", LANDLORD_PASSWORD, CLIENT_IP)

        assert exc_info.value.message == "Invalid credentials"

    async def test_success_clears_failures(self, service, landlord_account, store):
        with pytest.raises(InvalidCredentialsError):
            await service.sign_in(LANDLORD_EMAIL, "wrong-password", CLIENT_IP)

        await service.sign_in(LANDLORD_EMAIL, LANDLORD_PASSWORD, CLIENT_IP)

        assert store.keys("failed:") == []

    async def test_application_sign_in_failure_is_counted(self, service, store):
        with pytest.raises(InvalidCredentialsError):
            await service.sign_in_application("client-1", "not-a-secret", CLIENT_IP)

        assert store.keys("failed:") == [f"failed:{CLIENT_IP}:client-1"]


class TestFailedAttemptTracker:
    async def test_counts_per_ip_and_identifier(self, failed_attempts):
        assert await failed_attempts.record_failure(CLIENT_IP, "a@example.com") == 1
        assert await failed_attempts.record_failure(CLIENT_IP, "a@example.com") == 2
        assert await failed_attempts.record_failure(CLIENT_IP, "b@example.com") == 1

    async def test_window_resets(self, failed_attempts, clock):
        await failed_attempts.record_failure(CLIENT_IP, "a@example.com")
        clock.advance(901)

        assert await failed_attempts.record_failure(CLIENT_IP, "a@example.com") == 1


class TestSignUp:
    async def test_creates_account(self, service, accounts):
        await service.sign_up("Lena", "Lord", "New@Example.com", "a-long-password")

        account = await accounts.get_by_email("new@example.com")
        assert account is not None
        assert verify_password("a-long-password", account.password_hash)

    async def test_existing_account_is_silently_kept(self, service, accounts, landlord_account):
        await service.sign_up("Eve", "Mallory", LANDLORD_EMAIL, "another-password")

        account = await accounts.get_by_email(LANDLORD_EMAIL)
        assert account == landlord_account


class TestPasswordReset:
    async def test_forgot_password_emails_a_token(self, service, email_notifier, landlord_account):
        await service.forgot_password(LANDLORD_EMAIL, "fr-FR")

        assert len(email_notifier.resets) == 1
        assert email_notifier.resets[0].recipient == LANDLORD_EMAIL
        assert email_notifier.resets[0].locale == "fr-FR"

    async def test_forgot_password_unknown_account(self, service, email_notifier, store):
        await service.forgot_password("nobody@example.com", "en-US")

        assert email_notifier.resets == []
        assert store.keys("reset:") == []

    async def test_delivery_failure_is_not_raised(self, service, email_notifier, landlord_account):
        email_notifier.fail = True

        await service.forgot_password(LANDLORD_EMAIL, "en-US")

    async def test_reset_password(self, service, accounts, email_notifier, landlord_account):
        await service.forgot_password(LANDLORD_EMAIL, "en-US")
        token = email_notifier.resets[0].payload

        await service.reset_password(token, "brand-new-password")

        account = await accounts.get_by_email(LANDLORD_EMAIL)
        assert verify_password("brand-new-password", account.password_hash)

        with pytest.raises(InvalidCredentialsError):
            await service.reset_password(token, "yet-another-password")


class TestAppCredentials:
    async def test_administrator_registers_application(self, service, organizations, administrator):
        expiry = datetime.now(UTC) + timedelta(days=90)

        credentials = await service.create_app_credentials(
            administrator, ORGANIZATION_ID, expiry, "accounting"
        )

        application = await organizations.get_application(ORGANIZATION_ID, credentials.client_id)
        assert application is not None
        assert application.name == "accounting"

    async def test_non_member_is_forbidden(self, service, landlord_account):
        principal = Principal(role=Role.ADMINISTRATOR, email=LANDLORD_EMAIL)

        with pytest.raises(ForbiddenError):
            await service.create_app_credentials(
                principal, ORGANIZATION_ID, datetime.now(UTC) + timedelta(days=1)
            )

    async def test_application_principal_is_forbidden(self, service, administrator):
        principal = Principal(
            kind=PrincipalKind.APPLICATION,
            role=Role.API_CLIENT,
            email=LANDLORD_EMAIL,
            organization_id=ORGANIZATION_ID,
        )

        with pytest.raises(ForbiddenError):
            await service.create_app_credentials(
                principal, ORGANIZATION_ID, datetime.now(UTC) + timedelta(days=1)
            )

    async def test_expiry_must_be_in_the_future(self, service, administrator):
        with pytest.raises(ValidationError):
            await service.create_app_credentials(
                administrator, ORGANIZATION_ID, datetime.now(UTC) - timedelta(days=1)
            )
