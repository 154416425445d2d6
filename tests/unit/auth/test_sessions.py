"""Unit tests for resolving bearer and cookie tokens to principals."""

import pytest

from rentauth.core.auth.backend import encode_token
from rentauth.core.auth.schemas import Principal, PrincipalKind, Role
from rentauth.core.auth.sessions import SessionValidator
from rentauth.core.errors import InvalidCredentialsError


@pytest.fixture
def validator(tokens) -> SessionValidator:
    return SessionValidator(tokens)


def _access_token(settings, claims: dict, token_type: str = "access", expires_in: int = 60) -> str:
    return encode_token(
        claims,
        settings.access_token_secret,
        settings.jwt_algorithm,
        expires_in=expires_in,
        token_type=token_type,
    )


class TestResolve:
    async def test_user_access_token(self, validator, tokens):
        pair = await tokens.issue(
            Principal(role=Role.ADMINISTRATOR, id="account-1", email="l@example.com")
        )

        principal = await validator.resolve(pair.access_token)

        assert principal.kind is PrincipalKind.USER
        assert principal.role is Role.ADMINISTRATOR
        assert principal.email == "l@example.com"

    async def test_tenant_session_token(self, validator, tokens):
        token = await tokens.issue_session(
            Principal(role=Role.TENANT, id="tenant-1", email="t@example.com"),
            "t@example.com",
        )

        principal = await validator.resolve(token)

        assert principal.role is Role.TENANT
        assert principal.id == "tenant-1"

    async def test_ended_session_is_rejected(self, validator, tokens):
        token = await tokens.issue_session(
            Principal(role=Role.TENANT, email="t@example.com"), "t@example.com"
        )
        await tokens.end_session(token)

        with pytest.raises(InvalidCredentialsError):
            await validator.resolve(token)

    async def test_application_token_maps_realm_id(self, validator, settings):
        token = _access_token(
            settings, {"application": {"clientId": "client-1", "realmId": "org-1"}}
        )

        principal = await validator.resolve(token)

        assert principal.kind is PrincipalKind.APPLICATION
        assert principal.role is Role.API_CLIENT
        assert principal.organization_id == "org-1"

    async def test_service_token_defaults_to_administrator(self, validator, tokens):
        principal = await validator.resolve(tokens.issue_service_token("emailer"))

        assert principal.kind is PrincipalKind.SERVICE
        assert principal.role is Role.ADMINISTRATOR
        assert principal.service_id == "emailer"

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    async def test_missing_or_malformed(self, validator, token):
        with pytest.raises(InvalidCredentialsError):
            await validator.resolve(token)

    async def test_expired_token(self, validator, settings):
        token = _access_token(settings, {"account": {"role": "administrator"}}, expires_in=-5)

        with pytest.raises(InvalidCredentialsError):
            await validator.resolve(token)

    async def test_refresh_token_is_not_an_access_token(self, validator, tokens):
        pair = await tokens.issue(Principal(role=Role.ADMINISTRATOR, email="l@example.com"))

        with pytest.raises(InvalidCredentialsError):
            await validator.resolve(pair.refresh_token)

    async def test_unknown_claim_shape(self, validator, settings):
        token = _access_token(settings, {"user": {"email": "l@example.com"}})

        with pytest.raises(InvalidCredentialsError):
            await validator.resolve(token)

    async def test_error_message_does_not_name_the_check(self, validator, settings):
        token = _access_token(settings, {"account": {}}, token_type="reset")

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await validator.resolve(token)

        assert exc_info.value.message == "Invalid credentials"
