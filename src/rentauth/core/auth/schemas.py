"""Authentication schemas for principals and token handling."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from rentauth.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PASSWORD_LENGTH,
    MAX_PHONE_LENGTH,
    MIN_PASSWORD_LENGTH,
)


class Role(StrEnum):
    """Roles a principal can carry."""

    ADMINISTRATOR = "administrator"
    TENANT = "tenant"
    API_CLIENT = "api_client"


class PrincipalKind(StrEnum):
    """Shape of the identity embedded in a token."""

    USER = "user"
    APPLICATION = "application"
    SERVICE = "service"


# Token claim holding the principal snapshot, per kind
PRINCIPAL_CLAIMS: dict[PrincipalKind, str] = {
    PrincipalKind.USER: "account",
    PrincipalKind.APPLICATION: "application",
    PrincipalKind.SERVICE: "service",
}

DEFAULT_ROLES: dict[PrincipalKind, Role] = {
    PrincipalKind.USER: Role.ADMINISTRATOR,
    PrincipalKind.APPLICATION: Role.API_CLIENT,
    PrincipalKind.SERVICE: Role.ADMINISTRATOR,
}


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, as the platform expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Principal(CamelModel):
    """The authenticated identity and role attached to a request.

    Attributes:
        kind: User, application (machine) or internal service
        role: Role granted to the principal
        id: Subject or account identifier
        email: Contact email, if any
        phone: Phone number the principal signed in with, if any
        organization_id: Organization an application or service acts for
        client_id: Application client identifier
        service_id: Internal service identifier
    """

    kind: PrincipalKind = PrincipalKind.USER
    role: Role
    id: str | None = None
    email: str | None = None
    phone: str | None = None
    organization_id: str | None = None
    client_id: str | None = None
    service_id: str | None = None

    def to_claims(self) -> dict[str, Any]:
        """Embed the principal under the claim named after its kind."""
        snapshot = self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude={"kind"}
        )
        return {PRINCIPAL_CLAIMS[self.kind]: snapshot}

    @classmethod
    def from_claims(cls, payload: dict[str, Any]) -> "Principal | None":
        """Rebuild a principal from decoded token claims.

        Recognizes the ``account``, ``application`` and ``service`` shapes;
        each falls back to its own default role when none is embedded.

        Returns:
            The principal, or None if no known shape is present
        """
        for kind, claim in PRINCIPAL_CLAIMS.items():
            snapshot = payload.get(claim)
            if not isinstance(snapshot, dict):
                continue
            data = {key: value for key, value in snapshot.items() if value is not None}
            data.setdefault("role", DEFAULT_ROLES[kind])
            # Platform services name the organization "realmId"
            if kind is not PrincipalKind.USER and "realmId" in data:
                data.setdefault("organizationId", data.pop("realmId"))
            try:
                return cls.model_validate({**data, "kind": kind})
            except ValueError:
                return None
        return None


class TokenPair(CamelModel):
    """A pair of access and refresh tokens.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: JWT whose validity also requires a store entry
        expires_in: Access token expiration in seconds
    """

    access_token: str
    refresh_token: str
    expires_in: int


class MachineToken(CamelModel):
    """Access token issued to an application from its own credentials."""

    access_token: str
    organization_id: str


class AppCredentials(CamelModel):
    """Freshly minted application credentials.

    ``client_secret_hash`` is what the organization directory must store;
    it is never returned to the caller.
    """

    client_id: str
    client_secret: str
    client_secret_hash: str


class TenantSession(CamelModel):
    """Outcome of a successful passcode verification."""

    session_token: str
    principal: Principal


# ============================================================
# Request / response bodies
# ============================================================


class SignInRequest(CamelModel):
    """Landlord sign-in, by password or by application credentials.

    The route picks the flow from which fields are present.
    """

    email: str | None = None
    password: str | None = None
    client_id: str | None = None
    client_secret: str | None = None


class RateLimitWarning(CamelModel):
    """Notice added to a successful sign-in close to the lockout."""

    message: str
    attempts_remaining: int
    total_attempts: int


class AccessTokenResponse(CamelModel):
    """Access token of a user, or of an application with its organization."""

    access_token: str
    organization_id: str | None = None
    warning: RateLimitWarning | None = None


class SignUpRequest(CamelModel):
    firstname: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    lastname: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: EmailStr = Field(..., max_length=MAX_EMAIL_LENGTH)
    password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )


class ForgotPasswordRequest(CamelModel):
    email: EmailStr = Field(..., max_length=MAX_EMAIL_LENGTH)


class ResetPasswordRequest(CamelModel):
    reset_token: str = Field(..., min_length=1)
    password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )


class AppCredentialsRequest(CamelModel):
    """Request for new application credentials of an organization."""

    organization_id: str = Field(..., min_length=1)
    expiry: datetime
    name: str = Field("", max_length=MAX_NAME_LENGTH)


class AppCredentialsResponse(CamelModel):
    client_id: str
    client_secret: str


class EmailOtpRequest(CamelModel):
    email: str | None = None


class WhatsAppOtpRequest(CamelModel):
    phone_number: str | None = Field(None, max_length=MAX_PHONE_LENGTH)


class SessionTokenResponse(CamelModel):
    session_token: str


class TenantUser(CamelModel):
    email: str | None = None
    phone: str | None = None
    role: Role
    tenant_id: str | None = None

    @classmethod
    def from_principal(cls, principal: Principal) -> "TenantUser":
        return cls(
            email=principal.email,
            phone=principal.phone,
            role=principal.role,
            tenant_id=principal.id,
        )


class WhatsAppSessionResponse(CamelModel):
    session_token: str
    user: TenantUser
