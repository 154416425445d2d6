"""Shared API dependencies.

Runtime collaborators (store, notifiers, limiter, clock) hang off
``app.state``; these providers build the per-request services on top of
them. Tests swap directories through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rentauth.config import Settings
from rentauth.core.auth.landlord import LandlordAuthService
from rentauth.core.auth.monitoring import FailedAttemptTracker
from rentauth.core.auth.service import TokenService
from rentauth.core.auth.sessions import SessionValidator
from rentauth.core.cache import CredentialStore
from rentauth.core.database import get_db
from rentauth.core.directory import AccountDirectory, OrganizationDirectory, SubjectDirectory
from rentauth.core.otp import OtpChannel, OtpCoordinator
from rentauth.core.utils.locale import negotiate_locale
from rentauth.modules.accounts import AccountRepository
from rentauth.modules.organizations import OrganizationRepository
from rentauth.modules.tenants import TenantRepository


# Type alias for database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> CredentialStore:
    return request.app.state.store


AppSettings = Annotated[Settings, Depends(get_settings)]
Store = Annotated[CredentialStore, Depends(get_store)]


def get_locale(request: Request) -> str:
    """Locale for collaborator templates, from Accept-Language."""
    return negotiate_locale(request.headers.get("Accept-Language"))


Locale = Annotated[str, Depends(get_locale)]


# ============================================================
# Directories
# ============================================================


def get_subject_directory(db: DBSession) -> SubjectDirectory:
    return TenantRepository(db)


def get_account_directory(db: DBSession) -> AccountDirectory:
    return AccountRepository(db)


def get_organization_directory(db: DBSession) -> OrganizationDirectory:
    return OrganizationRepository(db)


Subjects = Annotated[SubjectDirectory, Depends(get_subject_directory)]
Accounts = Annotated[AccountDirectory, Depends(get_account_directory)]
Organizations = Annotated[OrganizationDirectory, Depends(get_organization_directory)]


# ============================================================
# Services
# ============================================================


def get_token_service(store: Store, settings: AppSettings) -> TokenService:
    return TokenService(store, settings)


TokenSvc = Annotated[TokenService, Depends(get_token_service)]


def get_session_validator(tokens: TokenSvc) -> SessionValidator:
    return SessionValidator(tokens)


Validator = Annotated[SessionValidator, Depends(get_session_validator)]


def get_otp_coordinator(
    request: Request,
    tokens: TokenSvc,
    subjects: Subjects,
    settings: AppSettings,
) -> OtpCoordinator:
    state = request.app.state
    return OtpCoordinator(
        store=tokens.store,
        tokens=tokens,
        subjects=subjects,
        notifiers={
            OtpChannel.EMAIL: state.email_notifier,
            OtpChannel.WHATSAPP: state.whatsapp_notifier,
        },
        clock=state.clock,
        guard_floor_seconds=settings.enumeration_guard_floor_ms / 1000,
    )


OtpSvc = Annotated[OtpCoordinator, Depends(get_otp_coordinator)]


def get_landlord_service(
    request: Request,
    tokens: TokenSvc,
    accounts: Accounts,
    organizations: Organizations,
    settings: AppSettings,
) -> LandlordAuthService:
    return LandlordAuthService(
        tokens=tokens,
        accounts=accounts,
        organizations=organizations,
        emailer=request.app.state.email_notifier,
        failed_attempts=FailedAttemptTracker(tokens.store),
        guard_floor_seconds=settings.enumeration_guard_floor_ms / 1000,
    )


LandlordSvc = Annotated[LandlordAuthService, Depends(get_landlord_service)]
