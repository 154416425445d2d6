"""Tenant portal authentication API routes.

Tenants sign in without a password: they ask for a one-time passcode by
email or WhatsApp, then exchange it for a session cookie.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials

from rentauth.api.dependencies import AppSettings, Locale, OtpSvc, TokenSvc
from rentauth.core.auth.cookies import clear_token_cookie, set_token_cookie
from rentauth.core.auth.dependencies import CurrentPrincipal, bearer_scheme, extract_token
from rentauth.core.auth.schemas import (
    EmailOtpRequest,
    SessionTokenResponse,
    TenantUser,
    WhatsAppOtpRequest,
    WhatsAppSessionResponse,
)
from rentauth.core.constants import SESSION_TOKEN_COOKIE
from rentauth.core.otp import OtpChannel
from rentauth.core.rate_limit import rate_limit


router = APIRouter(prefix="/tenant", tags=["tenant"])

otp_request_limits = [Depends(rate_limit("auth", "auth_account", slow_down=True))]
otp_verify_limits = [Depends(rate_limit("auth"))]


@router.post(
    "/signin",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Request a passcode by email",
    description="Always answers 204, whether or not a tenant uses this email.",
    dependencies=otp_request_limits,
)
async def signin(data: EmailOtpRequest, otp: OtpSvc, locale: Locale) -> None:
    """Email a one-time passcode."""
    await otp.request_otp(data.email, OtpChannel.EMAIL, locale)


@router.post(
    "/whatsapp/signin",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Request a passcode by WhatsApp",
    description=(
        "Always answers 204, whether or not a tenant uses this phone number "
        "with WhatsApp enabled."
    ),
    dependencies=otp_request_limits,
)
async def whatsapp_signin(data: WhatsAppOtpRequest, otp: OtpSvc, locale: Locale) -> None:
    """Send a one-time passcode over WhatsApp."""
    await otp.request_otp(data.phone_number, OtpChannel.WHATSAPP, locale)


@router.get(
    "/signedin",
    response_model=SessionTokenResponse,
    summary="Verify a passcode",
    description="Consume a passcode from either channel and open a session.",
    dependencies=otp_verify_limits,
)
async def signed_in(
    response: Response,
    otp_svc: OtpSvc,
    settings: AppSettings,
    otp: str | None = None,
) -> SessionTokenResponse:
    """Exchange a passcode for a session."""
    session = await otp_svc.verify_otp(otp)
    set_token_cookie(
        response,
        SESSION_TOKEN_COOKIE,
        session.session_token,
        settings,
        max_age=settings.session_token_ttl_seconds,
    )
    return SessionTokenResponse(session_token=session.session_token)


@router.get(
    "/whatsapp/signedin",
    response_model=WhatsAppSessionResponse,
    response_model_exclude_none=True,
    summary="Verify a WhatsApp passcode",
    description="Consume a WhatsApp passcode and open a session.",
    dependencies=otp_verify_limits,
)
async def whatsapp_signed_in(
    response: Response,
    otp_svc: OtpSvc,
    settings: AppSettings,
    otp: str | None = None,
) -> WhatsAppSessionResponse:
    """Exchange a WhatsApp passcode for a session."""
    session = await otp_svc.verify_otp(otp, OtpChannel.WHATSAPP)
    set_token_cookie(
        response,
        SESSION_TOKEN_COOKIE,
        session.session_token,
        settings,
        max_age=settings.session_token_ttl_seconds,
    )
    return WhatsAppSessionResponse(
        session_token=session.session_token,
        user=TenantUser.from_principal(session.principal),
    )


@router.get(
    "/session",
    response_model=TenantUser,
    response_model_exclude_none=True,
    summary="Current session",
    description="Principal of the session cookie or bearer token.",
)
async def get_session(principal: CurrentPrincipal) -> TenantUser:
    """Describe the current session."""
    return TenantUser.from_principal(principal)


@router.delete(
    "/signout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign out",
    description="End the session. Answers 204 even without one.",
)
async def signout(
    request: Request,
    response: Response,
    tokens: TokenSvc,
    settings: AppSettings,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> None:
    """End the tenant session."""
    session_token = extract_token(request, credentials)
    if not session_token:
        return

    await tokens.end_session(session_token)
    clear_token_cookie(response, SESSION_TOKEN_COOKIE, settings)
