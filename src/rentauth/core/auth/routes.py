"""Landlord authentication API routes.

Provides endpoints for:
- Sign-up (when enabled)
- Sign-in with a password or with application credentials
- Refresh token rotation and sign-out
- Password reset
- Application credentials
"""

from fastapi import APIRouter, Depends, Request, Response, status

from rentauth.api.dependencies import AppSettings, LandlordSvc, Locale, TokenSvc
from rentauth.core.auth.cookies import (
    clear_token_cookie,
    expired_cookie_header,
    set_token_cookie,
)
from rentauth.core.auth.dependencies import CurrentPrincipal
from rentauth.core.auth.schemas import (
    AccessTokenResponse,
    AppCredentialsRequest,
    AppCredentialsResponse,
    ForgotPasswordRequest,
    RateLimitWarning,
    ResetPasswordRequest,
    SignInRequest,
    SignUpRequest,
)
from rentauth.core.constants import RATE_LIMIT_WARNING_REMAINING, REFRESH_TOKEN_COOKIE
from rentauth.core.errors import InvalidCredentialsError, NotFoundError, ValidationError
from rentauth.core.logging import get_client_ip
from rentauth.core.rate_limit import rate_limit


router = APIRouter(prefix="/landlord", tags=["landlord"])


def _missing_fields(*fields: str) -> ValidationError:
    return ValidationError(
        "Missing fields",
        errors=[{"field": field, "message": "Field required"} for field in fields],
    )


def _present(value: str | None) -> bool:
    return bool(value and value.strip())


def _rate_limit_warning(request: Request) -> RateLimitWarning | None:
    """Warn a successful sign-in that few attempts are left."""
    result = getattr(request.state, "rate_limit", None)
    if result is None or not 0 < result.remaining <= RATE_LIMIT_WARNING_REMAINING:
        return None
    return RateLimitWarning(
        message=(
            f"Security notice: {result.remaining} sign-in attempts remaining "
            "before a temporary lockout."
        ),
        attempts_remaining=result.remaining,
        total_attempts=result.limit,
    )


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    summary="Create a landlord account",
    description="Always answers 201, whether or not the email is already registered.",
    dependencies=[Depends(rate_limit("signup", "signup_account"))],
)
async def signup(
    data: SignUpRequest,
    service: LandlordSvc,
    settings: AppSettings,
) -> None:
    """Create a landlord account."""
    if not settings.signup_enabled:
        raise NotFoundError
    await service.sign_up(data.firstname, data.lastname, data.email, data.password)


@router.post(
    "/signin",
    response_model=AccessTokenResponse,
    response_model_exclude_none=True,
    summary="Sign in",
    description=(
        "Sign in with email and password (the refresh token is set as a "
        "cookie), or with application credentials (access token only)."
    ),
    dependencies=[Depends(rate_limit("auth", "auth_account", slow_down=True))],
)
async def signin(
    data: SignInRequest,
    request: Request,
    response: Response,
    service: LandlordSvc,
    settings: AppSettings,
) -> AccessTokenResponse:
    """Sign in a landlord or an application."""
    client_ip = get_client_ip(request) or "unknown"

    if _present(data.email):
        if not _present(data.password):
            raise _missing_fields("password")
        tokens = await service.sign_in(data.email, data.password, client_ip)  # type: ignore[arg-type]
        set_token_cookie(
            response,
            REFRESH_TOKEN_COOKIE,
            tokens.refresh_token,
            settings,
            max_age=settings.refresh_token_ttl_seconds,
        )
        return AccessTokenResponse(
            access_token=tokens.access_token,
            warning=_rate_limit_warning(request),
        )

    if _present(data.client_id):
        if not _present(data.client_secret):
            raise _missing_fields("clientSecret")
        token = await service.sign_in_application(
            data.client_id, data.client_secret, client_ip  # type: ignore[arg-type]
        )
        return AccessTokenResponse(
            access_token=token.access_token,
            organization_id=token.organization_id,
        )

    raise _missing_fields("email", "clientId")


@router.post(
    "/refreshtoken",
    response_model=AccessTokenResponse,
    response_model_exclude_none=True,
    summary="Rotate the refresh token",
    description="Exchange the refresh token cookie for a new pair. The old token is revoked.",
    dependencies=[Depends(rate_limit("token_refresh"))],
)
async def refresh_token(
    request: Request,
    response: Response,
    tokens: TokenSvc,
    settings: AppSettings,
) -> AccessTokenResponse:
    """Rotate the refresh token."""
    old_refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not old_refresh_token:
        raise InvalidCredentialsError

    pair = await tokens.rotate(old_refresh_token)
    if pair is None:
        raise InvalidCredentialsError(
            headers=expired_cookie_header(REFRESH_TOKEN_COOKIE, settings)
        )

    set_token_cookie(
        response,
        REFRESH_TOKEN_COOKIE,
        pair.refresh_token,
        settings,
        max_age=settings.refresh_token_ttl_seconds,
    )
    return AccessTokenResponse(access_token=pair.access_token)


@router.delete(
    "/signout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign out",
    description="Revoke the refresh token cookie. Answers 202 when there is none.",
)
async def signout(
    request: Request,
    response: Response,
    tokens: TokenSvc,
    settings: AppSettings,
) -> None:
    """Revoke the refresh token."""
    refresh = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not refresh:
        response.status_code = status.HTTP_202_ACCEPTED
        return

    await tokens.revoke(refresh)
    clear_token_cookie(response, REFRESH_TOKEN_COOKIE, settings)


@router.post(
    "/forgotpassword",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Request a password reset email",
    description="Always answers 204, whether or not the account exists.",
    dependencies=[Depends(rate_limit("password_reset", "password_reset_account"))],
)
async def forgot_password(
    data: ForgotPasswordRequest,
    service: LandlordSvc,
    locale: Locale,
) -> None:
    """Send a password reset link."""
    await service.forgot_password(data.email, locale)


@router.patch(
    "/resetpassword",
    summary="Reset the password",
    description="Set a new password with a single-use reset token.",
    dependencies=[Depends(rate_limit("auth"))],
)
async def reset_password(
    data: ResetPasswordRequest,
    service: LandlordSvc,
) -> Response:
    """Reset a password."""
    await service.reset_password(data.reset_token, data.password)
    return Response(status_code=status.HTTP_200_OK)


@router.post(
    "/appcredz",
    response_model=AppCredentialsResponse,
    summary="Create application credentials",
    description="Administrators of an organization mint machine credentials for it.",
)
async def create_app_credentials(
    data: AppCredentialsRequest,
    principal: CurrentPrincipal,
    service: LandlordSvc,
) -> AppCredentialsResponse:
    """Create application credentials."""
    credentials = await service.create_app_credentials(
        principal, data.organization_id, data.expiry, data.name
    )
    return AppCredentialsResponse(
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
    )
