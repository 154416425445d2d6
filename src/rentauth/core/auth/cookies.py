"""Token cookies shared by the landlord and tenant routes."""

from fastapi import Response

from rentauth.config import Settings


def set_token_cookie(
    response: Response, name: str, value: str, settings: Settings, max_age: int
) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,  # type: ignore[arg-type]
        domain=settings.cookie_domain,
        path="/",
    )


def clear_token_cookie(response: Response, name: str, settings: Settings) -> None:
    response.delete_cookie(
        name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,  # type: ignore[arg-type]
        domain=settings.cookie_domain,
        path="/",
    )


def expired_cookie_header(name: str, settings: Settings) -> dict[str, str]:
    """``Set-Cookie`` header clearing a cookie, for error responses."""
    scratch = Response()
    clear_token_cookie(scratch, name, settings)
    return {"set-cookie": scratch.headers["set-cookie"]}
