"""Rate limit budgets of the credential-issuing routes."""

from dataclasses import dataclass

from rentauth.config import Settings


@dataclass(frozen=True)
class RateLimitPolicy:
    """A fixed-window budget.

    Attributes:
        name: Counter namespace
        limit: Requests allowed per window
        window: Window length in seconds
        reason: Route family reported to clients when the budget is spent
        per_account: Scope the counter by IP and request identifier
    """

    name: str
    limit: int
    window: int
    reason: str
    per_account: bool = False


@dataclass(frozen=True)
class SlowDownPolicy:
    """Progressive delay settings."""

    window: int
    delay_after: int
    step_ms: int
    max_delay_ms: int


# Route families, as reported in 429 responses
SIGNIN = "signin"
PASSWORD_RESET = "password_reset"
SIGNUP = "signup"
TOKEN_REFRESH = "token_refresh"


def build_policies(settings: Settings) -> dict[str, RateLimitPolicy]:
    """Build the named policies from settings."""
    policies = [
        RateLimitPolicy(
            "auth",
            settings.auth_rate_limit_requests,
            settings.auth_rate_limit_window,
            SIGNIN,
        ),
        RateLimitPolicy(
            "auth_account",
            settings.auth_account_rate_limit_requests,
            settings.auth_rate_limit_window,
            SIGNIN,
            per_account=True,
        ),
        RateLimitPolicy(
            "password_reset",
            settings.password_reset_rate_limit_requests,
            settings.password_reset_rate_limit_window,
            PASSWORD_RESET,
        ),
        RateLimitPolicy(
            "password_reset_account",
            settings.password_reset_account_rate_limit_requests,
            settings.password_reset_rate_limit_window,
            PASSWORD_RESET,
            per_account=True,
        ),
        RateLimitPolicy(
            "signup",
            settings.signup_rate_limit_requests,
            settings.signup_rate_limit_window,
            SIGNUP,
        ),
        RateLimitPolicy(
            "signup_account",
            settings.signup_account_rate_limit_requests,
            settings.signup_rate_limit_window,
            SIGNUP,
            per_account=True,
        ),
        RateLimitPolicy(
            "token_refresh",
            settings.token_refresh_rate_limit_requests,
            settings.token_refresh_rate_limit_window,
            TOKEN_REFRESH,
        ),
    ]
    return {policy.name: policy for policy in policies}


def build_slow_down_policy(settings: Settings) -> SlowDownPolicy:
    return SlowDownPolicy(
        window=settings.slow_down_window,
        delay_after=settings.slow_down_after,
        step_ms=settings.slow_down_step_ms,
        max_delay_ms=settings.slow_down_max_delay_ms,
    )
