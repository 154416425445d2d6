"""Resolution of inbound bearer or cookie tokens to principals."""

import structlog

from rentauth.core.auth.backend import TokenError, decode_token
from rentauth.core.auth.schemas import Principal
from rentauth.core.auth.service import TokenService
from rentauth.core.errors import InvalidCredentialsError


logger = structlog.get_logger()

ACCEPTED_TOKEN_TYPES = ("access", "session")


class SessionValidator:
    """Turns a token into the principal it was issued for.

    Access tokens (users, applications, internal services) are
    self-contained. Tenant session tokens additionally need their store
    entry, which sign-out deletes.
    """

    def __init__(self, tokens: TokenService) -> None:
        self.tokens = tokens

    async def resolve(self, token: str | None) -> Principal:
        """Resolve a token to a principal.

        Raises:
            InvalidCredentialsError: For a missing, malformed, expired, not
                yet valid, unrecognized or signed-out token
        """
        if not token:
            logger.info("token_rejected", reason="missing")
            raise InvalidCredentialsError

        settings = self.tokens.settings
        try:
            payload = decode_token(
                token, settings.access_token_secret, settings.jwt_algorithm
            )
        except TokenError as exc:
            logger.info("token_rejected", reason=exc.reason)
            raise InvalidCredentialsError from exc

        token_type = payload.get("type")
        if token_type not in ACCEPTED_TOKEN_TYPES:
            logger.info("token_rejected", reason="wrong_type", token_type=token_type)
            raise InvalidCredentialsError

        principal = Principal.from_claims(payload)
        if principal is None:
            logger.info("token_rejected", reason="unknown_shape")
            raise InvalidCredentialsError

        if token_type == "session" and not await self.tokens.session_exists(token):
            logger.info("token_rejected", reason="session_ended")
            raise InvalidCredentialsError

        return principal
