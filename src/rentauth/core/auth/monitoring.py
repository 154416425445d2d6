"""Failed sign-in tracking for security alerts.

Counts are kept in the shared store per client IP and account identifier.
They only drive logging; throttling is the rate limiter's job.
"""

import structlog

from rentauth.core.cache import CredentialStore
from rentauth.core.constants import FAILED_ATTEMPT_WINDOW_SECONDS, MAX_FAILED_ATTEMPTS


logger = structlog.get_logger()

FAILED_PREFIX = "failed:"


class FailedAttemptTracker:
    def __init__(
        self,
        store: CredentialStore,
        threshold: int = MAX_FAILED_ATTEMPTS,
        window_seconds: int = FAILED_ATTEMPT_WINDOW_SECONDS,
    ) -> None:
        self.store = store
        self.threshold = threshold
        self.window_seconds = window_seconds

    def _key(self, ip: str, identifier: str) -> str:
        return f"{FAILED_PREFIX}{ip}:{identifier}"

    async def record_failure(self, ip: str, identifier: str) -> int:
        """Count a failed sign-in; alert once the threshold is reached.

        Returns:
            Failures counted in the current window
        """
        window = await self.store.hit(self._key(ip, identifier), self.window_seconds)
        if window.count >= self.threshold:
            logger.error(
                "security_alert_repeated_failures",
                client_ip=ip,
                identifier=identifier,
                failures=window.count,
                window_seconds=self.window_seconds,
            )
        return window.count

    async def clear(self, ip: str, identifier: str) -> None:
        await self.store.delete(self._key(ip, identifier))
