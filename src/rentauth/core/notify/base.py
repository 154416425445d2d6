"""Delivery policy shared by every notification collaborator.

A notifier asks a collaborator service to deliver a payload to one
recipient. Whatever the channel, a call is bounded by a timeout, retried a
limited number of times on transport errors and 5xx responses, and guarded
by a circuit breaker. Every failure surfaces as ``DeliveryError``.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from rentauth.config import Settings
from rentauth.core.errors import DeliveryError


logger = structlog.get_logger()


@dataclass(frozen=True)
class DeliveryReceipt:
    """Acknowledgement returned by a collaborator."""

    channel: str
    message_id: str | None = None


@dataclass(frozen=True)
class DeliveryPolicy:
    """Timeout, retry and circuit-breaker settings of a notifier."""

    timeout_seconds: float = 5.0
    max_retries: int = 1
    breaker_threshold: int = 5
    breaker_cooldown_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "DeliveryPolicy":
        return cls(
            timeout_seconds=settings.delivery_timeout_seconds,
            max_retries=settings.delivery_max_retries,
            breaker_threshold=settings.delivery_breaker_threshold,
            breaker_cooldown_seconds=settings.delivery_breaker_cooldown_seconds,
        )


class Notifier(Protocol):
    """Delivers one-time passcodes on a channel."""

    channel: str

    async def send_otp(self, recipient: str, code: str, locale: str) -> DeliveryReceipt: ...


class CircuitBreaker:
    """Consecutive-failure circuit breaker.

    Opens after ``threshold`` consecutive failures and rejects calls until
    ``cooldown_seconds`` have elapsed; the next call is then let through
    and a single failure reopens it.
    """

    def __init__(
        self,
        threshold: int,
        cooldown_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.threshold = threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._failures = 0
        self._opened_at: float | None = None

    @property
    def is_open(self) -> bool:
        if self._opened_at is None:
            return False
        return self._clock() - self._opened_at < self.cooldown_seconds

    def record_success(self) -> None:
        self._failures = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self._failures += 1
        if self._failures >= self.threshold:
            self._opened_at = self._clock()


class _RetryableFailure(Exception):
    pass


class HttpNotifier:
    """Base class for collaborators reached with JSON over HTTP.

    Subclasses set ``channel`` and build payloads; ``_post`` applies the
    delivery policy.
    """

    channel: str = "http"

    def __init__(
        self,
        base_url: str,
        policy: DeliveryPolicy | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the notifier.

        Args:
            base_url: Root URL of the collaborator service
            policy: Delivery policy, defaults apply if omitted
            client: HTTP client; one is created (and owned) if omitted
            clock: Monotonic clock used by the circuit breaker
        """
        self.base_url = base_url.rstrip("/")
        self.policy = policy or DeliveryPolicy()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()
        self.breaker = CircuitBreaker(
            self.policy.breaker_threshold,
            self.policy.breaker_cooldown_seconds,
            clock=clock,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _post(
        self,
        path: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """POST a JSON payload under the delivery policy.

        Returns:
            The decoded JSON response, or an empty dict for an empty body

        Raises:
            DeliveryError: If the breaker is open or every attempt failed
        """
        url = f"{self.base_url}{path}"
        if self.breaker.is_open:
            logger.warning("delivery_skipped_circuit_open", channel=self.channel, url=url)
            raise DeliveryError

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.policy.max_retries + 1),
            retry=retry_if_exception_type(_RetryableFailure),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            data = await retrying(self._attempt, url, payload, headers)
        except _RetryableFailure as exc:
            logger.error(
                "delivery_failed", channel=self.channel, url=url, error=str(exc)
            )
        except (httpx.HTTPStatusError, ValueError) as exc:
            # Refusals are final, never retried
            logger.error(
                "delivery_rejected", channel=self.channel, url=url, error=str(exc)
            )
        else:
            self.breaker.record_success()
            return data

        self.breaker.record_failure()
        raise DeliveryError

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "delivery_attempt_failed",
            channel=self.channel,
            attempt=retry_state.attempt_number,
            error=str(error),
        )

    async def _attempt(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None,
    ) -> dict[str, Any]:
        try:
            response = await self.client.post(
                url,
                json=payload,
                headers=headers,
                timeout=self.policy.timeout_seconds,
            )
        except httpx.TransportError as exc:
            raise _RetryableFailure(f"{type(exc).__name__}: {exc}") from exc

        if response.status_code >= 500:
            raise _RetryableFailure(f"status {response.status_code}")
        response.raise_for_status()

        if not response.content:
            return {}
        data = response.json()
        return data if isinstance(data, dict) else {}
