"""Tests for the emailer and WhatsApp collaborator clients."""

import json

import httpx
import pytest

from rentauth.core.errors import DeliveryError
from rentauth.core.notify import (
    CircuitBreaker,
    DeliveryPolicy,
    EmailNotifier,
    WhatsAppNotifier,
)


class Recorder:
    """MockTransport handler replaying canned responses."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def make_client(recorder: Recorder) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(recorder))


class TestEmailNotifier:
    async def test_send_otp_payload(self):
        recorder = Recorder(httpx.Response(200, json={"messageId": "m-1"}))
        notifier = EmailNotifier("http://emailer/emailer/", client=make_client(recorder))

        receipt = await notifier.send_otp("tenant@example.com", "123456", "pt-BR")

        request = recorder.requests[0]
        assert str(request.url) == "http://emailer/emailer/otp"
        assert request.headers["Accept-Language"] == "pt-BR"
        assert json.loads(request.content) == {
            "templateName": "otp",
            "recordId": "tenant@example.com",
            "params": {"otp": "123456"},
        }
        assert receipt.message_id == "m-1"
        assert receipt.channel == "email"

    async def test_send_reset_password_payload(self):
        recorder = Recorder(httpx.Response(204))
        notifier = EmailNotifier("http://emailer", client=make_client(recorder))

        receipt = await notifier.send_reset_password("l@example.com", "reset-token", "en-US")

        body = json.loads(recorder.requests[0].content)
        assert recorder.requests[0].url.path == "/resetpassword"
        assert body["templateName"] == "reset_password"
        assert body["params"] == {"token": "reset-token"}
        assert receipt.message_id is None

    async def test_server_error_is_retried(self):
        recorder = Recorder(httpx.Response(503), httpx.Response(200, json={}))
        notifier = EmailNotifier(
            "http://emailer", DeliveryPolicy(max_retries=1), client=make_client(recorder)
        )

        await notifier.send_otp("tenant@example.com", "123456", "en-US")

        assert len(recorder.requests) == 2

    async def test_transport_error_is_retried_then_fails(self):
        recorder = Recorder(httpx.ConnectError("connection refused"))
        notifier = EmailNotifier(
            "http://emailer", DeliveryPolicy(max_retries=2), client=make_client(recorder)
        )

        with pytest.raises(DeliveryError):
            await notifier.send_otp("tenant@example.com", "123456", "en-US")

        assert len(recorder.requests) == 3

    async def test_client_error_is_not_retried(self):
        recorder = Recorder(httpx.Response(400, json={"error": "bad template"}))
        notifier = EmailNotifier(
            "http://emailer", DeliveryPolicy(max_retries=3), client=make_client(recorder)
        )

        with pytest.raises(DeliveryError):
            await notifier.send_otp("tenant@example.com", "123456", "en-US")

        assert len(recorder.requests) == 1

    async def test_zero_retries_means_a_single_attempt(self):
        recorder = Recorder(httpx.Response(503))
        notifier = EmailNotifier(
            "http://emailer", DeliveryPolicy(max_retries=0), client=make_client(recorder)
        )

        with pytest.raises(DeliveryError):
            await notifier.send_otp("tenant@example.com", "123456", "en-US")

        assert len(recorder.requests) == 1

    async def test_exhausted_retries_count_once_against_the_breaker(self):
        recorder = Recorder(httpx.Response(502))
        notifier = EmailNotifier(
            "http://emailer",
            DeliveryPolicy(max_retries=2, breaker_threshold=2),
            client=make_client(recorder),
        )

        with pytest.raises(DeliveryError):
            await notifier.send_otp("tenant@example.com", "123456", "en-US")

        assert len(recorder.requests) == 3
        assert notifier.breaker.is_open is False


class TestWhatsAppNotifier:
    async def test_send_otp_payload(self):
        recorder = Recorder(httpx.Response(200, json={"success": True, "messageId": "wa-1"}))
        notifier = WhatsAppNotifier("http://whatsapp/whatsapp", client=make_client(recorder))

        receipt = await notifier.send_otp("+18091234567", "654321", "es-CO")

        assert json.loads(recorder.requests[0].content) == {
            "phoneNumber": "+18091234567",
            "otp": "654321",
            "locale": "es-CO",
        }
        assert receipt.message_id == "wa-1"
        assert receipt.channel == "whatsapp"

    async def test_refusal_is_a_delivery_error(self):
        recorder = Recorder(
            httpx.Response(200, json={"success": False, "error": "not on whatsapp"})
        )
        notifier = WhatsAppNotifier(
            "http://whatsapp", DeliveryPolicy(max_retries=2), client=make_client(recorder)
        )

        with pytest.raises(DeliveryError):
            await notifier.send_otp("+18091234567", "654321", "en-US")

        assert len(recorder.requests) == 1


class TestCircuitBreaker:
    async def test_open_breaker_skips_the_collaborator(self):
        recorder = Recorder(httpx.Response(500))
        notifier = EmailNotifier(
            "http://emailer",
            DeliveryPolicy(max_retries=0, breaker_threshold=2, breaker_cooldown_seconds=30),
            client=make_client(recorder),
        )

        for _ in range(3):
            with pytest.raises(DeliveryError):
                await notifier.send_otp("tenant@example.com", "123456", "en-US")

        assert len(recorder.requests) == 2

    def test_breaker_half_opens_after_cooldown(self):
        now = [0.0]
        breaker = CircuitBreaker(threshold=1, cooldown_seconds=30, clock=lambda: now[0])

        breaker.record_failure()
        assert breaker.is_open

        now[0] = 31.0
        assert not breaker.is_open

        breaker.record_failure()
        assert breaker.is_open

    def test_success_closes_the_breaker(self):
        breaker = CircuitBreaker(threshold=2, cooldown_seconds=30)

        breaker.record_failure()
        breaker.record_success()
        breaker.record_failure()

        assert not breaker.is_open


class TestDeliveryPolicy:
    def test_from_settings(self, settings):
        policy = DeliveryPolicy.from_settings(settings)

        assert policy.timeout_seconds == 5.0
        assert policy.max_retries == 1
        assert policy.breaker_threshold == 5
