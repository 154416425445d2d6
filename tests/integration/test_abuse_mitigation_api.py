"""Integration tests for rate limiting and slow-down on credential routes."""

from dataclasses import replace

import pytest
from httpx import AsyncClient

from rentauth.core.rate_limit import SlowDown


pytestmark = pytest.mark.integration


class TestSignInLimits:
    async def test_sixth_sign_in_is_rejected(self, client: AsyncClient, landlord_account):
        """Five attempts per 15 minutes, then 429 with the remaining window."""
        payload = {"email": "landlord@example.com", "password": "not-the-password"}
        for _ in range(5):
            response = await client.post("/landlord/signin", json=payload)
            assert response.status_code == 401

        response = await client.post("/landlord/signin", json=payload)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "900"
        data = response.json()
        assert data["retry_after"] == 900
        assert data["reason"] == "signin"

    async def test_retry_after_counts_down(self, client: AsyncClient, clock):
        payload = {"email": "tenant@example.com"}
        for _ in range(5):
            await client.post("/tenant/signin", json=payload)
        clock.advance(600)

        response = await client.post("/tenant/signin", json=payload)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "300"

    async def test_window_expiry_lifts_the_limit(self, client: AsyncClient, clock):
        payload = {"email": "tenant@example.com"}
        for _ in range(6):
            await client.post("/tenant/signin", json=payload)
        clock.advance(900)

        response = await client.post("/tenant/signin", json=payload)

        assert response.status_code == 204

    async def test_account_budget_is_per_identifier(self, client: AsyncClient, app):
        """The account counter trips on its own with the same generic body."""
        policies = app.state.rate_limit_policies
        policies["auth"] = replace(policies["auth"], limit=100)

        for _ in range(5):
            await client.post("/tenant/signin", json={"email": "a@example.com"})

        blocked = await client.post("/tenant/signin", json={"email": "a@example.com"})
        other = await client.post("/tenant/signin", json={"email": "b@example.com"})

        assert blocked.status_code == 429
        assert blocked.json()["reason"] == "signin"
        assert "account" not in blocked.text
        assert other.status_code == 204

    async def test_forwarded_client_ip_is_the_scope(self, client: AsyncClient):
        for _ in range(6):
            await client.post(
                "/tenant/signin",
                json={"email": "tenant@example.com"},
                headers={"X-Forwarded-For": "198.51.100.1, 10.0.0.1"},
            )

        response = await client.post(
            "/tenant/signin",
            json={"email": "tenant@example.com"},
            headers={"X-Forwarded-For": "198.51.100.2"},
        )

        assert response.status_code == 204

    async def test_rate_limit_headers(self, client: AsyncClient):
        response = await client.post("/tenant/signin", json={"email": "tenant@example.com"})

        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "4"


class TestOtherRouteFamilies:
    async def test_password_reset_budget(self, client: AsyncClient):
        for _ in range(2):
            response = await client.post(
                "/landlord/forgotpassword", json={"email": "landlord@example.com"}
            )
            assert response.status_code == 204

        response = await client.post(
            "/landlord/forgotpassword", json={"email": "landlord@example.com"}
        )

        assert response.status_code == 429
        assert response.json()["reason"] == "password_reset"
        assert response.headers["Retry-After"] == "3600"

    async def test_token_refresh_budget(self, client: AsyncClient):
        for _ in range(20):
            await client.post("/landlord/refreshtoken")

        response = await client.post("/landlord/refreshtoken")

        assert response.status_code == 429
        assert response.json()["reason"] == "token_refresh"


class TestSlowDown:
    async def test_delay_after_free_attempts(self, client: AsyncClient, app, store):
        delays: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            delays.append(seconds)

        policy = replace(app.state.slow_down.policy, step_ms=500)
        app.state.slow_down = SlowDown(store, policy, sleep=fake_sleep)

        for _ in range(4):
            await client.post("/tenant/signin", json={"email": "tenant@example.com"})

        assert delays == [0.5, 1.0]

    async def test_delay_is_shared_by_all_sign_in_routes(
        self, client: AsyncClient, app, store
    ):
        delays: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            delays.append(seconds)

        policy = replace(app.state.slow_down.policy, step_ms=1000)
        app.state.slow_down = SlowDown(store, policy, sleep=fake_sleep)

        await client.post("/tenant/signin", json={"email": "tenant@example.com"})
        await client.post("/tenant/whatsapp/signin", json={"phoneNumber": "+18091234567"})
        await client.post(
            "/landlord/signin",
            json={"email": "landlord@example.com", "password": "not-the-password"},
        )
        await client.post("/tenant/signin", json={"email": "tenant@example.com"})

        assert delays == [1.0, 2.0]
