"""Pytest configuration and shared fixtures.

The credential store, the notifiers and the directories are replaced by
in-memory fakes; store expiry follows a controllable clock.
"""

import math
import uuid
from collections.abc import AsyncGenerator, Generator
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from rentauth.api.dependencies import (
    get_account_directory,
    get_organization_directory,
    get_subject_directory,
)
from rentauth.config import Settings
from rentauth.core.auth.backend import hash_password
from rentauth.core.auth.service import TokenService
from rentauth.core.cache import WindowCount
from rentauth.core.database import get_db
from rentauth.core.directory import (
    AccountRecord,
    ApplicationRecord,
    ContactRecord,
    SubjectRecord,
)
from rentauth.core.errors import DeliveryError
from rentauth.core.notify import DeliveryReceipt
from rentauth.main import create_app


LANDLORD_EMAIL = "landlord@example.com"
LANDLORD_PASSWORD = "correct-horse-battery"
TENANT_EMAIL = "tenant@example.com"
TENANT_PHONE = "+18091234567"
ORGANIZATION_ID = "6f1c2a0e-5b7d-4c3e-9a8f-1d2e3f4a5b6c"


# ============================================================
# Fakes
# ============================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class InMemoryStore:
    """Credential store kept in a dict; entries expire on the fake clock."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.data: dict[str, tuple[str, datetime | None]] = {}
        self.closed = False

    def _live(self, key: str) -> tuple[str, datetime | None] | None:
        entry = self.data.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and self.clock() >= expires_at:
            del self.data[key]
            return None
        return entry

    def ttl(self, key: str) -> int | None:
        """Seconds left before ``key`` expires, None without expiry."""
        entry = self._live(key)
        if entry is None or entry[1] is None:
            return None
        return math.ceil((entry[1] - self.clock()).total_seconds())

    def keys(self, prefix: str = "") -> list[str]:
        return [key for key in list(self.data) if key.startswith(prefix) and self._live(key)]

    async def get(self, key: str) -> str | None:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        expires_at = self.clock() + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        self.data[key] = (value, expires_at)

    async def add(self, key: str, value: str, ttl_seconds: int) -> bool:
        if self._live(key) is not None:
            return False
        await self.set(key, value, ttl_seconds)
        return True

    async def delete(self, key: str) -> bool:
        if self._live(key) is None:
            return False
        del self.data[key]
        return True

    async def get_and_delete(self, key: str) -> str | None:
        entry = self._live(key)
        if entry is None:
            return None
        del self.data[key]
        return entry[0]

    async def hit(self, key: str, window_seconds: int) -> WindowCount:
        entry = self._live(key)
        if entry is None:
            entry = ("0", self.clock() + timedelta(seconds=window_seconds))
        count = int(entry[0]) + 1
        self.data[key] = (str(count), entry[1])
        return WindowCount(count=count, ttl=self.ttl(key) or window_seconds)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True


@dataclass(frozen=True)
class SentMessage:
    recipient: str
    payload: str
    locale: str


class RecordingNotifier:
    """Notifier that records deliveries instead of calling a collaborator."""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        self.sent: list[SentMessage] = []
        self.resets: list[SentMessage] = []
        self.fail = False

    @property
    def last_code(self) -> str:
        return self.sent[-1].payload

    def _deliver(self, outbox: list[SentMessage], message: SentMessage) -> DeliveryReceipt:
        if self.fail:
            raise DeliveryError
        outbox.append(message)
        return DeliveryReceipt(channel=self.channel, message_id=f"{self.channel}-{len(outbox)}")

    async def send_otp(self, recipient: str, code: str, locale: str) -> DeliveryReceipt:
        return self._deliver(self.sent, SentMessage(recipient, code, locale))

    async def send_reset_password(
        self, recipient: str, token: str, locale: str
    ) -> DeliveryReceipt:
        return self._deliver(self.resets, SentMessage(recipient, token, locale))

    async def aclose(self) -> None:
        pass


class InMemorySubjects:
    def __init__(self) -> None:
        self.subjects: list[SubjectRecord] = []

    def add(self, subject: SubjectRecord) -> SubjectRecord:
        self.subjects.append(subject)
        return subject

    def remove(self, subject_id: str) -> None:
        self.subjects = [s for s in self.subjects if s.id != subject_id]

    async def find_by_email(self, email: str) -> SubjectRecord | None:
        email = email.lower()
        for subject in self.subjects:
            if any(c.email and c.email.lower() == email for c in subject.contacts):
                return subject
        return None

    async def find_by_phone(self, phone: str) -> SubjectRecord | None:
        return next((s for s in self.subjects if s.contact_for_phone(phone)), None)


class InMemoryAccounts:
    def __init__(self) -> None:
        self.accounts: dict[str, AccountRecord] = {}

    async def get_by_email(self, email: str) -> AccountRecord | None:
        return self.accounts.get(email.lower())

    async def create(
        self, email: str, firstname: str, lastname: str, password_hash: str
    ) -> AccountRecord:
        account = AccountRecord(
            id=str(uuid.uuid4()),
            email=email.lower(),
            firstname=firstname,
            lastname=lastname,
            password_hash=password_hash,
        )
        self.accounts[account.email] = account
        return account

    async def set_password(self, email: str, password_hash: str) -> bool:
        account = self.accounts.get(email.lower())
        if account is None:
            return False
        self.accounts[account.email] = replace(account, password_hash=password_hash)
        return True


class InMemoryOrganizations:
    def __init__(self) -> None:
        self.applications: dict[tuple[str, str], ApplicationRecord] = {}
        self.members: dict[tuple[str, str], str] = {}

    def add_member(self, organization_id: str, email: str, role: str) -> None:
        self.members[(organization_id, email.lower())] = role

    async def get_application(
        self, organization_id: str, client_id: str
    ) -> ApplicationRecord | None:
        return self.applications.get((organization_id, client_id))

    async def get_member_role(self, organization_id: str, email: str) -> str | None:
        return self.members.get((organization_id, email.lower()))

    async def register_application(
        self, organization_id: str, client_id: str, client_secret_hash: str, name: str
    ) -> ApplicationRecord:
        application = ApplicationRecord(
            client_id=client_id,
            organization_id=organization_id,
            client_secret_hash=client_secret_hash,
            name=name,
        )
        self.applications[(organization_id, client_id)] = application
        return application


# ============================================================
# Core fixtures
# ============================================================


@pytest.fixture
def settings() -> Settings:
    """Test settings: no response floor and no slow-down delay."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        environment="test",
        signup_enabled=True,
        enumeration_guard_floor_ms=0,
        slow_down_step_ms=0,
        log_level="WARNING",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStore:
    return InMemoryStore(clock)


@pytest.fixture
def tokens(store: InMemoryStore, settings: Settings) -> TokenService:
    return TokenService(store, settings)


@pytest.fixture
def email_notifier() -> RecordingNotifier:
    return RecordingNotifier("email")


@pytest.fixture
def whatsapp_notifier() -> RecordingNotifier:
    return RecordingNotifier("whatsapp")


@pytest.fixture
def subjects() -> InMemorySubjects:
    return InMemorySubjects()


@pytest.fixture
def accounts() -> InMemoryAccounts:
    return InMemoryAccounts()


@pytest.fixture
def organizations() -> InMemoryOrganizations:
    return InMemoryOrganizations()


# ============================================================
# Records
# ============================================================


@pytest.fixture
def tenant_subject(subjects: InMemorySubjects) -> SubjectRecord:
    """A tenant reachable by email, and by WhatsApp on its first phone."""
    return subjects.add(
        SubjectRecord(
            id="tenant-1",
            name="Jane Renter",
            contacts=(
                ContactRecord(
                    email=TENANT_EMAIL,
                    phone1=TENANT_PHONE,
                    phone2="+18097654321",
                    whatsapp1=True,
                    whatsapp2=False,
                ),
            ),
        )
    )


@pytest.fixture
def landlord_account(accounts: InMemoryAccounts) -> AccountRecord:
    account = AccountRecord(
        id="account-1",
        email=LANDLORD_EMAIL,
        firstname="Lena",
        lastname="Lord",
        password_hash=hash_password(LANDLORD_PASSWORD),
    )
    accounts.accounts[account.email] = account
    return account


# ============================================================
# Application fixtures
# ============================================================


@pytest.fixture
def app(
    settings: Settings,
    store: InMemoryStore,
    clock: FakeClock,
    email_notifier: RecordingNotifier,
    whatsapp_notifier: RecordingNotifier,
    subjects: InMemorySubjects,
    accounts: InMemoryAccounts,
    organizations: InMemoryOrganizations,
) -> Generator[FastAPI, None, None]:
    """Create a test application wired to the in-memory fakes."""
    application = create_app(
        settings=settings,
        store=store,  # type: ignore[arg-type]
        email_notifier=email_notifier,  # type: ignore[arg-type]
        whatsapp_notifier=whatsapp_notifier,  # type: ignore[arg-type]
        clock=clock,
    )

    async def override_get_db() -> AsyncGenerator[AsyncMock, None]:
        yield AsyncMock()

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_subject_directory] = lambda: subjects
    application.dependency_overrides[get_account_directory] = lambda: accounts
    application.dependency_overrides[get_organization_directory] = lambda: organizations

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
