"""Views of the records owned by the platform API.

The authentication core never writes tenants; it only looks them up.
Landlord sign-up and password reset write through the account directory,
and newly minted application credentials are registered with their
organization.
"""

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class ContactRecord:
    """One contact of a tenant, with per-phone WhatsApp capability."""

    email: str | None = None
    phone1: str | None = None
    phone2: str | None = None
    whatsapp1: bool = False
    whatsapp2: bool = False

    def has_phone(self, phone: str) -> bool:
        return phone in (self.phone1, self.phone2)

    def whatsapp_enabled_for(self, phone: str) -> bool:
        """WhatsApp flag of the given phone; each phone carries its own."""
        if self.phone1 == phone:
            return self.whatsapp1
        if self.phone2 == phone:
            return self.whatsapp2
        return False


@dataclass(frozen=True)
class SubjectRecord:
    """A tenant as seen by the authentication core."""

    id: str
    name: str = ""
    contacts: tuple[ContactRecord, ...] = field(default_factory=tuple)

    def contact_for_phone(self, phone: str) -> ContactRecord | None:
        return next((c for c in self.contacts if c.has_phone(phone)), None)


@dataclass(frozen=True)
class AccountRecord:
    """A landlord account."""

    id: str
    email: str
    firstname: str = ""
    lastname: str = ""
    password_hash: str | None = None


@dataclass(frozen=True)
class ApplicationRecord:
    """An application registered by an organization for machine access."""

    client_id: str
    organization_id: str
    client_secret_hash: str
    name: str = ""


class SubjectDirectory(Protocol):
    """Tenant lookups by contact email or phone."""

    async def find_by_email(self, email: str) -> SubjectRecord | None: ...

    async def find_by_phone(self, phone: str) -> SubjectRecord | None: ...


class AccountDirectory(Protocol):
    """Landlord account lookups and the writes sign-up and reset need."""

    async def get_by_email(self, email: str) -> AccountRecord | None: ...

    async def create(
        self, email: str, firstname: str, lastname: str, password_hash: str
    ) -> AccountRecord: ...

    async def set_password(self, email: str, password_hash: str) -> bool: ...


class OrganizationDirectory(Protocol):
    """Organization applications and membership roles."""

    async def get_application(
        self, organization_id: str, client_id: str
    ) -> ApplicationRecord | None: ...

    async def get_member_role(self, organization_id: str, email: str) -> str | None: ...

    async def register_application(
        self, organization_id: str, client_id: str, client_secret_hash: str, name: str
    ) -> ApplicationRecord: ...
