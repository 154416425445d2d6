"""Tenant repository implementing the subject directory."""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentauth.core.directory import ContactRecord, SubjectRecord
from rentauth.modules.tenants.models import Tenant, TenantContact


def to_subject_record(tenant: Tenant) -> SubjectRecord:
    """Convert a tenant and its contacts to the directory view."""
    return SubjectRecord(
        id=str(tenant.id),
        name=tenant.name,
        contacts=tuple(
            ContactRecord(
                email=contact.email.lower() if contact.email else None,
                phone1=contact.phone1,
                phone2=contact.phone2,
                whatsapp1=bool(contact.whatsapp1),
                whatsapp2=bool(contact.whatsapp2),
            )
            for contact in tenant.contacts
        ),
    )


class TenantRepository:
    """Tenant lookups by contact email or phone.

    When several tenants share a contact, the oldest one wins.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _first(self, *criteria) -> SubjectRecord | None:  # type: ignore[no-untyped-def]
        result = await self.session.execute(
            select(Tenant)
            .join(TenantContact)
            .where(*criteria)
            .order_by(Tenant.created_at)
            .limit(1)
        )
        tenant = result.scalars().first()
        return to_subject_record(tenant) if tenant else None

    async def find_by_email(self, email: str) -> SubjectRecord | None:
        return await self._first(func.lower(TenantContact.email) == email.lower())

    async def find_by_phone(self, phone: str) -> SubjectRecord | None:
        return await self._first(
            or_(TenantContact.phone1 == phone, TenantContact.phone2 == phone)
        )
