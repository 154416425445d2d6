"""Tenant database models.

Owned by the platform API; the authentication core only reads them.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentauth.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH, MAX_PHONE_LENGTH
from rentauth.core.database.base import Base, TimestampMixin, UUIDMixin


class Tenant(Base, UUIDMixin, TimestampMixin):
    """A renter of one of the organization's properties."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    organization_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)

    contacts: Mapped[list["TenantContact"]] = relationship(
        "TenantContact",
        back_populates="tenant",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name})>"


class TenantContact(Base, UUIDMixin):
    """A contact person of a tenant.

    Each phone number carries its own WhatsApp capability flag.
    """

    __tablename__ = "tenant_contacts"

    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(MAX_EMAIL_LENGTH), nullable=True, index=True
    )
    phone1: Mapped[str | None] = mapped_column(
        String(MAX_PHONE_LENGTH), nullable=True, index=True
    )
    phone2: Mapped[str | None] = mapped_column(
        String(MAX_PHONE_LENGTH), nullable=True, index=True
    )
    whatsapp1: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    whatsapp2: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    tenant: Mapped[Tenant] = relationship("Tenant", back_populates="contacts")
