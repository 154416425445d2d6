"""Organization database models."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentauth.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH
from rentauth.core.database.base import Base, TimestampMixin, UUIDMixin


class Organization(Base, UUIDMixin, TimestampMixin):
    """A landlord organization."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)

    members: Mapped[list["OrganizationMember"]] = relationship(
        "OrganizationMember", lazy="selectin", cascade="all, delete-orphan"
    )
    applications: Mapped[list["Application"]] = relationship(
        "Application", lazy="selectin", cascade="all, delete-orphan"
    )


class OrganizationMember(Base, UUIDMixin):
    """Role of an account email within an organization."""

    __tablename__ = "organization_members"
    __table_args__ = (UniqueConstraint("organization_id", "email"),)

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(MAX_EMAIL_LENGTH), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False)


class Application(Base, UUIDMixin, TimestampMixin):
    """Machine credentials registered by an organization.

    Attributes:
        client_id: Public identifier, the ``jti`` of the client secret
        client_secret_hash: Bcrypt hash of the SHA-256 of the client secret
    """

    __tablename__ = "applications"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_id: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )
    client_secret_hash: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), default="", nullable=False)
