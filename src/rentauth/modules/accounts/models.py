"""Landlord account database model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rentauth.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH
from rentauth.core.database.base import Base, TimestampMixin, UUIDMixin


class Account(Base, UUIDMixin, TimestampMixin):
    """A landlord account that signs in with email and password.

    Attributes:
        email: Unique, lowercased email address
        firstname: Given name
        lastname: Family name
        password_hash: Bcrypt hash of the password
    """

    __tablename__ = "accounts"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    firstname: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    lastname: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email={self.email})>"
