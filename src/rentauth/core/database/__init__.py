"""Database layer - session management, base models, and mixins."""

from rentauth.core.database.base import Base, TimestampMixin, UUIDMixin
from rentauth.core.database.session import (
    create_engine,
    create_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "create_engine",
    "create_session_factory",
    "get_db",
]
