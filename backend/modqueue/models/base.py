"""SQLAlchemy base model with integer PK and timestamp mixins."""
import enum
from datetime import datetime
from typing import Any, Type

from sqlalchemy import DateTime, Enum, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def pg_enum(enum_class: Type[enum.Enum], **kwargs: Any) -> Enum:
    """Create an SQLAlchemy Enum that stores enum VALUES (not names) in PostgreSQL.

    SQLAlchemy's default Enum uses Python enum *names* (e.g. 'ADMIN') as DB values.
    Our migrations store lowercase *values* (e.g. 'admin'), so we need this helper
    to set values_callable explicitly.
    """
    return Enum(
        enum_class,
        values_callable=lambda obj: [e.value for e in obj],
        **kwargs,
    )


class Base(DeclarativeBase):
    pass


class IntIdMixin:
    """Wiki-style monotonically assigned integer ids (rev_id, mod_id, ...)."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
