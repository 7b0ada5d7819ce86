"""Upload stash and published file ORM models."""
from datetime import datetime

from sqlalchemy import DateTime, Integer, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from modqueue.models.base import Base, IntIdMixin, TimestampMixin


class StashedUpload(Base, IntIdMixin, TimestampMixin):
    """File staged by an uploader, waiting to be published."""

    __tablename__ = "upload_stash"

    key: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_text: Mapped[str] = mapped_column(String(255), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime: Mapped[str] = mapped_column(String(100), nullable=False, default="application/octet-stream")
    sha1: Mapped[str] = mapped_column(String(40), nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class File(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "files"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    mime: Mapped[str] = mapped_column(String(100), nullable=False)
    sha1: Mapped[str] = mapped_column(String(40), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_text: Mapped[str] = mapped_column(String(255), nullable=False)
