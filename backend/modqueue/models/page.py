"""Content store ORM models: pages, revisions, recent changes."""
import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from modqueue.models.base import Base, IntIdMixin, pg_enum


class Page(Base, IntIdMixin):
    __tablename__ = "pages"
    __table_args__ = (UniqueConstraint("namespace", "title", name="uq_pages_namespace_title"),)

    namespace: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    # Not a foreign key: pages and revisions reference each other.
    latest_revision_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    revisions = relationship("Revision", back_populates="page", lazy="noload")


class Revision(Base, IntIdMixin):
    __tablename__ = "revisions"

    page_id: Mapped[int] = mapped_column(Integer, ForeignKey("pages.id"), nullable=False, index=True)
    parent_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    comment: Mapped[str] = mapped_column(String(767), nullable=False, default="")
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_text: Mapped[str] = mapped_column(String(255), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    minor: Mapped[bool] = mapped_column(Boolean, default=False)
    size: Mapped[int] = mapped_column(Integer, default=0)

    page = relationship("Page", back_populates="revisions")


class ChangeType(str, enum.Enum):
    EDIT = "edit"
    NEW = "new"
    LOG = "log"


class RecentChange(Base, IntIdMixin):
    """Feed of recent changes. Its timestamp is the time the change went live."""

    __tablename__ = "recent_changes"

    revision_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    namespace: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[ChangeType] = mapped_column(pg_enum(ChangeType, name="change_type"), nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_text: Mapped[str] = mapped_column(String(255), nullable=False)
    comment: Mapped[str] = mapped_column(String(767), nullable=False, default="")
    bot: Mapped[bool] = mapped_column(Boolean, default=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    # Originating request of the author (checkuser data)
    ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    xff: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
