"""Moderation queue ORM models."""
import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from modqueue.models.base import Base, IntIdMixin, pg_enum


class ChangeKind(str, enum.Enum):
    EDIT = "edit"
    MOVE = "move"


class ModerationEntry(Base, IntIdMixin):
    """One change waiting for a moderator. Approved rows are deleted."""

    __tablename__ = "moderation"
    __table_args__ = (
        Index("moderation_approveall", "user_text", "rejected", "conflict"),
        Index("moderation_rejectall", "user_text", "rejected", "merged_revid"),
        Index("moderation_preload", "preload_id", "namespace", "title", "preloadable"),
    )

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_text: Mapped[str] = mapped_column(String(255), nullable=False)

    namespace: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    page2_namespace: Mapped[int | None] = mapped_column(Integer, nullable=True)
    page2_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[ChangeKind] = mapped_column(
        pg_enum(ChangeKind, name="moderation_change_kind"), nullable=False, default=ChangeKind.EDIT
    )

    comment: Mapped[str] = mapped_column(String(767), nullable=False, default="")
    minor: Mapped[bool] = mapped_column(Boolean, default=False)
    bot: Mapped[bool] = mapped_column(Boolean, default=False)
    last_oldid: Mapped[int | None] = mapped_column(Integer, nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    stash_key: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Originating request of the author, kept verbatim
    ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    header_xff: Mapped[str | None] = mapped_column(String(255), nullable=True)
    header_ua: Mapped[str | None] = mapped_column(String(500), nullable=True)

    preload_id: Mapped[str] = mapped_column(String(256), nullable=False)
    preloadable: Mapped[bool] = mapped_column(Boolean, default=True)

    rejected: Mapped[bool] = mapped_column(Boolean, default=False)
    rejected_by_user: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rejected_by_user_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rejected_batch: Mapped[bool] = mapped_column(Boolean, default=False)
    rejected_auto: Mapped[bool] = mapped_column(Boolean, default=False)

    merged_revid: Mapped[int | None] = mapped_column(Integer, nullable=True)
    conflict: Mapped[bool] = mapped_column(Boolean, default=False)

    tags: Mapped[list | None] = mapped_column(JSONB, nullable=True)


class ModerationBlock(Base, IntIdMixin):
    """Author whose future edits are rejected on arrival."""

    __tablename__ = "moderation_block"

    address: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blocked_by_user: Mapped[int] = mapped_column(Integer, nullable=False)
    blocked_by_user_text: Mapped[str] = mapped_column(String(255), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
