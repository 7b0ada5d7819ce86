"""Audit log ORM model."""
import enum

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from modqueue.models.base import Base, IntIdMixin, TimestampMixin, pg_enum


class AuditAction(str, enum.Enum):
    APPROVE = "approve"
    APPROVE_ALL = "approveall"
    REJECT = "reject"
    REJECT_ALL = "rejectall"
    BLOCK = "block"
    UNBLOCK = "unblock"


class AuditLog(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "audit_logs"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    user_text: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[AuditAction] = mapped_column(pg_enum(AuditAction, name="audit_action"), nullable=False)
    target_namespace: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    target_title: Mapped[str] = mapped_column(String(255), nullable=False)
    params: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    # Relationships
    performer = relationship("User", back_populates="audit_logs")
