"""User ORM model (identity directory)."""
import enum

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from modqueue.models.base import Base, IntIdMixin, TimestampMixin, pg_enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    AUTOMODERATED = "automoderated"
    USER = "user"


# Roles whose own edits are never queued for moderation.
SKIP_MODERATION_ROLES = frozenset({UserRole.ADMIN, UserRole.MODERATOR, UserRole.AUTOMODERATED})


class User(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        pg_enum(UserRole, name="user_role"), nullable=False, default=UserRole.USER
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Relationships
    audit_logs = relationship("AuditLog", back_populates="performer", lazy="noload")

    @property
    def can_skip_moderation(self) -> bool:
        return self.role in SKIP_MODERATION_ROLES
