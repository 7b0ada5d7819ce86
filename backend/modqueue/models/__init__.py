"""SQLAlchemy ORM models."""
from modqueue.models.base import Base, IntIdMixin, TimestampMixin
from modqueue.models.user import User, UserRole
from modqueue.models.page import Page, Revision, RecentChange, ChangeType
from modqueue.models.upload import StashedUpload, File
from modqueue.models.moderation import ModerationEntry, ModerationBlock, ChangeKind
from modqueue.models.audit_log import AuditLog, AuditAction

__all__ = [
    "Base",
    "IntIdMixin",
    "TimestampMixin",
    "User",
    "UserRole",
    "Page",
    "Revision",
    "RecentChange",
    "ChangeType",
    "StashedUpload",
    "File",
    "ModerationEntry",
    "ModerationBlock",
    "ChangeKind",
    "AuditLog",
    "AuditAction",
]
