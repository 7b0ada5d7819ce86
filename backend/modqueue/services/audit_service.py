"""Audit log of moderator actions."""
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.models.audit_log import AuditAction, AuditLog
from modqueue.services.identity_service import Author
from modqueue.utils.titles import Title


async def record(
    db: AsyncSession, performer: Author, action: AuditAction, target: Title, params: dict | None = None,
) -> AuditLog:
    entry = AuditLog(
        user_id=performer.id,
        user_text=performer.name,
        action=action,
        target_namespace=target.namespace,
        target_title=target.dbkey,
        params=params,
    )
    db.add(entry)
    await db.flush()
    return entry
