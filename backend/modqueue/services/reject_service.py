"""Reject engine: marks queued changes as rejected.

Rejected rows stay in the queue (moderators can still reapprove them for a
while) but are no longer offered to their author as a draft.
"""
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.exceptions import AlreadyMerged, EntryNotFound, NothingToReject
from modqueue.models.audit_log import AuditAction
from modqueue.repositories import moderation_repository
from modqueue.schemas.moderation import BatchRejectResult, RejectResult
from modqueue.services import audit_service
from modqueue.services.identity_service import Author
from modqueue.utils.titles import Title, user_page

logger = structlog.get_logger()


async def reject_one(db: AsyncSession, entry_id: int, moderator: Author) -> RejectResult:
    row = await moderation_repository.get_by_id(db, entry_id)
    if row is None:
        raise EntryNotFound()
    if row.merged_revid:
        raise AlreadyMerged()

    title = Title(row.namespace, row.title)
    user_id, user_text = row.user_id, row.user_text

    # Zero rows: approved by someone else in the meantime
    rejected = await moderation_repository.mark_rejected(db, [entry_id], moderator)
    if not rejected:
        raise EntryNotFound()

    await audit_service.record(
        db, moderator, AuditAction.REJECT, title,
        {"modid": entry_id, "user": user_id, "user_text": user_text},
    )
    logger.info("entry_rejected", mod_id=entry_id, title=str(title), moderator=moderator.name)
    return RejectResult(entry_id=entry_id, rejected=rejected)


async def reject_all(db: AsyncSession, author_name: str, moderator: Author) -> BatchRejectResult:
    userpage = user_page(author_name)
    if userpage is None:
        raise NothingToReject()

    entry_ids = await moderation_repository.ids_for_reject_all(db, author_name)
    if not entry_ids:
        raise NothingToReject()

    rejected = await moderation_repository.mark_rejected(db, entry_ids, moderator, batch=True)
    await audit_service.record(db, moderator, AuditAction.REJECT_ALL, userpage, {"count": rejected})

    logger.info("rejectall_finished", author=author_name, rejected=rejected, moderator=moderator.name)
    return BatchRejectResult(rejected=rejected)
