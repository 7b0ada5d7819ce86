"""Moderation blocks: authors whose new changes are rejected on arrival."""
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.exceptions import AlreadyBlocked, EntryNotFound, NotBlocked
from modqueue.models.audit_log import AuditAction
from modqueue.models.moderation import ModerationBlock
from modqueue.repositories import moderation_repository
from modqueue.schemas.moderation import BlockResult
from modqueue.services import audit_service
from modqueue.services.identity_service import Author
from modqueue.utils.helpers import utc_now
from modqueue.utils.titles import Title, user_page

logger = structlog.get_logger()


def _target(address: str, fallback: Title) -> Title:
    return user_page(address) or fallback


async def block_author(db: AsyncSession, entry_id: int, moderator: Author) -> BlockResult:
    row = await moderation_repository.get_by_id(db, entry_id)
    if row is None:
        raise EntryNotFound()

    address = row.user_text
    if await moderation_repository.get_block(db, address) is not None:
        raise AlreadyBlocked()

    await moderation_repository.add_block(db, ModerationBlock(
        address=address,
        user_id=row.user_id,
        blocked_by_user=moderator.id,
        blocked_by_user_text=moderator.name,
        timestamp=utc_now(),
    ))
    await audit_service.record(
        db, moderator, AuditAction.BLOCK, _target(address, Title(row.namespace, row.title)),
    )
    logger.info("author_blocked", address=address, moderator=moderator.name)
    return BlockResult(address=address, blocked=True)


async def unblock_author(db: AsyncSession, entry_id: int, moderator: Author) -> BlockResult:
    row = await moderation_repository.get_by_id(db, entry_id)
    if row is None:
        raise EntryNotFound()

    address = row.user_text
    if not await moderation_repository.remove_block(db, address):
        raise NotBlocked()

    await audit_service.record(
        db, moderator, AuditAction.UNBLOCK, _target(address, Title(row.namespace, row.title)),
    )
    logger.info("author_unblocked", address=address, moderator=moderator.name)
    return BlockResult(address=address, blocked=False)


async def is_blocked(db: AsyncSession, address: str) -> bool:
    return await moderation_repository.get_block(db, address) is not None
