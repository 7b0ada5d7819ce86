"""Moderation queue data access layer.

Writes that race with other moderators are conditional updates; callers get
the affected row count back and decide what zero means.
"""
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.models.moderation import ModerationBlock, ModerationEntry
from modqueue.services.identity_service import Author
from modqueue.utils.titles import Title


async def get_by_id(db: AsyncSession, entry_id: int, *, for_update: bool = False) -> ModerationEntry | None:
    q = select(ModerationEntry).where(ModerationEntry.id == entry_id).execution_options(populate_existing=True)
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalar_one_or_none()


async def list_entries(
    db: AsyncSession,
    *,
    rejected: bool = False,
    conflict: bool | None = None,
    user_text: str | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[ModerationEntry], int]:
    q = select(ModerationEntry).where(
        ModerationEntry.rejected == rejected,
        ModerationEntry.merged_revid.is_(None),
    )
    if conflict is not None:
        q = q.where(ModerationEntry.conflict == conflict)
    if user_text:
        q = q.where(ModerationEntry.user_text == user_text)

    total = (await db.execute(select(func.count()).select_from(q.subquery()))).scalar() or 0
    rows = (await db.execute(q.order_by(ModerationEntry.timestamp.desc(), ModerationEntry.id.desc())
                             .offset(skip).limit(limit))).scalars().all()
    return list(rows), total


async def create(db: AsyncSession, entry: ModerationEntry) -> ModerationEntry:
    db.add(entry)
    await db.flush()
    return entry


async def ids_for_approve_all(db: AsyncSession, user_text: str) -> list[int]:
    """Pending, non-conflicted ids of one author; uploads come first."""
    rows = await db.execute(
        select(ModerationEntry.id)
        .where(
            ModerationEntry.user_text == user_text,
            ModerationEntry.rejected.is_(False),
            ModerationEntry.conflict.is_(False),
            ModerationEntry.merged_revid.is_(None),
        )
        .order_by(ModerationEntry.stash_key.is_(None), ModerationEntry.id)
    )
    return list(rows.scalars().all())


async def ids_for_reject_all(db: AsyncSession, user_text: str) -> list[int]:
    rows = await db.execute(
        select(ModerationEntry.id)
        .where(
            ModerationEntry.user_text == user_text,
            ModerationEntry.rejected.is_(False),
            ModerationEntry.merged_revid.is_(None),
        )
        .order_by(ModerationEntry.id)
    )
    return list(rows.scalars().all())


async def mark_conflict(db: AsyncSession, entry_id: int) -> None:
    await db.execute(
        update(ModerationEntry).where(ModerationEntry.id == entry_id).values(conflict=True)
    )


async def mark_rejected(db: AsyncSession, entry_ids: list[int], moderator: Author, *, batch: bool = False) -> int:
    """Reject still-unmerged rows; returns how many actually changed."""
    values = {
        "rejected": True,
        "rejected_by_user": moderator.id,
        "rejected_by_user_text": moderator.name,
        "preloadable": False,
    }
    if batch:
        values["rejected_batch"] = True

    result = await db.execute(
        update(ModerationEntry)
        .where(ModerationEntry.id.in_(entry_ids), ModerationEntry.merged_revid.is_(None))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def delete_approved(db: AsyncSession, entry_id: int, *, was_rejected: bool) -> int:
    """Remove an approved row, unless someone else already acted on it."""
    result = await db.execute(
        delete(ModerationEntry)
        .where(
            ModerationEntry.id == entry_id,
            ModerationEntry.merged_revid.is_(None),
            ModerationEntry.rejected.is_(was_rejected),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def find_preloadable(db: AsyncSession, preload_id: str, title: Title) -> ModerationEntry | None:
    """Newest draft of this preload identity for this page."""
    return (await db.execute(
        select(ModerationEntry)
        .where(
            ModerationEntry.preload_id == preload_id,
            ModerationEntry.namespace == title.namespace,
            ModerationEntry.title == title.dbkey,
            ModerationEntry.preloadable.is_(True),
            ModerationEntry.merged_revid.is_(None),
        )
        .order_by(ModerationEntry.timestamp.desc(), ModerationEntry.id.desc())
        .limit(1)
    )).scalar_one_or_none()


async def rekey_preload_id(db: AsyncSession, old_id: str, new_id: str, author: Author) -> int:
    result = await db.execute(
        update(ModerationEntry)
        .where(
            ModerationEntry.preload_id == old_id,
            ModerationEntry.preloadable.is_(True),
            ModerationEntry.merged_revid.is_(None),
        )
        .values(preload_id=new_id, user_id=author.id, user_text=author.name)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


# --- Blocks ---

async def get_block(db: AsyncSession, address: str) -> ModerationBlock | None:
    return (await db.execute(
        select(ModerationBlock).where(ModerationBlock.address == address)
    )).scalar_one_or_none()


async def add_block(db: AsyncSession, block: ModerationBlock) -> ModerationBlock:
    db.add(block)
    await db.flush()
    return block


async def remove_block(db: AsyncSession, address: str) -> int:
    result = await db.execute(
        delete(ModerationBlock).where(ModerationBlock.address == address)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
