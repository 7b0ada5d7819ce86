"""Approval engine: replays queued changes into the live content store.

An approved change is committed as its original author, with the author's
original request data, and then dropped from the queue (it now lives in the
page history). If the page moved on since the change was queued, the queued
text is three-way merged with the current text; when that fails the entry is
flagged as conflicted and stays in the queue until merged by hand.
"""
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.config import settings
from modqueue.exceptions import (
    AlreadyMerged,
    EditConflict,
    EntryNotFound,
    MissingStashedUpload,
    ModerationError,
    NothingToApprove,
    RejectedTooLongAgo,
)
from modqueue.models.audit_log import AuditAction
from modqueue.repositories import moderation_repository
from modqueue.schemas.moderation import ApproveResult, BatchApproveResult
from modqueue.services import audit_service, content_store
from modqueue.services.content_store import CommitContext
from modqueue.services.identity_service import Author, resolve_author
from modqueue.services.pending_entry import (
    EditPayload,
    MovePayload,
    PendingEntry,
    UploadPayload,
    can_reapprove_rejected,
)
from modqueue.utils.helpers import utc_now
from modqueue.utils.titles import user_page

logger = structlog.get_logger()


@contextmanager
def commit_scope(entry: PendingEntry, moderator: Author) -> Iterator[CommitContext]:
    """Commit options for replaying `entry` as its author.

    Interception is bypassed and the author's request data is attached.
    Log context for the entry is bound while the scope is open.
    """
    structlog.contextvars.bind_contextvars(mod_id=entry.id, moderator=moderator.name)
    try:
        yield CommitContext(
            bypass_moderation=True,
            ip=entry.attribution.ip,
            xff=entry.attribution.xff,
            user_agent=entry.attribution.user_agent,
        )
    finally:
        structlog.contextvars.unbind_contextvars("mod_id", "moderator")


async def _commit_edit(
    db: AsyncSession, entry: PendingEntry, payload: EditPayload, author: Author, ctx: CommitContext,
) -> int:
    flags = {
        "author": author,
        "ctx": ctx,
        "comment": entry.comment,
        "minor": entry.minor,
        "bot": entry.bot and author.can_skip_moderation,
    }

    if not await content_store.page_exists(db, entry.title):
        return await content_store.commit_edit(db, entry.title, payload.text, baseline=None, **flags)

    latest = await content_store.current_revision_id(db, entry.title)
    if latest == payload.baseline:
        return await content_store.commit_edit(db, entry.title, payload.text, baseline=latest, **flags)

    # Page changed since the edit was queued
    base = ""
    if payload.baseline:
        base = await content_store.content_at(db, payload.baseline) or ""
    theirs = ""
    if latest:
        theirs = await content_store.content_at(db, latest) or ""

    merged = content_store.three_way_merge(base, payload.text, theirs)
    if merged is None:
        raise EditConflict()

    # The merged text goes on top of the current revision, not the stale baseline
    return await content_store.commit_edit(db, entry.title, merged, baseline=latest, **flags)


async def _commit(db: AsyncSession, entry: PendingEntry, author: Author, ctx: CommitContext) -> int:
    payload = entry.payload
    if isinstance(payload, UploadPayload):
        if await content_store.get_stashed_upload(db, payload.stash_key) is None:
            raise MissingStashedUpload()
        return await content_store.commit_upload(
            db, payload.stash_key, entry.title,
            author=author, ctx=ctx, comment=entry.comment, text=payload.description,
        )
    if isinstance(payload, MovePayload):
        return await content_store.commit_move(
            db, entry.title, payload.new_title, author=author, ctx=ctx, comment=entry.comment,
        )
    return await _commit_edit(db, entry, payload, author, ctx)


async def approve_one(
    db: AsyncSession, entry_id: int, moderator: Author, *, now: datetime | None = None,
) -> ApproveResult:
    row = await moderation_repository.get_by_id(db, entry_id, for_update=True)
    if row is None:
        raise EntryNotFound()

    entry = PendingEntry.from_row(row)
    if entry.merged_revid:
        raise AlreadyMerged()
    if entry.rejected and not can_reapprove_rejected(
        entry.timestamp, now or utc_now(), settings.MODERATION_TIME_TO_OVERRIDE_REJECTION,
    ):
        raise RejectedTooLongAgo()

    author = await resolve_author(db, entry.user_id, entry.user_text)

    try:
        async with db.begin_nested():
            with commit_scope(entry, moderator) as ctx:
                revid = await _commit(db, entry, author, ctx)

            # History shows when the edit was made; recent changes keep the approval time.
            await content_store.rewrite_revision(db, revid, timestamp=entry.timestamp, author=author)
            await audit_service.record(
                db, moderator, AuditAction.APPROVE, entry.title,
                {"revid": revid, "modid": entry.id, "was_rejected": entry.rejected},
            )
            # Lost a race with another moderator: undo the commit.
            if not await moderation_repository.delete_approved(db, entry.id, was_rejected=entry.rejected):
                raise EntryNotFound()
    except EditConflict:
        await moderation_repository.mark_conflict(db, entry.id)
        logger.info("edit_conflict", mod_id=entry.id, title=str(entry.title))
        raise

    logger.info(
        "entry_approved",
        mod_id=entry.id,
        revid=revid,
        title=str(entry.title),
        author=author.name,
        moderator=moderator.name,
    )
    return ApproveResult(entry_id=entry.id, revision_id=revid, title=str(entry.title))


async def approve_all(db: AsyncSession, author_name: str, moderator: Author) -> BatchApproveResult:
    """Approve every pending, non-conflicted change of one author.

    The set of entries is fixed up front. Uploads go first so that pages
    using the images don't get rendered with missing files.
    """
    userpage = user_page(author_name)
    if userpage is None:
        raise NothingToApprove()

    entry_ids = await moderation_repository.ids_for_approve_all(db, author_name)
    if not entry_ids:
        raise NothingToApprove()

    approved = 0
    failed = 0
    for entry_id in entry_ids:
        try:
            await approve_one(db, entry_id, moderator)
            approved += 1
        except ModerationError as exc:
            failed += 1
            logger.info("approveall_entry_failed", mod_id=entry_id, reason=exc.error_type)

    if approved:
        await audit_service.record(db, moderator, AuditAction.APPROVE_ALL, userpage, {"count": approved})

    logger.info("approveall_finished", author=author_name, approved=approved, failed=failed)
    return BatchApproveResult(approved=approved, failed=failed)
