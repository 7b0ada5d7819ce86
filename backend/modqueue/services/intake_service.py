"""Intake: save an edit, or queue it when its author needs moderation."""
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.exceptions import ModerationRequired
from modqueue.models.moderation import ChangeKind, ModerationEntry
from modqueue.repositories import moderation_repository
from modqueue.services import block_service, content_store
from modqueue.services.content_store import CommitContext
from modqueue.services.preload_service import ActorContext, identity_for
from modqueue.utils.helpers import utc_now
from modqueue.utils.titles import Title

logger = structlog.get_logger()


@dataclass(frozen=True)
class IntakeResult:
    queued: bool
    entry_id: int | None = None
    revision_id: int | None = None


def _context(actor: ActorContext) -> CommitContext:
    return CommitContext(ip=actor.ip, xff=actor.xff, user_agent=actor.user_agent)


async def _enqueue(db: AsyncSession, actor: ActorContext, title: Title, fields: dict) -> ModerationEntry:
    """Queue a change, replacing this visitor's earlier draft of the same page."""
    author = actor.author
    preload_id = await identity_for(actor, create=True)
    blocked = await block_service.is_blocked(db, author.name)

    fields.update(
        timestamp=utc_now(),
        user_id=author.id,
        user_text=author.name,
        ip=actor.ip,
        header_xff=actor.xff,
        header_ua=actor.user_agent,
        conflict=False,
        # Changes of blocked authors skip the pending list but stay preloadable
        rejected=blocked,
        rejected_auto=blocked,
        rejected_batch=False,
        rejected_by_user=0,
        rejected_by_user_text=None,
    )

    entry = None
    if fields["preloadable"]:
        entry = await moderation_repository.find_preloadable(db, preload_id, title)
    if entry is None:
        entry = ModerationEntry(preload_id=preload_id, namespace=title.namespace, title=title.dbkey, **fields)
        await moderation_repository.create(db, entry)
    else:
        for name, value in fields.items():
            setattr(entry, name, value)
        await db.flush()

    logger.info(
        "change_queued",
        mod_id=entry.id,
        title=str(title),
        author=author.name,
        auto_rejected=blocked,
    )
    return entry


async def submit_edit(
    db: AsyncSession,
    actor: ActorContext,
    title: Title,
    text: str,
    *,
    baseline: int | None = None,
    comment: str = "",
    minor: bool = False,
    bot: bool = False,
) -> IntakeResult:
    author = actor.author
    try:
        revid = await content_store.commit_edit(
            db, title, text,
            baseline=baseline, author=author, ctx=_context(actor),
            comment=comment, minor=minor, bot=bot,
        )
        return IntakeResult(queued=False, revision_id=revid)
    except ModerationRequired:
        pass

    if baseline is None:
        baseline = await content_store.current_revision_id(db, title)

    entry = await _enqueue(db, actor, title, {
        "type": ChangeKind.EDIT,
        "text": text,
        "last_oldid": baseline,
        "comment": comment,
        "minor": minor,
        "bot": bot,
        "stash_key": None,
        "preloadable": True,
    })
    return IntakeResult(queued=True, entry_id=entry.id)


async def submit_move(
    db: AsyncSession, actor: ActorContext, title: Title, new_title: Title, *, comment: str = "",
) -> IntakeResult:
    try:
        revid = await content_store.commit_move(
            db, title, new_title, author=actor.author, ctx=_context(actor), comment=comment,
        )
        return IntakeResult(queued=False, revision_id=revid)
    except ModerationRequired:
        pass

    entry = await _enqueue(db, actor, title, {
        "type": ChangeKind.MOVE,
        "page2_namespace": new_title.namespace,
        "page2_title": new_title.dbkey,
        "comment": comment,
        "text": "",
        # Nothing to show in an editor
        "preloadable": False,
    })
    return IntakeResult(queued=True, entry_id=entry.id)
