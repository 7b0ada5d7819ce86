"""Live content store: pages, revisions, recent changes and uploads.

Every write takes a CommitContext. Unless the context says
``bypass_moderation``, writes by authors who can't skip moderation raise
ModerationRequired and the caller is expected to queue the change instead.
"""
import hashlib
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.exceptions import CommitFailed, ModerationRequired
from modqueue.models.page import ChangeType, Page, RecentChange, Revision
from modqueue.models.upload import File, StashedUpload
from modqueue.repositories import page_repository
from modqueue.services import merge
from modqueue.services.identity_service import Author
from modqueue.utils.helpers import as_utc, utc_now
from modqueue.utils.titles import NS_FILE, Title

MAX_TEXT_BYTES = 2 * 1024 * 1024


@dataclass(frozen=True)
class CommitContext:
    """Per-commit options, passed explicitly instead of global hook state."""

    bypass_moderation: bool = False
    # Request of the change's author, recorded in recent changes
    ip: str | None = None
    xff: str | None = None
    user_agent: str | None = None


def _check_interception(author: Author, ctx: CommitContext) -> None:
    if not ctx.bypass_moderation and not author.can_skip_moderation:
        raise ModerationRequired()


async def page_exists(db: AsyncSession, title: Title) -> bool:
    return await page_repository.get_page(db, title) is not None


async def current_revision_id(db: AsyncSession, title: Title) -> int | None:
    return await page_repository.get_latest_revision_id(db, title)


async def content_at(db: AsyncSession, revision_id: int) -> str | None:
    rev = await page_repository.get_revision(db, revision_id)
    return rev.text if rev else None


def three_way_merge(base: str, mine: str, theirs: str) -> str | None:
    return merge.merge3(base, mine, theirs)


async def get_stashed_upload(db: AsyncSession, stash_key: str) -> StashedUpload | None:
    """Staged file for `stash_key`, or None if it is gone or expired."""
    stashed = await page_repository.get_stashed_upload(db, stash_key)
    if stashed is None:
        return None
    if stashed.expires_at is not None and as_utc(stashed.expires_at) <= utc_now():
        return None
    return stashed


async def _add_revision(
    db: AsyncSession,
    page: Page,
    text: str,
    *,
    author: Author,
    ctx: CommitContext,
    comment: str,
    change_type: ChangeType,
    minor: bool = False,
    bot: bool = False,
) -> Revision:
    now = utc_now()
    rev = Revision(
        page_id=page.id,
        parent_id=page.latest_revision_id,
        text=text,
        comment=comment,
        user_id=author.id,
        user_text=author.name,
        timestamp=now,
        minor=minor,
        size=len(text.encode("utf-8")),
    )
    db.add(rev)
    await db.flush()

    page.latest_revision_id = rev.id
    db.add(RecentChange(
        revision_id=rev.id,
        namespace=page.namespace,
        title=page.title,
        type=change_type,
        user_id=author.id,
        user_text=author.name,
        comment=comment,
        bot=bot,
        timestamp=now,
        ip=ctx.ip,
        xff=ctx.xff,
        user_agent=ctx.user_agent,
    ))
    await db.flush()
    return rev


async def commit_edit(
    db: AsyncSession,
    title: Title,
    text: str,
    *,
    baseline: int | None,
    author: Author,
    ctx: CommitContext,
    comment: str = "",
    minor: bool = False,
    bot: bool = False,
) -> int:
    """Save `text` as the new latest revision; returns its id.

    `baseline` is the revision the text was written against. If the page has
    moved past it, the store refuses the write (optimistic locking).
    """
    _check_interception(author, ctx)
    if len(text.encode("utf-8")) > MAX_TEXT_BYTES:
        raise CommitFailed("content-too-big")

    page = await page_repository.get_page(db, title)
    if page is None:
        if baseline is not None:
            raise CommitFailed("page-deleted")
        page = Page(namespace=title.namespace, title=title.dbkey)
        db.add(page)
        await db.flush()
        change_type = ChangeType.NEW
    else:
        if baseline is not None and baseline != page.latest_revision_id:
            raise CommitFailed("edit-conflict")
        change_type = ChangeType.EDIT

    rev = await _add_revision(
        db, page, text,
        author=author, ctx=ctx, comment=comment,
        change_type=change_type, minor=minor, bot=bot,
    )
    return rev.id


async def commit_upload(
    db: AsyncSession,
    stash_key: str,
    title: Title,
    *,
    author: Author,
    ctx: CommitContext,
    comment: str = "",
    text: str = "",
) -> int:
    """Publish a stashed file as File:<title>; returns the description page revision id."""
    _check_interception(author, ctx)
    if title.namespace != NS_FILE:
        raise CommitFailed("upload-not-in-file-namespace")

    stashed = await get_stashed_upload(db, stash_key)
    if stashed is None:
        raise CommitFailed("stashed-file-missing")
    if hashlib.sha1(stashed.data).hexdigest() != stashed.sha1:
        raise CommitFailed("stashed-file-corrupt")

    file = await page_repository.get_file(db, title.dbkey)
    if file is None:
        file = File(name=title.dbkey, mime=stashed.mime, sha1=stashed.sha1, data=stashed.data)
        db.add(file)
    else:
        file.mime = stashed.mime
        file.sha1 = stashed.sha1
        file.data = stashed.data
    file.size = len(stashed.data)
    file.user_id = author.id
    file.user_text = author.name

    page = await page_repository.get_page(db, title)
    if page is None:
        page = Page(namespace=title.namespace, title=title.dbkey)
        db.add(page)
        await db.flush()
        rev = await _add_revision(
            db, page, text, author=author, ctx=ctx, comment=comment, change_type=ChangeType.NEW,
        )
    else:
        # Reupload: description page keeps its text
        current = await content_at(db, page.latest_revision_id) if page.latest_revision_id else ""
        rev = await _add_revision(
            db, page, current or "", author=author, ctx=ctx, comment=comment, change_type=ChangeType.LOG,
        )

    await db.delete(stashed)
    await db.flush()
    return rev.id


async def commit_move(
    db: AsyncSession,
    title: Title,
    new_title: Title,
    *,
    author: Author,
    ctx: CommitContext,
    comment: str = "",
) -> int:
    """Rename a page; returns the id of the null revision recording the move."""
    _check_interception(author, ctx)
    page = await page_repository.get_page(db, title)
    if page is None:
        raise CommitFailed("move-source-missing")
    if await page_repository.get_page(db, new_title) is not None:
        raise CommitFailed("articleexists")

    page.namespace = new_title.namespace
    page.title = new_title.dbkey
    await db.flush()

    summary = f"moved [[{title}]] to [[{new_title}]]"
    if comment:
        summary += f": {comment}"
    current = await content_at(db, page.latest_revision_id) if page.latest_revision_id else ""
    rev = await _add_revision(
        db, page, current or "", author=author, ctx=ctx, comment=summary,
        change_type=ChangeType.LOG, minor=True,
    )
    return rev.id


async def rewrite_revision(db: AsyncSession, revision_id: int, *, timestamp, author: Author) -> None:
    """Backdate a revision and fix its attribution; recent changes are left alone."""
    await db.execute(
        update(Revision)
        .where(Revision.id == revision_id)
        .values(timestamp=timestamp, user_id=author.id, user_text=author.name)
    )
