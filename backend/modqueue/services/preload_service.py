"""Preload: show authors their own pending drafts in the editor.

Queued rows carry a preload id that names who may see them again:

* ``'[' + username`` for registered users,
* ``']' + token`` for anonymous visitors, the token living in their session.

Neither bracket can appear in a username, so the two kinds never collide.
"""
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.models.user import User
from modqueue.repositories import moderation_repository
from modqueue.services.identity_service import Author
from modqueue.services.session_store import RedisSessionStore
from modqueue.utils import wikitext
from modqueue.utils.helpers import new_hex_token, parse_int
from modqueue.utils.titles import Title

logger = structlog.get_logger()

ANON_ID_KEY = "anon_id"


@dataclass
class ActorContext:
    """The visitor behind the current request."""

    user: User | None
    ip: str
    session: RedisSessionStore
    xff: str | None = None
    user_agent: str | None = None

    @property
    def author(self) -> Author:
        if self.user is not None:
            return Author.from_user(self.user)
        return Author.anonymous(self.ip)


@dataclass(frozen=True)
class PendingEdit:
    entry_id: int
    title: Title
    text: str
    comment: str


async def _anon_id(actor: ActorContext, create: bool) -> str | None:
    token = await actor.session.get(ANON_ID_KEY)
    if not token:
        if not create:
            return None
        token = new_hex_token()
        await actor.session.set(ANON_ID_KEY, token)
    return "]" + token


async def identity_for(actor: ActorContext, create: bool = False) -> str | None:
    """Preload id of the visitor; None for anonymous first-time visitors unless `create`."""
    if actor.user is not None:
        return "[" + actor.user.name
    return await _anon_id(actor, create)


async def find_pending_edit(db: AsyncSession, identity: str | None, title: Title) -> PendingEdit | None:
    if not identity:
        return None

    row = await moderation_repository.find_preloadable(db, identity, title)
    if row is None:
        return None
    return PendingEdit(entry_id=row.id, title=title, text=row.text, comment=row.comment)


async def on_account_created(db: AsyncSession, actor: ActorContext) -> int:
    """Hand the visitor's anonymous drafts over to the account they just created."""
    anon_id = await _anon_id(actor, create=False)
    if anon_id is None:
        return 0

    author = actor.author
    moved = await moderation_repository.rekey_preload_id(db, anon_id, "[" + author.name, author)

    # Registered now; the anonymous identity is no longer needed
    await actor.session.delete(ANON_ID_KEY)

    logger.info("anonymous_drafts_claimed", user=author.name, count=moved)
    return moved


async def preload_for_editor(
    db: AsyncSession, actor: ActorContext, title: Title, section: str | None = None,
) -> PendingEdit | None:
    """Draft to put into the edit form, optionally narrowed to one section."""
    section = section or ""
    if section == "new":
        return None

    pending = await find_pending_edit(db, await identity_for(actor), title)
    if pending is None:
        return None

    if section != "":
        section_text = wikitext.get_section(pending.text, parse_int(section, -1))
        if section_text is not None:
            return PendingEdit(pending.entry_id, title, section_text, pending.comment)
    return pending


def apply_api_edit_params(params: dict[str, str], pending_text: str | None) -> dict[str, str]:
    """Rewrite edit API parameters so they apply to the author's pending draft.

    Without this, ``appendtext`` and friends would be applied to the live
    page text and silently drop the draft.
    """
    if params.get("action") != "edit" or pending_text is None:
        return params

    result = dict(params)
    if "appendtext" in result or "prependtext" in result:
        prepend = result.pop("prependtext", "")
        append = result.pop("appendtext", "")
        result["text"] = prepend + pending_text + append
        result.pop("section", None)
    elif "section" in result and "text" in result and result["section"] != "new":
        merged = wikitext.replace_section(pending_text, parse_int(result["section"], -1), result["text"])
        if merged is not None:
            result["text"] = merged
            del result["section"]
    return result
