"""Preload identity and draft lookup tests."""
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.models import ModerationEntry, UserRole
from modqueue.services import preload_service
from modqueue.services.preload_service import ActorContext, apply_api_edit_params
from modqueue.services.session_store import RedisSessionStore
from modqueue.utils.titles import Title
from tests.conftest import FakeRedis, _create_test_user, _queue_entry

pytestmark = pytest.mark.anyio

TALK_FOO = Title(1, "Foo")


def _anonymous(redis: FakeRedis | None = None, session_id: str = "sess-1") -> ActorContext:
    return ActorContext(user=None, ip="127.0.0.1", session=RedisSessionStore(redis or FakeRedis(), session_id))


# --- identity_for ---

async def test_identity_for_registered_user(db_session: AsyncSession):
    user, _ = await _create_test_user(db_session, UserRole.USER, name="Alice")
    actor = ActorContext(user=user, ip="127.0.0.1", session=RedisSessionStore(FakeRedis(), "s"))
    assert await preload_service.identity_for(actor) == "[Alice"


async def test_identity_for_new_anonymous_visitor():
    actor = _anonymous()
    assert await preload_service.identity_for(actor) is None
    assert actor.session.modified is False


async def test_identity_for_creates_anonymous_token():
    redis = FakeRedis()
    actor = _anonymous(redis)

    identity = await preload_service.identity_for(actor, create=True)
    assert identity.startswith("]")
    assert len(identity) == 33
    assert actor.session.modified is True

    # Same session, same identity
    assert await preload_service.identity_for(_anonymous(redis), create=True) == identity
    assert await preload_service.identity_for(_anonymous(redis)) == identity


async def test_anonymous_sessions_are_distinct():
    redis = FakeRedis()
    first = await preload_service.identity_for(_anonymous(redis, "a"), create=True)
    second = await preload_service.identity_for(_anonymous(redis, "b"), create=True)
    assert first != second


# --- find_pending_edit / preload_for_editor ---

async def test_find_pending_edit(db_session: AsyncSession):
    entry = await _queue_entry(db_session, TALK_FOO, "My draft", preload_id="]abc", comment="wip")

    pending = await preload_service.find_pending_edit(db_session, "]abc", TALK_FOO)
    assert pending.entry_id == entry.id
    assert pending.text == "My draft"
    assert pending.comment == "wip"

    assert await preload_service.find_pending_edit(db_session, "]other", TALK_FOO) is None
    assert await preload_service.find_pending_edit(db_session, "]abc", Title(0, "Foo")) is None
    assert await preload_service.find_pending_edit(db_session, None, TALK_FOO) is None


async def test_find_pending_edit_skips_rejected(db_session: AsyncSession):
    await _queue_entry(db_session, TALK_FOO, "Rejected", preload_id="]abc", preloadable=False, rejected=True)
    assert await preload_service.find_pending_edit(db_session, "]abc", TALK_FOO) is None


async def test_preload_for_editor_sections(db_session: AsyncSession):
    redis = FakeRedis()
    actor = _anonymous(redis)
    identity = await preload_service.identity_for(actor, create=True)
    await _queue_entry(db_session, TALK_FOO, "Lead\n== A ==\nalpha\n== B ==\nbeta", preload_id=identity)

    full = await preload_service.preload_for_editor(db_session, actor, TALK_FOO)
    assert full.text.startswith("Lead")

    section = await preload_service.preload_for_editor(db_session, actor, TALK_FOO, "2")
    assert section.text == "== B ==\nbeta"

    # Missing section: whole draft
    missing = await preload_service.preload_for_editor(db_session, actor, TALK_FOO, "7")
    assert missing.text == full.text

    assert await preload_service.preload_for_editor(db_session, actor, TALK_FOO, "new") is None


async def test_preload_for_unknown_visitor(db_session: AsyncSession):
    await _queue_entry(db_session, TALK_FOO, "Someone's draft", preload_id="]abc")
    assert await preload_service.preload_for_editor(db_session, _anonymous(), TALK_FOO) is None


# --- on_account_created ---

async def test_account_creation_claims_drafts(db_session: AsyncSession):
    redis = FakeRedis()
    anon = _anonymous(redis)
    anon_id = await preload_service.identity_for(anon, create=True)
    entry = await _queue_entry(db_session, TALK_FOO, "Draft", preload_id=anon_id)
    entry_id = entry.id

    user, _ = await _create_test_user(db_session, UserRole.USER, name="Newbie")
    registered = ActorContext(user=user, ip="127.0.0.1", session=RedisSessionStore(redis, "sess-1"))

    assert await preload_service.on_account_created(db_session, registered) == 1
    await db_session.commit()

    row = (await db_session.execute(
        select(ModerationEntry).where(ModerationEntry.id == entry_id).execution_options(populate_existing=True)
    )).scalar_one()
    assert row.preload_id == "[Newbie"
    assert row.user_id == user.id
    assert row.user_text == "Newbie"
    assert await registered.session.get("anon_id") is None

    pending = await preload_service.find_pending_edit(db_session, "[Newbie", TALK_FOO)
    assert pending.entry_id == entry_id

    # Running it again changes nothing
    assert await preload_service.on_account_created(db_session, registered) == 0
    rows = (await db_session.execute(select(ModerationEntry))).scalars().all()
    assert len(rows) == 1


async def test_account_creation_without_anonymous_edits(db_session: AsyncSession):
    user, _ = await _create_test_user(db_session, UserRole.USER, name="Fresh")
    actor = ActorContext(user=user, ip="127.0.0.1", session=RedisSessionStore(FakeRedis(), "s"))
    assert await preload_service.on_account_created(db_session, actor) == 0


# --- apply_api_edit_params ---

def test_api_params_untouched_without_draft():
    params = {"action": "edit", "appendtext": "123"}
    assert apply_api_edit_params(params, None) == params


def test_api_params_other_actions_untouched():
    params = {"action": "query", "appendtext": "Cats"}
    assert apply_api_edit_params(params, "Dogs") == params


def test_api_params_append_and_prepend():
    assert apply_api_edit_params({"action": "edit", "appendtext": "Cats"}, "Dogs") == {
        "action": "edit", "text": "DogsCats",
    }
    assert apply_api_edit_params({"action": "edit", "prependtext": "Foxes"}, "Dogs") == {
        "action": "edit", "text": "FoxesDogs",
    }
    assert apply_api_edit_params(
        {"action": "edit", "prependtext": "Foxes", "appendtext": "Cats"}, "Dogs",
    ) == {"action": "edit", "text": "FoxesDogsCats"}


def test_api_params_section_folded_into_draft():
    draft = "Lead\n== A ==\nalpha\n== B ==\nbeta"
    result = apply_api_edit_params({"action": "edit", "section": "1", "text": "== A ==\nALPHA"}, draft)
    assert "section" not in result
    assert result["text"] == "Lead\n== A ==\nALPHA\n\n== B ==\nbeta"


def test_api_params_without_changes():
    params = {"action": "edit", "text": "Full"}
    assert apply_api_edit_params(params, "Dogs") == params
