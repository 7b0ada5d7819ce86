"""Reject engine tests."""
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.exceptions import AlreadyMerged, EntryNotFound, NothingToReject
from modqueue.models import AuditAction, AuditLog, ModerationEntry
from modqueue.repositories import moderation_repository
from modqueue.services import approve_service, reject_service
from modqueue.utils.titles import Title
from tests.conftest import _queue_entry

pytestmark = pytest.mark.anyio

TALK_FOO = Title(1, "Foo")


async def _reload(db: AsyncSession, entry_id: int) -> ModerationEntry | None:
    return (await db.execute(
        select(ModerationEntry).where(ModerationEntry.id == entry_id).execution_options(populate_existing=True)
    )).scalar_one_or_none()


async def test_reject_one(db_session: AsyncSession, moderator):
    entry = await _queue_entry(db_session, TALK_FOO, "Spam")

    result = await reject_service.reject_one(db_session, entry.id, moderator)
    await db_session.commit()

    assert result.rejected == 1
    row = await _reload(db_session, entry.id)
    assert row.rejected is True
    assert row.rejected_by_user == moderator.id
    assert row.rejected_by_user_text == moderator.name
    assert row.rejected_batch is False
    assert row.preloadable is False

    log = (await db_session.execute(select(AuditLog))).scalar_one()
    assert log.action == AuditAction.REJECT
    assert log.params == {"modid": entry.id, "user": 0, "user_text": "127.0.0.1"}


async def test_reject_unknown_entry(db_session: AsyncSession, moderator):
    with pytest.raises(EntryNotFound):
        await reject_service.reject_one(db_session, 999, moderator)


async def test_reject_merged_entry(db_session: AsyncSession, moderator):
    entry = await _queue_entry(db_session, TALK_FOO, "Text", merged_revid=5)
    with pytest.raises(AlreadyMerged):
        await reject_service.reject_one(db_session, entry.id, moderator)
    assert (await db_session.execute(select(AuditLog))).scalars().all() == []


async def test_reject_after_approve(db_session: AsyncSession, moderator):
    entry = await _queue_entry(db_session, TALK_FOO, "Text")
    await approve_service.approve_one(db_session, entry.id, moderator)
    await db_session.commit()

    with pytest.raises(EntryNotFound):
        await reject_service.reject_one(db_session, entry.id, moderator)


async def test_conditional_update_loses_to_merge(db_session: AsyncSession, moderator):
    entry = await _queue_entry(db_session, TALK_FOO, "Text", merged_revid=5)
    assert await moderation_repository.mark_rejected(db_session, [entry.id], moderator) == 0


async def test_approval_loses_to_concurrent_rejection(db_session: AsyncSession, moderator):
    entry = await _queue_entry(db_session, TALK_FOO, "Text")
    await moderation_repository.mark_rejected(db_session, [entry.id], moderator)
    await db_session.commit()

    # Approver still believes the row is not rejected
    assert await moderation_repository.delete_approved(db_session, entry.id, was_rejected=False) == 0
    assert await _reload(db_session, entry.id) is not None


async def test_reject_all(db_session: AsyncSession, moderator):
    first = await _queue_entry(db_session, TALK_FOO, "a")
    second = await _queue_entry(db_session, Title(0, "Bar"), "b")
    already = await _queue_entry(db_session, Title(0, "Baz"), "c", rejected=True)
    other = await _queue_entry(db_session, Title(0, "Qux"), "d", user_text="10.1.1.1")

    result = await reject_service.reject_all(db_session, "127.0.0.1", moderator)
    await db_session.commit()

    assert result.rejected == 2
    for entry_id in (first.id, second.id):
        row = await _reload(db_session, entry_id)
        assert row.rejected is True
        assert row.rejected_batch is True
    assert (await _reload(db_session, already.id)).rejected_batch is False
    assert (await _reload(db_session, other.id)).rejected is False

    log = (await db_session.execute(select(AuditLog))).scalar_one()
    assert log.action == AuditAction.REJECT_ALL
    assert log.target_title == "127.0.0.1"
    assert log.params == {"count": 2}


async def test_reject_all_nothing_pending(db_session: AsyncSession, moderator):
    await _queue_entry(db_session, TALK_FOO, "a", rejected=True)
    with pytest.raises(NothingToReject):
        await reject_service.reject_all(db_session, "127.0.0.1", moderator)


async def test_reject_all_invalid_author(db_session: AsyncSession, moderator):
    with pytest.raises(NothingToReject):
        await reject_service.reject_all(db_session, "a|b", moderator)
