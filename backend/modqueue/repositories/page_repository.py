"""Page / revision data access layer."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.models.page import Page, Revision
from modqueue.models.upload import File, StashedUpload
from modqueue.utils.titles import Title

async def get_page(db: AsyncSession, title: Title) -> Page | None:
    return (await db.execute(
        select(Page).where(Page.namespace == title.namespace, Page.title == title.dbkey)
    )).scalar_one_or_none()

async def get_latest_revision_id(db: AsyncSession, title: Title) -> int | None:
    """Reads the column directly so a stale identity map can't answer."""
    return (await db.execute(
        select(Page.latest_revision_id).where(Page.namespace == title.namespace, Page.title == title.dbkey)
    )).scalar_one_or_none()

async def get_revision(db: AsyncSession, revision_id: int) -> Revision | None:
    return (await db.execute(select(Revision).where(Revision.id == revision_id))).scalar_one_or_none()

async def get_stashed_upload(db: AsyncSession, key: str) -> StashedUpload | None:
    return (await db.execute(select(StashedUpload).where(StashedUpload.key == key))).scalar_one_or_none()

async def get_file(db: AsyncSession, name: str) -> File | None:
    return (await db.execute(select(File).where(File.name == name))).scalar_one_or_none()
