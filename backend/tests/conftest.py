"""Shared test fixtures with in-memory SQLite and an in-memory session backend."""
import json
import sqlite3
from collections import defaultdict

import pytest
from fastapi import Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from modqueue.config import settings
from modqueue.dependencies import get_db, get_session_store
from modqueue.exceptions import ModerationError
from modqueue.main import app
from modqueue.models.base import Base
from modqueue.models.moderation import ModerationEntry
from modqueue.models.page import Page, Revision
from modqueue.models.user import User, UserRole
from modqueue.services.auth_service import create_access_token, hash_password
from modqueue.services.identity_service import Author
from modqueue.services.session_store import RedisSessionStore, new_session_id
from modqueue.utils.helpers import utc_now
from modqueue.utils.titles import Title

# --- SQLite compatibility: compile PostgreSQL types for SQLite ---

@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


sqlite3.register_adapter(list, lambda val: json.dumps(val))

# In-memory SQLite for tests, one connection shared by all sessions
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
test_session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@event.listens_for(test_engine.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
async def setup_db(anyio_backend):
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db():
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except ModerationError:
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise


class FakeRedis:
    """The few hash commands the session store uses, kept in a dict."""

    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = defaultdict(dict)
        self.ttls: dict[str, int] = {}

    async def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    async def hset(self, key, field, value):
        self.hashes[key][field] = value
        return 1

    async def hdel(self, key, field):
        return 1 if self.hashes.get(key, {}).pop(field, None) is not None else 0

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True


@pytest.fixture
def fake_redis():
    redis = FakeRedis()

    async def _override_get_session_store(request: Request) -> RedisSessionStore:
        session_id = request.cookies.get(settings.SESSION_COOKIE_NAME) or new_session_id()
        return RedisSessionStore(redis, session_id)

    app.dependency_overrides[get_session_store] = _override_get_session_store
    yield redis
    app.dependency_overrides.pop(get_session_store, None)


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def client(fake_redis):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with test_session_factory() as session:
        yield session


async def _create_test_user(
    db: AsyncSession, role: UserRole = UserRole.MODERATOR, name: str | None = None,
) -> tuple[User, str]:
    """Create a test user and return (user, access_token)."""
    user = User(
        name=name or f"Test {role.value.title()}",
        password_hash=hash_password("testpass123"),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    token = create_access_token(user.id, role.value)
    return user, token


@pytest.fixture
async def moderator_auth(db_session: AsyncSession) -> tuple[User, dict]:
    """Return (moderator_user, auth_headers)."""
    user, token = await _create_test_user(db_session, UserRole.MODERATOR)
    return user, {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def moderator(moderator_auth) -> Author:
    return Author.from_user(moderator_auth[0])


async def _create_page(db: AsyncSession, title: Title, *texts: str, author: str = "Founder") -> list[int]:
    """Page with one revision per text; returns the revision ids, oldest first."""
    page = Page(namespace=title.namespace, title=title.dbkey)
    db.add(page)
    await db.flush()

    rev_ids = []
    for text in texts:
        rev = Revision(
            page_id=page.id,
            parent_id=page.latest_revision_id,
            text=text,
            user_text=author,
            timestamp=utc_now(),
            size=len(text),
        )
        db.add(rev)
        await db.flush()
        page.latest_revision_id = rev.id
        rev_ids.append(rev.id)
    await db.commit()
    return rev_ids


async def _queue_entry(db: AsyncSession, title: Title, text: str = "", **fields) -> ModerationEntry:
    """Insert a pending change; anonymous author 127.0.0.1 unless given."""
    values = {
        "timestamp": utc_now(),
        "user_id": 0,
        "user_text": "127.0.0.1",
        "preload_id": "]feedface",
        "last_oldid": None,
        "comment": "",
        "ip": "127.0.0.1",
        "header_xff": None,
        "header_ua": "pytest",
    }
    values.update(fields)
    entry = ModerationEntry(namespace=title.namespace, title=title.dbkey, text=text, **values)
    db.add(entry)
    await db.commit()
    return entry
