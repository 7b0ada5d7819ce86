"""Tests for the Redis session store and session cookie hardening."""
from unittest.mock import AsyncMock

import pytest

from modqueue.config import settings
from modqueue.middleware.cors import _harden
from modqueue.services import session_store
from modqueue.services.session_store import RedisSessionStore, new_session_id

pytestmark = pytest.mark.anyio


# ─── Session store ──────────────────────────────────────────────────────

class TestRedisSessionStore:

    def test_key_is_namespaced(self):
        store = RedisSessionStore(AsyncMock(), "abc")
        assert store.key == "modqueue:session:abc"

    def test_default_ttl(self):
        store = RedisSessionStore(AsyncMock(), "abc")
        assert store.ttl == settings.SESSION_TTL_SECONDS

    async def test_get(self):
        mock_redis = AsyncMock()
        mock_redis.hget.return_value = "token"
        store = RedisSessionStore(mock_redis, "abc")

        assert await store.get("anon_id") == "token"
        mock_redis.hget.assert_called_once_with("modqueue:session:abc", "anon_id")
        assert store.modified is False

    async def test_set_refreshes_expiry(self):
        mock_redis = AsyncMock()
        store = RedisSessionStore(mock_redis, "abc", ttl=60)

        await store.set("anon_id", "token")
        mock_redis.hset.assert_called_once_with("modqueue:session:abc", "anon_id", "token")
        mock_redis.expire.assert_called_once_with("modqueue:session:abc", 60)
        assert store.modified is True

    async def test_delete(self):
        mock_redis = AsyncMock()
        store = RedisSessionStore(mock_redis, "abc")

        await store.delete("anon_id")
        mock_redis.hdel.assert_called_once_with("modqueue:session:abc", "anon_id")
        assert store.modified is True

    def test_session_ids_are_unique(self):
        assert new_session_id() != new_session_id()
        assert len(new_session_id()) >= 32


class TestRedisClient:

    async def test_get_redis_failure_propagates(self, monkeypatch):
        mock_redis = AsyncMock()
        mock_redis.ping.side_effect = ConnectionError("no redis")
        monkeypatch.setattr(session_store, "_redis", None)
        monkeypatch.setattr(session_store, "from_url", lambda *a, **kw: mock_redis)

        with pytest.raises(ConnectionError):
            await session_store.get_redis()
        assert session_store._redis is None

    async def test_get_redis_is_cached(self, monkeypatch):
        mock_redis = AsyncMock()
        monkeypatch.setattr(session_store, "_redis", None)
        monkeypatch.setattr(session_store, "from_url", lambda *a, **kw: mock_redis)

        assert await session_store.get_redis() is mock_redis
        assert await session_store.get_redis() is mock_redis
        mock_redis.ping.assert_called_once()

        await session_store.close_redis()
        mock_redis.close.assert_called_once()
        assert session_store._redis is None


# ─── Cookie hardening ───────────────────────────────────────────────────

class TestCookieHardening:

    def test_adds_samesite_and_httponly(self):
        cookie = _harden("modqueue_session=abc; Path=/", secure=False)
        assert "SameSite=Lax" in cookie
        assert "HttpOnly" in cookie
        assert "Secure" not in cookie

    def test_secure_in_production(self):
        cookie = _harden("modqueue_session=abc; Path=/", secure=True)
        assert cookie.endswith("; Secure; HttpOnly")

    def test_keeps_existing_attributes(self):
        cookie = _harden("modqueue_session=abc; HttpOnly; SameSite=strict", secure=False)
        assert cookie == "modqueue_session=abc; HttpOnly; SameSite=strict"
