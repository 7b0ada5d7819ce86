"""Visitor sessions kept in Redis.

One Redis hash per session, keyed by the id stored in the session cookie.
Anonymous visitors get a session the first time something needs to be
remembered for them (their preload identity).
"""
import logging
import secrets

from redis.asyncio import Redis, from_url

from modqueue.config import settings

logger = logging.getLogger(__name__)

_redis: Redis | None = None


async def get_redis() -> Redis:
    """Get or create async Redis client."""
    global _redis
    if _redis is None:
        try:
            _redis = from_url(settings.REDIS_URL, decode_responses=True)
            await _redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception:
            logger.warning("Redis unavailable, sessions cannot be stored")
            _redis = None
            raise
    return _redis


async def close_redis():
    global _redis
    if _redis:
        await _redis.close()
        _redis = None


def new_session_id() -> str:
    return secrets.token_urlsafe(24)


class RedisSessionStore:
    """Key/value access to one visitor's session."""

    def __init__(self, redis: Redis, session_id: str, ttl: int | None = None):
        self.redis = redis
        self.session_id = session_id
        self.ttl = ttl or settings.SESSION_TTL_SECONDS
        # Set once anything was written, so the caller knows to send the cookie
        self.modified = False

    @property
    def key(self) -> str:
        return f"modqueue:session:{self.session_id}"

    async def get(self, name: str) -> str | None:
        return await self.redis.hget(self.key, name)

    async def set(self, name: str, value: str) -> None:
        await self.redis.hset(self.key, name, value)
        await self.redis.expire(self.key, self.ttl)
        self.modified = True

    async def delete(self, name: str) -> None:
        await self.redis.hdel(self.key, name)
        self.modified = True
