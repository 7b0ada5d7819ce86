"""FastAPI dependency injection utilities."""
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.config import settings
from modqueue.database import async_session_factory
from modqueue.exceptions import ModerationError
from modqueue.models.user import User
from modqueue.repositories import user_repository
from modqueue.services.auth_service import decode_access_token
from modqueue.services.preload_service import ActorContext
from modqueue.services.session_store import RedisSessionStore, get_redis, new_session_id

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except ModerationError:
            # Expected outcome; keeps what the engine chose to persist (conflict flag)
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise


async def _user_from_token(token: str, db: AsyncSession) -> User:
    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")
        if user_id is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
        user = await user_repository.get_by_id(db, int(user_id))
        if not user or not user.is_active:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or inactive user")
        return user
    except JWTError as e:
        detail = "Token expired" if "expired" in str(e).lower() else "Invalid token"
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract current user from JWT access token."""
    return await _user_from_token(credentials.credentials, db)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Like get_current_user, but anonymous visitors get None."""
    if credentials is None:
        return None
    return await _user_from_token(credentials.credentials, db)


def require_role(*roles: str):
    """Role-based access control dependency."""
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.value not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user
    return Depends(dependency)


async def get_session_store(request: Request) -> RedisSessionStore:
    """Session of the visitor, from the session cookie (a fresh id if there is none)."""
    session_id = request.cookies.get(settings.SESSION_COOKIE_NAME) or new_session_id()
    return RedisSessionStore(await get_redis(), session_id)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "127.0.0.1"


async def get_actor_context(
    request: Request,
    user: User | None = Depends(get_optional_user),
    session: RedisSessionStore = Depends(get_session_store),
) -> ActorContext:
    return ActorContext(
        user=user,
        ip=client_ip(request),
        session=session,
        xff=request.headers.get("x-forwarded-for"),
        user_agent=request.headers.get("user-agent"),
    )
