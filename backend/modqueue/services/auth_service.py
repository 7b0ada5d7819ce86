"""Authentication service - passwords and JWT access tokens."""
import ipaddress
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.config import settings
from modqueue.models.user import User, UserRole
from modqueue.repositories import user_repository
from modqueue.utils.titles import user_page

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: int, role: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


async def authenticate_user(db: AsyncSession, name: str, password: str) -> User | None:
    user = await user_repository.get_by_name(db, name)
    if user and user.is_active and verify_password(password, user.password_hash):
        return user
    return None


def _looks_like_ip(name: str) -> bool:
    try:
        ipaddress.ip_address(name)
    except ValueError:
        return False
    return True


async def register_user(db: AsyncSession, name: str, password: str) -> User | None:
    """Create a regular account; None if the name is taken.

    Names that look like an IP address are what anonymous visitors are
    recorded as, so they are refused along with names that can't be a
    user page title.
    """
    page = user_page(name.strip())
    if page is None or _looks_like_ip(page.text):
        raise ValueError(f"Invalid username: {name!r}")
    name = page.text
    if await user_repository.get_by_name(db, name) is not None:
        return None
    return await user_repository.create(db, User(
        name=name,
        password_hash=hash_password(password),
        role=UserRole.USER,
        is_active=True,
    ))
