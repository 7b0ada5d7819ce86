"""Identity directory: who authored a change."""
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.models.user import SKIP_MODERATION_ROLES, User, UserRole
from modqueue.repositories import user_repository


@dataclass(frozen=True)
class Author:
    """Registered user (id > 0) or anonymous visitor (id 0, name = IP)."""

    id: int
    name: str
    role: UserRole | None = None

    @property
    def can_skip_moderation(self) -> bool:
        return self.role in SKIP_MODERATION_ROLES

    @classmethod
    def from_user(cls, user: User) -> "Author":
        return cls(id=user.id, name=user.name, role=user.role)

    @classmethod
    def anonymous(cls, ip: str) -> "Author":
        return cls(id=0, name=ip)


async def resolve_author(db: AsyncSession, user_id: int, user_text: str) -> Author:
    if not user_id:
        return Author.anonymous(user_text)

    user = await user_repository.get_by_id(db, user_id)
    if user is None:
        # Account was deleted after the edit was queued; keep the recorded name.
        return Author(id=user_id, name=user_text)
    return Author.from_user(user)
