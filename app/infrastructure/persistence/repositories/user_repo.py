"""User repository (read-only lookups for assignment and audit)."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.models.user import User


class UserRepository:
    """User repository. Implements IUserRepository."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def exists(self, user_id: str) -> bool:
        """Return True if an active user with this id exists."""
        result = await self.db.execute(
            select(User.id).where(User.id == user_id, User.is_active.is_(True))
        )
        return result.scalar_one_or_none() is not None
