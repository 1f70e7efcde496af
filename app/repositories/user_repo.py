from typing import List, Optional

from sqlalchemy import Select
from sqlalchemy.future import select

from app.core.pagination import search_filter
from app.models.user_model import User
from app.repositories.base_repo import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository layer for user data access."""

    model = User

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: User's email address (matched case-insensitively)

        Returns:
            User model or None if not found
        """
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalars().first()

    def list_query(self, search: Optional[str] = None) -> Select:
        """Active users, newest first, optionally filtered by name or email."""
        query = select(User).where(User.is_active.is_(True))
        criteria = search_filter(search, User.first_name, User.last_name, User.email)
        if criteria is not None:
            query = query.where(criteria)
        return query.order_by(User.created_at.desc(), User.id.desc())

    async def get_all_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())
