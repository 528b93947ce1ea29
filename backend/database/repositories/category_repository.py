"""Category repository for per-user category names."""

from typing import List, Optional
from sqlalchemy import select, and_, asc
import logging

from .base import BaseRepository
from ..models import Category

logger = logging.getLogger(__name__)


class CategoryRepository(BaseRepository[Category]):
    """Repository for category operations."""

    def __init__(self, session):
        super().__init__(Category, session)

    async def get_by_name(self, user_id: str, name: str) -> Optional[Category]:
        """
        Get a user's category by its exact stored name.

        Args:
            user_id: Owner ID
            name: Trimmed category name

        Returns:
            Category or None
        """
        query = (
            select(Category)
            .where(
                and_(
                    Category.user_id == user_id,
                    Category.name == name
                )
            )
            .limit(1)
        )
        categories = await self.fetch_all(query)
        return categories[0] if categories else None

    async def list_for_user(self, user_id: str) -> List[Category]:
        """Get all categories owned by a user, ordered by name."""
        query = (
            select(Category)
            .where(Category.user_id == user_id)
            .order_by(asc(Category.name))
        )
        return await self.fetch_all(query)

    async def list_all(self) -> List[Category]:
        """Get every category across users, ordered by name."""
        query = select(Category).order_by(asc(Category.name), asc(Category.user_id))
        return await self.fetch_all(query)
