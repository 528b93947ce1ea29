"""Rating repository for per-user joke ratings."""

from typing import List, Optional, Tuple
from sqlalchemy import select, delete, and_, desc, func
from sqlalchemy.exc import SQLAlchemyError
import logging

from .base import BaseRepository, TransportError
from ..models import JokeRating

logger = logging.getLogger(__name__)


class RatingRepository(BaseRepository[JokeRating]):
    """Repository for rating operations."""

    def __init__(self, session):
        super().__init__(JokeRating, session)

    async def get_for_user(self, joke_id: str, user_id: str) -> Optional[JokeRating]:
        """
        Get the rating a user left on a joke.

        Args:
            joke_id: Joke ID
            user_id: Rating author

        Returns:
            Rating or None
        """
        query = (
            select(JokeRating)
            .where(
                and_(
                    JokeRating.joke_id == joke_id,
                    JokeRating.user_id == user_id
                )
            )
            .limit(1)
        )
        ratings = await self.fetch_all(query)
        return ratings[0] if ratings else None

    async def list_for_joke(self, joke_id: str) -> List[JokeRating]:
        """Get all ratings of a joke, most recently updated first."""
        query = (
            select(JokeRating)
            .where(JokeRating.joke_id == joke_id)
            .order_by(desc(JokeRating.updated_at), desc(JokeRating.id))
        )
        return await self.fetch_all(query)

    async def aggregate_for_joke(self, joke_id: str) -> Tuple[int, int]:
        """
        Count and sum the rating values of a joke.

        Returns:
            (count, total) tuple
        """
        query = (
            select(
                func.count(JokeRating.id),
                func.coalesce(func.sum(JokeRating.rating_value), 0)
            )
            .where(JokeRating.joke_id == joke_id)
        )
        try:
            result = await self.session.execute(query)
            count, total = result.one()
            return int(count), int(total)
        except SQLAlchemyError as e:
            logger.error(f"Error aggregating ratings for joke {joke_id}: {str(e)}")
            raise TransportError(f"Failed to aggregate ratings: {str(e)}")

    async def list_recent_by_value(
        self,
        user_id: str,
        rating_value: int,
        limit: int = 10
    ) -> List[JokeRating]:
        """Get a user's most recently updated ratings with the given value."""
        query = (
            select(JokeRating)
            .where(
                and_(
                    JokeRating.user_id == user_id,
                    JokeRating.rating_value == rating_value
                )
            )
            .order_by(desc(JokeRating.updated_at))
            .limit(limit)
        )
        return await self.fetch_all(query)

    async def delete_for_joke(self, joke_id: str) -> int:
        """
        Delete every rating of a joke without committing.

        Returns:
            Number of deleted ratings
        """
        try:
            result = await self.session.execute(
                delete(JokeRating).where(JokeRating.joke_id == joke_id)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting ratings for joke {joke_id}: {str(e)}")
            raise TransportError(f"Failed to delete ratings: {str(e)}")
