"""Joke repository with specialized joke operations."""

from typing import List, Optional, Dict, Any
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
import logging

from .base import BaseRepository, TransportError
from ..models import Joke

logger = logging.getLogger(__name__)


class JokeRepository(BaseRepository[Joke]):
    """Repository for joke-specific operations."""

    def __init__(self, session):
        super().__init__(Joke, session)

    async def execute_plan(self, plan) -> List[Joke]:
        """
        Run a page query produced by the query builder.

        Args:
            plan: QueryPlan with an ordered, limited select

        Returns:
            Jokes of the page, in plan order
        """
        try:
            result = await self.session.execute(plan.statement)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing jokes: {str(e)}")
            raise TransportError(f"Failed to list jokes: {str(e)}")

    async def get_many(self, joke_ids: List[str]) -> List[Joke]:
        """Get the jokes with the given IDs, in no particular order."""
        if not joke_ids:
            return []
        return await self.fetch_all(select(Joke).where(Joke.id.in_(joke_ids)))

    async def list_with_positive_funny_rate(self) -> List[Joke]:
        """Get every joke its owner gave a quick rating."""
        return await self.fetch_all(select(Joke).where(Joke.funny_rate > 0))

    async def list_missing_keywords(self) -> List[Joke]:
        """Get every joke whose search keywords were never computed."""
        return await self.fetch_all(select(Joke).where(Joke.keywords.is_(None)))

    async def set_rating_aggregate(
        self,
        joke: Joke,
        average_rating: Optional[float],
        rating_count: int
    ) -> None:
        """Write the denormalized rating fields without committing."""
        joke.average_rating = average_rating
        joke.rating_count = rating_count
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error updating rating aggregate for joke {joke.id}: {str(e)}")
            raise TransportError(f"Failed to update rating aggregate: {str(e)}")

    def build_record(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Fill the creation defaults every new joke gets."""
        record = {
            'source': '',
            'funny_rate': 0,
            'used': False,
            'rating_count': 0,
        }
        record.update({k: v for k, v in values.items() if v is not None})
        return record
