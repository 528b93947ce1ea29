"""Rating aggregator: per-user joke ratings and the joke's denormalized average."""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from database.models import JokeRating, utcnow
from database.repositories.base import ConcurrencyError, NotFoundError, ValidationError
from database.repositories.joke_repository import JokeRepository
from database.repositories.rating_repository import RatingRepository

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT_LENGTH = 1000


@dataclass
class RatingSummary:
    """Average (one decimal) and number of ratings of a joke."""
    average: Optional[float]
    count: int


def average_of(total: int, count: int) -> Optional[float]:
    if count == 0:
        return None
    return round(total / count, 1)


def summarize_ratings(ratings: Iterable[JokeRating]) -> RatingSummary:
    """Reduce a joke's ratings to their average and count."""
    values = [rating.rating_value for rating in ratings]
    return RatingSummary(average=average_of(sum(values), len(values)), count=len(values))


def _clean_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None:
        return None
    trimmed = comment.strip()
    return trimmed or None


class RatingService:
    """Service for submitting and reading joke ratings."""

    def __init__(self, rating_repo: RatingRepository, joke_repo: JokeRepository):
        self.rating_repo = rating_repo
        self.joke_repo = joke_repo

    async def submit_user_rating(
        self,
        joke_id: str,
        rating_value: int,
        user_id: str,
        comment: Optional[str] = None
    ) -> JokeRating:
        """
        Create or replace a user's rating of a joke.

        The joke's average_rating and rating_count are recomputed in the same
        transaction as the rating write.

        Args:
            joke_id: Joke ID
            rating_value: Stars, 1 to 5
            user_id: Rating author
            comment: Optional comment, blank means none

        Returns:
            The stored rating

        Raises:
            ValidationError: If the value or comment is out of bounds
            NotFoundError: If the joke does not exist
        """
        if not isinstance(rating_value, int) or isinstance(rating_value, bool) \
                or not MIN_RATING <= rating_value <= MAX_RATING:
            raise ValidationError("Rating must be between 1 and 5 stars.", rating_value=rating_value)
        if comment and len(comment) > MAX_COMMENT_LENGTH:
            raise ValidationError(
                f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters.",
                comment_length=len(comment),
            )

        joke = await self.joke_repo.get(joke_id)
        if joke is None:
            raise NotFoundError("Joke not found.", joke_id=joke_id)

        cleaned_comment = _clean_comment(comment)

        async with self.rating_repo.transaction():
            rating = await self._upsert(joke_id, user_id, rating_value, cleaned_comment)
            count, total = await self.rating_repo.aggregate_for_joke(joke_id)
            await self.joke_repo.set_rating_aggregate(joke, average_of(total, count), count)

        logger.info(f"User {user_id} rated joke {joke_id} with {rating_value} star(s)")
        return rating

    async def _upsert(
        self,
        joke_id: str,
        user_id: str,
        rating_value: int,
        comment: Optional[str]
    ) -> JokeRating:
        now = utcnow()
        existing = await self.rating_repo.get_for_user(joke_id, user_id)
        if existing is None:
            try:
                return await self.rating_repo.create(
                    {
                        "joke_id": joke_id,
                        "user_id": user_id,
                        "rating_value": rating_value,
                        "comment": comment,
                        "created_at": now,
                        "updated_at": now,
                    },
                    commit=False,
                )
            except ConcurrencyError:
                # Lost the race against a concurrent first rating; update the winner instead
                existing = await self.rating_repo.get_for_user(joke_id, user_id)
                if existing is None:
                    raise

        return await self.rating_repo.update(
            existing,
            {"rating_value": rating_value, "comment": comment, "updated_at": now},
            commit=False,
        )

    async def get_user_rating_for_joke(self, joke_id: str, user_id: str) -> Optional[JokeRating]:
        """Get the rating a user left on a joke, if any."""
        return await self.rating_repo.get_for_user(joke_id, user_id)

    async def fetch_all_ratings_for_joke(self, joke_id: str) -> List[JokeRating]:
        """Get every rating of a joke, most recently updated first."""
        return await self.rating_repo.list_for_joke(joke_id)

    async def recompute_joke_aggregate(self, joke_id: str) -> RatingSummary:
        """Rebuild a joke's average_rating and rating_count from its ratings."""
        joke = await self.joke_repo.get(joke_id, raise_not_found=True)
        async with self.joke_repo.transaction():
            count, total = await self.rating_repo.aggregate_for_joke(joke_id)
            summary = RatingSummary(average=average_of(total, count), count=count)
            await self.joke_repo.set_rating_aggregate(joke, summary.average, summary.count)
        return summary
