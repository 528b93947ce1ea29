"""Joke aggregate service composing the category directory and joke storage."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from database.models import Joke, utcnow
from database.repositories.base import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from database.repositories.joke_repository import JokeRepository
from database.repositories.rating_repository import RatingRepository
from services.category_service import CategoryDirectory
from services.query_builder import JokeCursor, JokeFilters, build_jokes_query
from utils.keywords import generate_keywords

logger = logging.getLogger(__name__)

FIVE_STARS = 5
FIVE_STAR_EXAMPLES_LIMIT = 10


@dataclass
class JokeInput:
    """A joke as submitted by a user or an import file."""
    text: str
    category: str
    source: Optional[str] = None
    funny_rate: Optional[int] = None


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    categories: List[str] = field(default_factory=list)


@dataclass
class JokePage:
    jokes: List[Joke]
    next_cursor: Optional[str]
    has_more: bool


def _check_funny_rate(value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 5:
        raise ValidationError("Funny rate must be between 0 and 5.", funny_rate=value)


def _check_text(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Joke text cannot be empty.")
    return value.strip()


class JokeService:
    """Service for creating, importing, editing and listing jokes."""

    def __init__(
        self,
        joke_repo: JokeRepository,
        rating_repo: RatingRepository,
        category_directory: CategoryDirectory,
    ):
        self.joke_repo = joke_repo
        self.rating_repo = rating_repo
        self.category_directory = category_directory

    # Creation

    async def add_joke(self, joke_input: JokeInput, user_id: str) -> Joke:
        """
        Create a joke, creating its category on first use.

        Returns:
            The stored joke (used = False, funny_rate defaulted to 0)

        Raises:
            ValidationError: If the text is empty or the funny rate is out of range
            CategoryError: If the category name is empty
        """
        text = _check_text(joke_input.text)
        funny_rate = joke_input.funny_rate if joke_input.funny_rate is not None else 0
        _check_funny_rate(funny_rate)

        category = await self.category_directory.ensure_category_exists(joke_input.category, user_id)

        joke = await self.joke_repo.create(self.joke_repo.build_record({
            "text": text,
            "category": category,
            "source": joke_input.source or "",
            "funny_rate": funny_rate,
            "date_added": utcnow(),
            "user_id": user_id,
            "keywords": generate_keywords(text),
        }))
        logger.info(f"User {user_id} added joke {joke.id} in category '{category}'")
        return joke

    async def import_jokes(self, joke_inputs: List[JokeInput], user_id: str) -> ImportResult:
        """
        Import a batch of jokes in a single transaction.

        Invalid entries (empty text, empty category, funny rate out of range)
        are skipped and logged. Each distinct category is resolved once.
        """
        result = ImportResult()
        valid = []
        for joke_input in joke_inputs:
            category = (joke_input.category or "").strip()
            if not category:
                logger.warning(f"Skipping joke with empty category: {joke_input.text!r}")
                result.skipped += 1
                continue
            try:
                text = _check_text(joke_input.text)
                funny_rate = joke_input.funny_rate if joke_input.funny_rate is not None else 0
                _check_funny_rate(funny_rate)
            except ValidationError as e:
                logger.warning(f"Skipping invalid joke in category '{category}': {e.message}")
                result.skipped += 1
                continue
            valid.append((text, category, joke_input.source or "", funny_rate))

        resolved = {}
        for category in dict.fromkeys(category for _, category, _, _ in valid):
            resolved[category] = await self.category_directory.ensure_category_exists(category, user_id)
        result.categories = list(resolved.values())

        if valid:
            now = utcnow()
            await self.joke_repo.add_all([
                self.joke_repo.build_record({
                    "text": text,
                    "category": resolved[category],
                    "source": source,
                    "funny_rate": funny_rate,
                    "date_added": now,
                    "user_id": user_id,
                    "keywords": generate_keywords(text),
                })
                for text, category, source, funny_rate in valid
            ])
        result.imported = len(valid)

        logger.info(f"User {user_id} imported {result.imported} joke(s), skipped {result.skipped}")
        return result

    # Point reads

    async def get_joke_by_id(self, joke_id: str) -> Optional[Joke]:
        """Get a joke, or None when it does not exist."""
        return await self.joke_repo.get(joke_id)

    async def _get_owned(self, joke_id: str, user_id: str, action: str) -> Joke:
        joke = await self.joke_repo.get(joke_id)
        if joke is None:
            raise NotFoundError("Joke not found.", joke_id=joke_id)
        if joke.user_id != user_id:
            raise PermissionDeniedError(f"You can only {action} your own jokes.", joke_id=joke_id)
        return joke

    # Updates

    async def update_joke(self, joke_id: str, patch: Dict[str, Any], user_id: str) -> Joke:
        """
        Apply a partial update to a joke owned by the user.

        Only recognized fields present in the patch are written; a patch
        with none of them leaves the joke untouched.

        Raises:
            NotFoundError: If the joke does not exist
            PermissionDeniedError: If the user does not own the joke
            ValidationError: If a patched value is invalid
        """
        joke = await self._get_owned(joke_id, user_id, "update")

        changes: Dict[str, Any] = {}
        if "text" in patch:
            changes["text"] = _check_text(patch["text"])
            changes["keywords"] = generate_keywords(changes["text"])
        if "source" in patch:
            changes["source"] = patch["source"] or ""
        if "funny_rate" in patch:
            _check_funny_rate(patch["funny_rate"])
            changes["funny_rate"] = patch["funny_rate"]
        if "used" in patch:
            if not isinstance(patch["used"], bool):
                raise ValidationError("Used flag must be a boolean.", used=patch["used"])
            changes["used"] = patch["used"]
        if "explanation" in patch:
            changes["explanation"] = patch["explanation"]
        # Resolved last: it may create a category, which must not happen for a rejected patch
        if "category" in patch:
            changes["category"] = await self.category_directory.ensure_category_exists(
                patch["category"], user_id
            )

        if not changes:
            return joke

        joke = await self.joke_repo.update(joke, changes)
        logger.debug(f"Updated joke {joke_id} fields: {sorted(changes)}")
        return joke

    async def toggle_used(self, joke_id: str, user_id: str) -> Joke:
        joke = await self._get_owned(joke_id, user_id, "update")
        return await self.joke_repo.update(joke, {"used": not joke.used})

    async def rate_joke(self, joke_id: str, rating: int, user_id: str) -> Joke:
        """Set the owner's quick rating (funny_rate)."""
        _check_funny_rate(rating)
        joke = await self._get_owned(joke_id, user_id, "rate")
        return await self.joke_repo.update(joke, {"funny_rate": rating})

    async def update_joke_category(self, joke_id: str, category: str, user_id: str) -> Joke:
        joke = await self._get_owned(joke_id, user_id, "update")
        final_name = await self.category_directory.ensure_category_exists(category, user_id)
        return await self.joke_repo.update(joke, {"category": final_name})

    async def delete_joke(self, joke_id: str, user_id: str) -> None:
        """Delete a joke and all of its ratings as one unit."""
        joke = await self._get_owned(joke_id, user_id, "delete")
        async with self.joke_repo.transaction():
            deleted_ratings = await self.rating_repo.delete_for_joke(joke_id)
            await self.joke_repo.delete(joke, commit=False)
        logger.info(f"User {user_id} deleted joke {joke_id} and {deleted_ratings} rating(s)")

    # Listing

    async def list_jokes(
        self,
        filters: JokeFilters,
        user_id: Optional[str] = None,
        cursor: Optional[str] = None,
    ) -> JokePage:
        """
        Get one page of jokes, newest first.

        has_more is true whenever a full page came back, so an exact multiple
        of the page size yields one trailing empty page.
        """
        decoded = JokeCursor.decode(cursor) if cursor else None
        plan = build_jokes_query(filters, user_id, decoded)
        if plan is None:
            return JokePage(jokes=[], next_cursor=None, has_more=False)

        jokes = await self.joke_repo.execute_plan(plan)
        has_more = len(jokes) == plan.page_size
        next_cursor = JokeCursor.from_joke(jokes[-1]).encode() if has_more else None
        return JokePage(jokes=jokes, next_cursor=next_cursor, has_more=has_more)

    async def fetch_user_five_star_jokes(self, user_id: str) -> List[str]:
        """Texts of the jokes the user most recently rated five stars."""
        ratings = await self.rating_repo.list_recent_by_value(
            user_id, FIVE_STARS, limit=FIVE_STAR_EXAMPLES_LIMIT
        )
        if not ratings:
            return []
        jokes = {joke.id: joke for joke in await self.joke_repo.get_many([r.joke_id for r in ratings])}
        return [jokes[r.joke_id].text for r in ratings if r.joke_id in jokes]
