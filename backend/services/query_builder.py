"""Translate joke list filters into a paginated SQLAlchemy query plan."""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import String, and_, cast, desc, func, or_, select
from sqlalchemy.sql import Select

from database.models import Joke
from database.repositories.base import ValidationError
from utils.keywords import normalize_keyword

logger = logging.getLogger(__name__)

PAGE_SIZE = 10
MAX_CATEGORY_FILTER = 30


class JokeScope(str, Enum):
    PUBLIC = "public"
    USER = "user"


class UsageStatus(str, Enum):
    ALL = "all"
    USED = "used"
    UNUSED = "unused"


@dataclass
class JokeFilters:
    """What the joke list should be narrowed down to."""
    scope: JokeScope = JokeScope.PUBLIC
    selected_categories: List[str] = field(default_factory=list)
    filter_funny_rate: int = -1  # -1 = any
    usage_status: UsageStatus = UsageStatus.ALL
    search: str = ""


@dataclass(frozen=True)
class JokeCursor:
    """Sort key of the last joke of a page; the next page starts strictly after it."""
    date_added: datetime
    joke_id: str

    @classmethod
    def from_joke(cls, joke: Joke) -> "JokeCursor":
        return cls(date_added=joke.date_added, joke_id=joke.id)

    def encode(self) -> str:
        payload = json.dumps({"d": self.date_added.isoformat(), "id": self.joke_id})
        return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, token: str) -> "JokeCursor":
        try:
            padded = token + "=" * (-len(token) % 4)
            payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
            return cls(
                date_added=datetime.fromisoformat(payload["d"]),
                joke_id=str(payload["id"]),
            )
        except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError):
            raise ValidationError("Invalid pagination cursor.", cursor=token)


@dataclass
class QueryPlan:
    """A ready-to-execute page query."""
    statement: Select
    page_size: int = PAGE_SIZE


def _search_condition(search: str):
    term = search.strip().lower()
    text_match = func.lower(Joke.text).contains(term, autoescape=True)
    keyword = normalize_keyword(term)
    if not keyword or " " in keyword:
        return text_match
    # keywords is a JSON array, so an exact member appears quoted in its text form
    keyword_match = cast(Joke.keywords, String).contains(f'"{keyword}"', autoescape=True)
    return or_(text_match, keyword_match)


def build_jokes_query(
    filters: JokeFilters,
    user_id: Optional[str] = None,
    cursor: Optional[JokeCursor] = None,
) -> Optional[QueryPlan]:
    """
    Build the query for one page of jokes.

    Args:
        filters: Scope, category, rating, usage and search filters
        user_id: Authenticated user, required for the user scope
        cursor: Last joke of the previous page

    Returns:
        QueryPlan, or None when the user scope is requested without a user
        (no results and no query should be issued)

    Raises:
        ValidationError: If the funny rate filter is out of range
    """
    if filters.scope == JokeScope.USER and not user_id:
        return None

    if filters.filter_funny_rate != -1 and not 0 <= filters.filter_funny_rate <= 5:
        raise ValidationError(
            "Funny rate filter must be -1 or between 0 and 5.",
            filter_funny_rate=filters.filter_funny_rate,
        )

    conditions = []

    if filters.scope == JokeScope.USER:
        conditions.append(Joke.user_id == user_id)

    if filters.search and filters.search.strip():
        conditions.append(_search_condition(filters.search))

    if filters.selected_categories:
        if len(filters.selected_categories) > MAX_CATEGORY_FILTER:
            logger.debug(
                f"Category filter truncated from {len(filters.selected_categories)} "
                f"to {MAX_CATEGORY_FILTER} entries"
            )
        conditions.append(Joke.category.in_(filters.selected_categories[:MAX_CATEGORY_FILTER]))

    if filters.filter_funny_rate != -1:
        conditions.append(Joke.funny_rate == filters.filter_funny_rate)

    if filters.usage_status == UsageStatus.USED:
        conditions.append(Joke.used.is_(True))
    elif filters.usage_status == UsageStatus.UNUSED:
        conditions.append(Joke.used.is_(False))

    if cursor is not None:
        conditions.append(
            or_(
                Joke.date_added < cursor.date_added,
                and_(Joke.date_added == cursor.date_added, Joke.id < cursor.joke_id),
            )
        )

    statement = select(Joke)
    if conditions:
        statement = statement.where(and_(*conditions))
    statement = statement.order_by(desc(Joke.date_added), desc(Joke.id)).limit(PAGE_SIZE)

    return QueryPlan(statement=statement)
