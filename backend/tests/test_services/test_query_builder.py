"""Tests for the joke query builder and pagination cursors."""

import pytest
from datetime import datetime, timezone

from database.repositories.base import ValidationError
from services.query_builder import (
    MAX_CATEGORY_FILTER,
    PAGE_SIZE,
    JokeCursor,
    JokeFilters,
    JokeScope,
    UsageStatus,
    build_jokes_query,
)


class TestBuildJokesQuery:

    def test_user_scope_without_user_builds_nothing(self):
        filters = JokeFilters(scope=JokeScope.USER, usage_status=UsageStatus.USED, filter_funny_rate=-1)

        assert build_jokes_query(filters, user_id=None) is None

    def test_public_scope_without_user(self):
        plan = build_jokes_query(JokeFilters())

        assert plan is not None
        assert plan.page_size == PAGE_SIZE

    @pytest.mark.parametrize("rate", [-2, 6, 10])
    def test_out_of_range_funny_rate_rejected(self, rate):
        with pytest.raises(ValidationError):
            build_jokes_query(JokeFilters(filter_funny_rate=rate))

    def test_order_and_limit(self):
        sql = str(build_jokes_query(JokeFilters()).statement.compile())

        assert "ORDER BY jokes.date_added DESC, jokes.id DESC" in sql
        assert "LIMIT" in sql

    def test_category_filter_truncated(self):
        categories = [f"cat-{i}" for i in range(MAX_CATEGORY_FILTER + 5)]
        statement = build_jokes_query(JokeFilters(selected_categories=categories)).statement

        params = statement.compile().params
        in_values = next(value for value in params.values() if isinstance(value, list))
        assert in_values == categories[:MAX_CATEGORY_FILTER]


class TestJokeCursor:

    def test_round_trip(self):
        cursor = JokeCursor(date_added=datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc), joke_id="abc")

        assert JokeCursor.decode(cursor.encode()) == cursor

    @pytest.mark.parametrize("token", ["not-a-cursor", "e30", "!!!", "eyJkIjogMX0"])
    def test_malformed_cursor_rejected(self, token):
        with pytest.raises(ValidationError):
            JokeCursor.decode(token)
