"""Tests for the data migration runner."""

import pytest
from datetime import datetime, timezone

from database.models import AppliedMigration
from database.repositories.base import BaseRepository, TransportError
from services.data_migrations import DataMigration, MIGRATIONS, MigrationRunner


async def _legacy_joke(joke_repository, text, funny_rate=0, user_id="owner", keywords=None):
    return await joke_repository.create(joke_repository.build_record({
        "text": text,
        "category": "Legacy",
        "user_id": user_id,
        "date_added": datetime(2025, 1, 1, tzinfo=timezone.utc),
        "funny_rate": funny_rate,
        "keywords": keywords,
    }))


class TestMigrationRunner:

    @pytest.mark.asyncio
    async def test_registered_in_name_order(self, session):
        runner = MigrationRunner(session)

        assert [m.name for m in runner.migrations] == [
            "001-owner-ratings-to-joke-ratings",
            "002-add-keywords-to-jokes",
        ]
        assert len(MIGRATIONS) == 2

    @pytest.mark.asyncio
    async def test_runs_once(self, session):
        first = await MigrationRunner(session).run()
        second = await MigrationRunner(session).run()

        assert first == ["001-owner-ratings-to-joke-ratings", "002-add-keywords-to-jokes"]
        assert second == []
        recorded = await BaseRepository(AppliedMigration, session).find_by()
        assert {r.name for r in recorded} == set(first)
        assert all(r.applied_at is not None for r in recorded)

    @pytest.mark.asyncio
    async def test_failed_migration_not_recorded(self, session):
        async def broken(session):
            raise TransportError("store unavailable")

        runner = MigrationRunner(session, [DataMigration("001-broken", "fails", broken)])

        with pytest.raises(TransportError):
            await runner.run()

        assert [m.name for m in await runner.pending()] == ["001-broken"]


class TestOwnerRatingsMigration:

    @pytest.mark.asyncio
    async def test_owner_funny_rate_becomes_rating(self, session, joke_repository, rating_repository):
        rated = await _legacy_joke(joke_repository, "Rated legacy joke", funny_rate=4)
        unrated = await _legacy_joke(joke_repository, "Unrated legacy joke")

        await MigrationRunner(session).run()

        owner_rating = await rating_repository.get_for_user(rated.id, "owner")
        assert owner_rating.rating_value == 4
        assert await rating_repository.list_for_joke(unrated.id) == []

        joke = await joke_repository.get(rated.id)
        assert joke.rating_count == 1
        assert joke.average_rating == 4.0

    @pytest.mark.asyncio
    async def test_existing_owner_rating_kept(self, session, joke_repository, rating_service, rating_repository):
        joke = await _legacy_joke(joke_repository, "Already rated", funny_rate=2)
        await rating_service.submit_user_rating(joke.id, 5, "owner")
        await rating_service.submit_user_rating(joke.id, 3, "fan")

        await MigrationRunner(session).run()

        ratings = await rating_repository.list_for_joke(joke.id)
        assert len(ratings) == 2
        assert (await rating_repository.get_for_user(joke.id, "owner")).rating_value == 5


class TestKeywordsMigration:

    @pytest.mark.asyncio
    async def test_missing_keywords_filled(self, session, joke_repository):
        legacy = await _legacy_joke(joke_repository, "Parallel lines have so much in common")
        current = await _legacy_joke(joke_repository, "Already indexed", keywords=["custom"])

        await MigrationRunner(session).run()

        assert (await joke_repository.get(legacy.id)).keywords == [
            "parallel", "lines", "have", "much", "common",
        ]
        assert (await joke_repository.get(current.id)).keywords == ["custom"]
