"""Tests for the category directory and live category subscriptions."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from database.repositories.base import CategoryError, ErrorKind, TransportError
from services.category_service import CategoryDirectory
from services.subscriptions import SubscriptionHub


class TestEnsureCategoryExists:

    @pytest.mark.asyncio
    async def test_creates_on_first_use(self, category_directory, category_repository):
        name = await category_directory.ensure_category_exists("  Food  ", "user-1")

        assert name == "Food"
        stored = await category_repository.list_for_user("user-1")
        assert [c.name for c in stored] == ["Food"]

    @pytest.mark.asyncio
    async def test_idempotent(self, category_directory, category_repository):
        await category_directory.ensure_category_exists("Food", "user-1")
        first = await category_repository.get_by_name("user-1", "Food")
        await category_directory.ensure_category_exists("Food", "user-1")
        second = await category_repository.get_by_name("user-1", "Food")

        assert first.id == second.id
        assert len(await category_repository.list_for_user("user-1")) == 1

    @pytest.mark.asyncio
    async def test_categories_are_per_user(self, category_directory):
        await category_directory.ensure_category_exists("Food", "user-1")
        await category_directory.ensure_category_exists("Food", "user-2")

        assert [c.name for c in await category_directory.list_categories("user-1")] == ["Food"]
        assert [c.name for c in await category_directory.list_categories("user-2")] == ["Food"]
        assert len(await category_directory.list_all_categories()) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", None])
    async def test_empty_name_rejected(self, category_directory, name):
        with pytest.raises(CategoryError) as exc_info:
            await category_directory.ensure_category_exists(name, "user-1")

        assert exc_info.value.kind == ErrorKind.CATEGORY

    @pytest.mark.asyncio
    async def test_lost_race_returns_winner(self, category_repository, hub):
        directory = CategoryDirectory(category_repository, hub)
        # The read misses, but another writer has already inserted the row
        await category_repository.create({"name": "Food", "user_id": "user-1"})
        real_get = category_repository.get_by_name
        calls = []

        async def racing_get_by_name(user_id, name):
            calls.append(name)
            if len(calls) == 1:
                return None
            return await real_get(user_id, name)

        category_repository.get_by_name = racing_get_by_name

        assert await directory.ensure_category_exists("Food", "user-1") == "Food"
        assert len(calls) == 2
        assert len(await category_repository.list_for_user("user-1")) == 1

    @pytest.mark.asyncio
    async def test_get_or_create_category_returns_entry(self, category_directory):
        entry = await category_directory.get_or_create_category(" Puns ", "user-1")

        assert entry.name == "Puns"
        assert entry.user_id == "user-1"
        assert entry.id


class TestCategorySubscriptions:

    @pytest.mark.asyncio
    async def test_initial_snapshot_and_updates(self, category_directory):
        await category_directory.ensure_category_exists("Puns", "user-1")
        snapshots = []

        unsubscribe = await category_directory.subscribe_to_categories("user-1", snapshots.append)
        await category_directory.ensure_category_exists("Animals", "user-1")
        # Existing names do not trigger a push
        await category_directory.ensure_category_exists("Puns", "user-1")

        assert [[c.name for c in snapshot] for snapshot in snapshots] == [
            ["Puns"],
            ["Animals", "Puns"],
        ]

        unsubscribe()
        await category_directory.ensure_category_exists("Work", "user-1")
        assert len(snapshots) == 2

    @pytest.mark.asyncio
    async def test_other_users_changes_not_delivered(self, category_directory):
        snapshots = []
        await category_directory.subscribe_to_categories("user-1", snapshots.append)

        await category_directory.ensure_category_exists("Animals", "user-2")

        assert snapshots == [[]]

    @pytest.mark.asyncio
    async def test_blank_stored_names_are_dropped(self, category_directory, category_repository):
        await category_repository.create({"name": "  ", "user_id": "user-1"})
        await category_repository.create({"name": "Puns", "user_id": "user-1"})

        assert [c.name for c in await category_directory.list_categories("user-1")] == ["Puns"]

    @pytest.mark.asyncio
    async def test_store_failure_reported_once(self):
        repo = MagicMock()
        repo.list_for_user = AsyncMock(side_effect=TransportError("unavailable"))
        directory = CategoryDirectory(repo, SubscriptionHub())
        on_update = MagicMock()
        on_error = MagicMock()

        await directory.subscribe_to_categories("user-1", on_update, on_error)
        await directory.publish("user-1")

        on_update.assert_not_called()
        on_error.assert_called_once()
        assert isinstance(on_error.call_args[0][0], TransportError)
        assert directory.hub.listener_count(directory.subscription_key("user-1")) == 0


class TestSubscriptionHub:

    @pytest.mark.asyncio
    async def test_async_callbacks_and_failing_subscriber(self):
        hub = SubscriptionHub()
        received = []

        async def good(snapshot):
            received.append(snapshot)

        def bad(snapshot):
            raise RuntimeError("listener crashed")

        hub.subscribe("key", bad)
        hub.subscribe("key", good)
        await hub.publish("key", ["a"])

        assert received == [["a"]]

    @pytest.mark.asyncio
    async def test_fail_ends_all_subscriptions(self):
        hub = SubscriptionHub()
        errors = []
        subscription = hub.subscribe("key", lambda s: None, errors.append)

        await hub.fail("key", TransportError("down"))
        await hub.fail("key", TransportError("down again"))
        await subscription.fail(TransportError("late"))

        assert len(errors) == 1
        assert hub.listener_count("key") == 0
        assert not subscription.active
