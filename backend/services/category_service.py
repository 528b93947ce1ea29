"""Category directory: per-user category names and their live subscriptions."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from database.models import Category
from database.repositories.base import CategoryError, ConcurrencyError, RepositoryError
from database.repositories.category_repository import CategoryRepository
from services.subscriptions import (
    ErrorCallback,
    SubscriptionHub,
    UpdateCallback,
    category_hub,
)

logger = logging.getLogger(__name__)


@dataclass
class CategoryEntry:
    """Category as delivered to callers."""
    id: str
    name: str
    user_id: str


def _to_entries(categories: List[Category]) -> List[CategoryEntry]:
    entries = []
    for category in categories:
        # Rows without a usable name are dropped rather than reported
        if not isinstance(category.name, str) or not category.name.strip():
            continue
        entries.append(CategoryEntry(id=category.id, name=category.name.strip(), user_id=category.user_id))
    return entries


class CategoryDirectory:
    """Get-or-create access to a user's categories."""

    def __init__(self, category_repo: CategoryRepository, hub: SubscriptionHub = None):
        self.category_repo = category_repo
        self.hub = hub or category_hub

    @staticmethod
    def subscription_key(user_id: str):
        return ("categories", user_id)

    async def ensure_category_exists(self, name: str, user_id: str) -> str:
        """
        Return the stored name of a user's category, creating it on first use.

        Args:
            name: Raw category name, trimmed before comparison
            user_id: Owner ID

        Returns:
            The final (trimmed) category name

        Raises:
            CategoryError: If the trimmed name is empty
        """
        trimmed = (name or "").strip()
        if not trimmed:
            raise CategoryError("Category name cannot be empty.", user_id=user_id)

        existing = await self.category_repo.get_by_name(user_id, trimmed)
        if existing:
            return existing.name

        try:
            await self.category_repo.create({"name": trimmed, "user_id": user_id})
        except ConcurrencyError:
            # Another writer created it between our read and write
            winner = await self.category_repo.get_by_name(user_id, trimmed)
            if winner is None:
                raise
            logger.info(f"Category '{trimmed}' created concurrently for user {user_id}")
            return winner.name

        logger.info(f"Created category '{trimmed}' for user {user_id}")
        await self.publish(user_id)
        return trimmed

    async def get_or_create_category(self, name: str, user_id: str) -> CategoryEntry:
        """Like ensure_category_exists, but return the whole entry."""
        final_name = await self.ensure_category_exists(name, user_id)
        category = await self.category_repo.get_by_name(user_id, final_name)
        return CategoryEntry(id=category.id, name=category.name, user_id=category.user_id)

    async def list_categories(self, user_id: str) -> List[CategoryEntry]:
        """Get a user's categories ordered by name."""
        return _to_entries(await self.category_repo.list_for_user(user_id))

    async def list_all_categories(self) -> List[CategoryEntry]:
        """Get every user's categories ordered by name."""
        return _to_entries(await self.category_repo.list_all())

    async def publish(self, user_id: str) -> None:
        """Push the current category list to the user's subscribers."""
        key = self.subscription_key(user_id)
        if not self.hub.listener_count(key):
            return
        try:
            snapshot = await self.list_categories(user_id)
        except RepositoryError as e:
            logger.error(f"Could not load categories for user {user_id}: {e.message}")
            await self.hub.fail(key, e)
            return
        await self.hub.publish(key, snapshot)

    async def subscribe_to_categories(
        self,
        user_id: str,
        on_update: UpdateCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Callable[[], None]:
        """
        Deliver the user's category list now and after every change.

        Each delivery is the full ordered list. A store failure is reported
        through on_error once and ends the subscription.

        Returns:
            Function that cancels the subscription
        """
        subscription = self.hub.subscribe(self.subscription_key(user_id), on_update, on_error)

        def unsubscribe() -> None:
            self.hub.unsubscribe(subscription)

        try:
            snapshot = await self.list_categories(user_id)
        except RepositoryError as e:
            logger.error(f"Could not load categories for user {user_id}: {e.message}")
            await subscription.fail(e)
            self.hub.unsubscribe(subscription)
            return unsubscribe

        await subscription.deliver(snapshot)
        return unsubscribe
