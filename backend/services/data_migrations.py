"""
Idempotent data migrations.

Each migration runs at most once per database; applied names are recorded in
the ``migrations`` table.

Usage:
    python -m services.data_migrations [--database-url URL] [--list]
"""

import argparse
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from database.models import AppliedMigration, utcnow
from database.repositories.base import BaseRepository
from database.repositories.joke_repository import JokeRepository
from database.repositories.rating_repository import RatingRepository
from services.rating_service import average_of
from utils.keywords import generate_keywords

logger = logging.getLogger(__name__)


@dataclass
class DataMigration:
    """A named, one-shot data change. apply returns the number of rows touched."""
    name: str
    description: str
    apply: Callable[[AsyncSession], Awaitable[int]]


async def owner_ratings_to_joke_ratings(session: AsyncSession) -> int:
    """Turn each owner's quick funny rate into a regular rating by that owner."""
    joke_repo = JokeRepository(session)
    rating_repo = RatingRepository(session)

    migrated = 0
    for joke in await joke_repo.list_with_positive_funny_rate():
        if await rating_repo.get_for_user(joke.id, joke.user_id):
            continue
        now = utcnow()
        await rating_repo.create(
            {
                "joke_id": joke.id,
                "user_id": joke.user_id,
                "rating_value": joke.funny_rate,
                "created_at": now,
                "updated_at": now,
            },
            commit=False,
        )
        count, total = await rating_repo.aggregate_for_joke(joke.id)
        await joke_repo.set_rating_aggregate(joke, average_of(total, count), count)
        migrated += 1

    logger.info(f"Migrated {migrated} owner rating(s)")
    return migrated


async def add_keywords_to_jokes(session: AsyncSession) -> int:
    """Compute search keywords for jokes stored before keywords existed."""
    joke_repo = JokeRepository(session)

    updated = 0
    for joke in await joke_repo.list_missing_keywords():
        if not joke.text:
            continue
        joke.keywords = generate_keywords(joke.text)
        updated += 1
    await session.flush()

    logger.info(f"Added keywords to {updated} joke(s)")
    return updated


MIGRATIONS: List[DataMigration] = [
    DataMigration(
        name="001-owner-ratings-to-joke-ratings",
        description="Copy owner funny rates into joke ratings and recompute averages",
        apply=owner_ratings_to_joke_ratings,
    ),
    DataMigration(
        name="002-add-keywords-to-jokes",
        description="Fill search keywords for jokes that have none",
        apply=add_keywords_to_jokes,
    ),
]


class MigrationRunner:
    """Applies registered migrations in name order, skipping recorded ones."""

    def __init__(self, session: AsyncSession, migrations: Optional[List[DataMigration]] = None):
        self.session = session
        self.migrations = sorted(migrations if migrations is not None else MIGRATIONS, key=lambda m: m.name)
        self.applied_repo = BaseRepository(AppliedMigration, session)

    async def applied_names(self) -> List[str]:
        return [record.name for record in await self.applied_repo.find_by()]

    async def pending(self) -> List[DataMigration]:
        applied = set(await self.applied_names())
        return [migration for migration in self.migrations if migration.name not in applied]

    async def run(self) -> List[str]:
        """
        Apply every pending migration.

        A migration and its bookkeeping row commit together, so a failure
        leaves it unrecorded and it is retried on the next run.

        Returns:
            Names of the migrations applied by this run
        """
        applied = []
        for migration in await self.pending():
            logger.info(f"Applying migration {migration.name}: {migration.description}")
            async with self.applied_repo.transaction():
                touched = await migration.apply(self.session)
                self.session.add(AppliedMigration(name=migration.name, applied_at=utcnow()))
            logger.info(f"Migration {migration.name} applied ({touched} row(s))")
            applied.append(migration.name)

        if not applied:
            logger.info("No pending migrations")
        return applied


async def main(database_url: Optional[str] = None, list_only: bool = False) -> List[str]:
    from database.session import DatabaseManager

    manager = DatabaseManager(database_url)
    await manager.initialize()
    try:
        async with manager.get_session() as session:
            runner = MigrationRunner(session)
            if list_only:
                pending = [migration.name for migration in await runner.pending()]
                for name in pending:
                    print(name)
                return pending
            return await runner.run()
    finally:
        await manager.close()


if __name__ == "__main__":
    from utils.logging import setup_logging

    parser = argparse.ArgumentParser(description="Run pending data migrations")
    parser.add_argument("--database-url", help="Database URL, defaults to DATABASE_URL")
    parser.add_argument("--list", action="store_true", help="Only list pending migrations")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.database_url, args.list))
