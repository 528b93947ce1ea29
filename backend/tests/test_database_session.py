"""Tests for the database manager."""

import os
import tempfile

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from database.models import Category
from database.session import DatabaseManager


@pytest.fixture
async def manager():
    temp_file = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
    temp_file.close()
    manager = DatabaseManager(f"sqlite+aiosqlite:///{temp_file.name}")
    await manager.initialize()
    yield manager
    await manager.close()
    os.unlink(temp_file.name)


@pytest.mark.asyncio
async def test_session_commits(manager):
    async with manager.get_session() as session:
        session.add(Category(name="Puns", user_id="user-1"))

    async with manager.get_session() as session:
        names = (await session.execute(select(Category.name))).scalars().all()
    assert names == ["Puns"]


@pytest.mark.asyncio
async def test_session_rolls_back_on_error(manager):
    with pytest.raises(RuntimeError):
        async with manager.get_session() as session:
            session.add(Category(name="Lost", user_id="user-1"))
            await session.flush()
            raise RuntimeError("boom")

    async with manager.get_session() as session:
        assert (await session.execute(select(Category))).scalars().all() == []


@pytest.mark.asyncio
async def test_health_check(manager):
    health = await manager.health_check()

    assert health["status"] == "healthy"
    assert health["circuit_breaker"] == "closed"


@pytest.mark.asyncio
async def test_circuit_breaker_opens_after_repeated_failures(manager):
    for _ in range(5):
        manager._handle_error(OperationalError("SELECT 1", {}, Exception("locked")))

    with pytest.raises(RuntimeError, match="circuit breaker"):
        async with manager.get_session():
            pass


@pytest.mark.asyncio
async def test_uninitialized_manager():
    with pytest.raises(RuntimeError, match="not initialized"):
        async with DatabaseManager("sqlite+aiosqlite:///unused.db").get_session():
            pass
