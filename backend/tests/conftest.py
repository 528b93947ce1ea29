"""Shared fixtures: temporary databases, repositories, services and an API client."""

import os
import tempfile

# Settings are read at import time, so the test environment must be in place first
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="punchline-logs-"))
os.environ["OPENAI_API_KEY"] = ""

import pytest
from typing import AsyncGenerator, Callable, Dict
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from database.models import Base
from database.repositories import CategoryRepository, JokeRepository, RatingRepository
from database.session import get_db_session
from services.category_service import CategoryDirectory
from services.joke_service import JokeInput, JokeService
from services.rating_service import RatingService
from services.subscriptions import SubscriptionHub
from utils.auth import create_access_token


@pytest.fixture
async def test_engine():
    """Create a test database engine backed by a temporary SQLite file, one connection per session."""
    temp_file = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
    temp_file.close()

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{temp_file.name}",
        connect_args={"check_same_thread": False},
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()
    os.unlink(temp_file.name)


@pytest.fixture
async def session_factory(test_engine):
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# Repositories and services

@pytest.fixture
async def joke_repository(session) -> JokeRepository:
    return JokeRepository(session)


@pytest.fixture
async def category_repository(session) -> CategoryRepository:
    return CategoryRepository(session)


@pytest.fixture
async def rating_repository(session) -> RatingRepository:
    return RatingRepository(session)


@pytest.fixture
def hub() -> SubscriptionHub:
    """A hub private to the test, so subscriptions never leak between tests."""
    return SubscriptionHub()


@pytest.fixture
async def category_directory(category_repository, hub) -> CategoryDirectory:
    return CategoryDirectory(category_repository, hub)


@pytest.fixture
async def joke_service(joke_repository, rating_repository, category_directory) -> JokeService:
    return JokeService(joke_repository, rating_repository, category_directory)


@pytest.fixture
async def rating_service(rating_repository, joke_repository) -> RatingService:
    return RatingService(rating_repository, joke_repository)


@pytest.fixture
async def created_joke(joke_service):
    """A joke owned by user-1."""
    return await joke_service.add_joke(
        JokeInput(text="Why don't scientists trust atoms? They make up everything!", category="Science"),
        "user-1",
    )


# API

@pytest.fixture
def auth_headers() -> Callable[[str], Dict[str, str]]:
    def make(user_id: str = "user-1") -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return make


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the app with the database dependency pointed at the test engine."""
    from main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
