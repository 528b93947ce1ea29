"""FastAPI dependencies that assemble services around the request's session."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database.repositories import CategoryRepository, JokeRepository, RatingRepository
from database.session import get_db_session
from services.ai_joke_service import AIJokeService
from services.category_service import CategoryDirectory
from services.joke_service import JokeService
from services.rating_service import RatingService


async def get_category_directory(session: AsyncSession = Depends(get_db_session)) -> CategoryDirectory:
    return CategoryDirectory(CategoryRepository(session))


async def get_joke_service(session: AsyncSession = Depends(get_db_session)) -> JokeService:
    return JokeService(
        joke_repo=JokeRepository(session),
        rating_repo=RatingRepository(session),
        category_directory=CategoryDirectory(CategoryRepository(session)),
    )


async def get_rating_service(session: AsyncSession = Depends(get_db_session)) -> RatingService:
    return RatingService(rating_repo=RatingRepository(session), joke_repo=JokeRepository(session))


_ai_service = None


def get_ai_service() -> AIJokeService:
    """Shared AI service; the OpenAI client keeps its own connection pool."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIJokeService()
    return _ai_service
