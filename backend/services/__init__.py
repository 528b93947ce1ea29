"""Service modules for the Punchline application."""

from .category_service import CategoryDirectory, CategoryEntry
from .rating_service import RatingService, RatingSummary
from .joke_service import JokeService, JokeInput, JokePage, ImportResult
from .ai_joke_service import AIJokeService, AIGenerationError, GeneratedJoke

__all__ = [
    'CategoryDirectory',
    'CategoryEntry',
    'RatingService',
    'RatingSummary',
    'JokeService',
    'JokeInput',
    'JokePage',
    'ImportResult',
    'AIJokeService',
    'AIGenerationError',
    'GeneratedJoke'
]
