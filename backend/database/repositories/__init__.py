"""Repository layer for database operations."""

from .base import (
    BaseRepository,
    ErrorKind,
    RepositoryError,
    ValidationError,
    CategoryError,
    PermissionDeniedError,
    NotFoundError,
    ConcurrencyError,
    TransportError,
)
from .joke_repository import JokeRepository
from .category_repository import CategoryRepository
from .rating_repository import RatingRepository

__all__ = [
    'BaseRepository',
    'ErrorKind',
    'RepositoryError',
    'ValidationError',
    'CategoryError',
    'PermissionDeniedError',
    'NotFoundError',
    'ConcurrencyError',
    'TransportError',
    'JokeRepository',
    'CategoryRepository',
    'RatingRepository',
]
