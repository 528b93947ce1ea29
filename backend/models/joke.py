"""Request and response schemas for jokes, ratings and categories."""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime


class CamelModel(BaseModel):
    """Accepts and emits camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Jokes

class JokeCreate(CamelModel):
    text: str = Field(..., description="Joke text")
    category: str = Field(..., description="Category name, created on first use")
    source: Optional[str] = Field(default=None, description="Where the joke came from")
    funny_rate: Optional[int] = Field(default=None, description="Owner's quick rating, 0 to 5")


class JokeUpdate(CamelModel):
    """Partial update; only fields present in the body are applied."""
    text: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None
    funny_rate: Optional[int] = None
    used: Optional[bool] = None
    explanation: Optional[str] = None


class JokeResponse(CamelModel):
    id: str
    text: str
    category: str
    source: Optional[str] = None
    explanation: Optional[str] = None
    date_added: datetime
    used: bool
    funny_rate: int
    user_id: str
    average_rating: Optional[float] = None
    rating_count: int = 0
    keywords: Optional[List[str]] = None


class JokeListResponse(CamelModel):
    jokes: List[JokeResponse]
    next_cursor: Optional[str] = None
    has_more: bool


class ImportResponse(CamelModel):
    imported: int
    skipped: int


class FunnyRateUpdate(CamelModel):
    funny_rate: int = Field(..., description="Owner's quick rating, 0 to 5")


class CategoryChange(CamelModel):
    category: str


class FiveStarJokesResponse(CamelModel):
    jokes: List[str]


# Ratings

class RatingSubmit(CamelModel):
    rating_value: int = Field(..., description="Stars, 1 to 5")
    comment: Optional[str] = Field(default=None, description="Optional comment, up to 1000 characters")


class RatingResponse(CamelModel):
    id: str
    joke_id: str
    user_id: str
    rating_value: int
    comment: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class JokeRatingsResponse(CamelModel):
    ratings: List[RatingResponse]
    average_rating: Optional[float] = None
    rating_count: int


# Categories

class CategoryCreate(CamelModel):
    name: str


class CategoryResponse(CamelModel):
    id: str
    name: str
    user_id: str
