"""Schemas for the AI joke endpoints."""
from pydantic import Field, field_validator
from typing import List, Optional

from config import settings
from models.joke import CamelModel


class GenerateJokeRequest(CamelModel):
    topic_hint: Optional[str] = Field(default=None, description="Optional topic for the joke")
    prefilled_jokes: Optional[List[str]] = Field(
        default=None, description="Jokes the new one should resemble but differ from"
    )
    model: Optional[str] = Field(default=None, description="One of OPENAI_ALLOWED_MODELS")

    @field_validator("model")
    @classmethod
    def check_model(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in settings.OPENAI_ALLOWED_MODELS:
            raise ValueError(f"model must be one of {', '.join(settings.OPENAI_ALLOWED_MODELS)}")
        return value


class GenerateJokeResponse(CamelModel):
    joke_text: str
    category: str


class ExplainJokeRequest(CamelModel):
    joke_text: str = Field(..., description="The text of the joke to be explained")
    joke_id: Optional[str] = None
