"""API endpoints for AI joke generation and explanation."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError as SchemaValidationError
from typing import Type
import json
import logging

from models.ai import GenerateJokeRequest, GenerateJokeResponse, ExplainJokeRequest
from middleware.rate_limit import ai_limit
from routes.dependencies import get_ai_service
from services.ai_joke_service import AIGenerationError, AIJokeService

router = APIRouter(prefix="/api", tags=["AI Jokes"])
logger = logging.getLogger(__name__)


class InvalidInput(Exception):
    def __init__(self, details):
        self.details = details


async def _parse_body(request: Request, schema: Type[BaseModel]):
    """Validate the JSON body by hand so failures keep the {error, details} shape."""
    try:
        body = await request.json()
    except json.JSONDecodeError as e:
        raise InvalidInput([{"msg": f"Body is not valid JSON: {e.msg}"}])
    try:
        return schema.model_validate(body)
    except SchemaValidationError as e:
        raise InvalidInput(jsonable_encoder(e.errors(include_url=False)))


def _invalid_input(exc: InvalidInput) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid input", "details": exc.details},
    )


@router.post("/generate-joke", response_model=GenerateJokeResponse)
@ai_limit
async def generate_joke(
    request: Request,
    ai_service: AIJokeService = Depends(get_ai_service)
):
    """
    Generate a joke and a suggested category.

    Body: {topicHint?, prefilledJokes?, model?}
    """
    try:
        body = await _parse_body(request, GenerateJokeRequest)
    except InvalidInput as e:
        return _invalid_input(e)

    try:
        joke = await ai_service.generate_joke(
            topic_hint=body.topic_hint,
            prefilled_jokes=body.prefilled_jokes,
            model=body.model,
        )
    except AIGenerationError as e:
        logger.error(f"API error generating joke: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e) or "Failed to generate joke."},
        )

    return GenerateJokeResponse(joke_text=joke.joke_text, category=joke.category)

@router.post("/explain-joke")
@ai_limit
async def explain_joke(
    request: Request,
    ai_service: AIJokeService = Depends(get_ai_service)
):
    """
    Stream a plain-text explanation of a joke.

    Body: {jokeText, jokeId?}
    """
    try:
        body = await _parse_body(request, ExplainJokeRequest)
    except InvalidInput as e:
        return _invalid_input(e)

    try:
        chunks = await ai_service.stream_explanation(body.joke_text)
    except AIGenerationError as e:
        logger.error(f"API error explaining joke {body.joke_id or ''}: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e) or "Failed to get joke explanation."},
        )

    return StreamingResponse(
        chunks,
        media_type="text/plain; charset=utf-8",
        headers={"X-Content-Type-Options": "nosniff"},
    )
