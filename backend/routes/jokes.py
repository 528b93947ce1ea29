from fastapi import APIRouter, Depends, HTTPException, status, Request, Query, Response
from typing import List, Optional

from models.joke import (
    JokeCreate, JokeUpdate, JokeResponse, JokeListResponse, ImportResponse,
    FunnyRateUpdate, CategoryChange, FiveStarJokesResponse
)
from models.auth import CurrentUser
from utils.auth import get_current_user, get_optional_user
from middleware.rate_limit import jokes_limit
from routes.dependencies import get_joke_service
from services.csv_import import parse_jokes_csv
from services.joke_service import JokeInput, JokeService
from services.query_builder import JokeFilters, JokeScope, UsageStatus
from database.repositories.base import ValidationError

router = APIRouter(prefix="/api/jokes", tags=["Jokes"])


def _to_input(joke: JokeCreate) -> JokeInput:
    return JokeInput(text=joke.text, category=joke.category, source=joke.source, funny_rate=joke.funny_rate)


@router.get("", response_model=JokeListResponse)
async def list_jokes(
    scope: JokeScope = Query(default=JokeScope.PUBLIC, description="public or user"),
    categories: List[str] = Query(default=[], description="Category names, up to 30 are applied"),
    funny_rate: int = Query(default=-1, alias="funnyRate", description="-1 for any, otherwise 0 to 5"),
    usage_status: UsageStatus = Query(default=UsageStatus.ALL, alias="usageStatus"),
    search: str = Query(default="", description="Text or keyword to look for"),
    cursor: Optional[str] = Query(default=None, description="nextCursor of the previous page"),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    """
    Get one page of jokes, newest first.

    The user scope needs a bearer token; without one it yields an empty page.
    """
    filters = JokeFilters(
        scope=scope,
        selected_categories=categories,
        filter_funny_rate=funny_rate,
        usage_status=usage_status,
        search=search,
    )
    page = await joke_service.list_jokes(filters, user.user_id if user else None, cursor)
    return {"jokes": page.jokes, "next_cursor": page.next_cursor, "has_more": page.has_more}

@router.post("", response_model=JokeResponse, status_code=status.HTTP_201_CREATED)
@jokes_limit
async def add_joke(
    request: Request,
    joke: JokeCreate,
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    """Add a joke; its category is created on first use."""
    return await joke_service.add_joke(_to_input(joke), user.user_id)

@router.post("/import", response_model=ImportResponse)
@jokes_limit
async def import_jokes(
    request: Request,
    jokes: List[JokeCreate],
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    """Import a list of jokes in one transaction; invalid entries are skipped."""
    result = await joke_service.import_jokes([_to_input(joke) for joke in jokes], user.user_id)
    return {"imported": result.imported, "skipped": result.skipped}

@router.post("/import-csv", response_model=ImportResponse)
@jokes_limit
async def import_jokes_csv(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    """Import jokes from a text/csv body with text, category and optional funnyrate columns."""
    try:
        content = (await request.body()).decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("CSV file must be UTF-8 encoded.")
    result = await joke_service.import_jokes(parse_jokes_csv(content), user.user_id)
    return {"imported": result.imported, "skipped": result.skipped}

@router.get("/five-star", response_model=FiveStarJokesResponse)
async def five_star_jokes(
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    """Texts of the jokes the user most recently rated five stars."""
    return {"jokes": await joke_service.fetch_user_five_star_jokes(user.user_id)}

@router.get("/{joke_id}", response_model=JokeResponse)
async def get_joke(
    joke_id: str,
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    joke = await joke_service.get_joke_by_id(joke_id)
    if joke is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Joke not found")
    return joke

@router.patch("/{joke_id}", response_model=JokeResponse)
@jokes_limit
async def update_joke(
    request: Request,
    joke_id: str,
    patch: JokeUpdate,
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    """Apply the fields present in the body to a joke the user owns."""
    return await joke_service.update_joke(joke_id, patch.model_dump(exclude_unset=True), user.user_id)

@router.delete("/{joke_id}", status_code=status.HTTP_204_NO_CONTENT)
@jokes_limit
async def delete_joke(
    request: Request,
    joke_id: str,
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    """Delete a joke and its ratings."""
    await joke_service.delete_joke(joke_id, user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/{joke_id}/toggle-used", response_model=JokeResponse)
async def toggle_used(
    joke_id: str,
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    return await joke_service.toggle_used(joke_id, user.user_id)

@router.put("/{joke_id}/funny-rate", response_model=JokeResponse)
async def rate_joke(
    joke_id: str,
    body: FunnyRateUpdate,
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    """Set the owner's quick rating."""
    return await joke_service.rate_joke(joke_id, body.funny_rate, user.user_id)

@router.put("/{joke_id}/category", response_model=JokeResponse)
async def update_joke_category(
    joke_id: str,
    body: CategoryChange,
    user: CurrentUser = Depends(get_current_user),
    joke_service: JokeService = Depends(get_joke_service)
):
    return await joke_service.update_joke_category(joke_id, body.category, user.user_id)
