from fastapi import APIRouter, Depends, Request
from typing import Optional

from models.joke import RatingSubmit, RatingResponse, JokeRatingsResponse
from models.auth import CurrentUser
from utils.auth import get_current_user
from middleware.rate_limit import ratings_limit
from routes.dependencies import get_rating_service
from services.rating_service import RatingService, summarize_ratings

router = APIRouter(prefix="/api/jokes/{joke_id}/ratings", tags=["Ratings"])


@router.put("/me", response_model=RatingResponse)
@ratings_limit
async def submit_rating(
    request: Request,
    joke_id: str,
    rating: RatingSubmit,
    user: CurrentUser = Depends(get_current_user),
    rating_service: RatingService = Depends(get_rating_service)
):
    """
    Create or replace the user's rating of a joke.

    The joke's average rating and rating count are updated with it.
    """
    return await rating_service.submit_user_rating(
        joke_id, rating.rating_value, user.user_id, rating.comment
    )

@router.get("/me", response_model=Optional[RatingResponse])
async def get_my_rating(
    joke_id: str,
    user: CurrentUser = Depends(get_current_user),
    rating_service: RatingService = Depends(get_rating_service)
):
    """The user's rating of a joke, or null."""
    return await rating_service.get_user_rating_for_joke(joke_id, user.user_id)

@router.get("", response_model=JokeRatingsResponse)
async def list_ratings(
    joke_id: str,
    user: CurrentUser = Depends(get_current_user),
    rating_service: RatingService = Depends(get_rating_service)
):
    """All ratings of a joke, most recently updated first, with their summary."""
    ratings = await rating_service.fetch_all_ratings_for_joke(joke_id)
    summary = summarize_ratings(ratings)
    return {"ratings": ratings, "average_rating": summary.average, "rating_count": summary.count}
