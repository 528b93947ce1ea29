from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from starlette.websockets import WebSocketState
from typing import List
import logging

from models.joke import CategoryCreate, CategoryResponse
from models.auth import CurrentUser
from utils.auth import get_current_user, user_from_token
from routes.dependencies import get_category_directory
from services.category_service import CategoryDirectory, CategoryEntry

router = APIRouter(prefix="/api/categories", tags=["Categories"])
logger = logging.getLogger(__name__)


def _serialize(categories: List[CategoryEntry]) -> list:
    return [
        CategoryResponse.model_validate(category).model_dump(by_alias=True)
        for category in categories
    ]


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    user: CurrentUser = Depends(get_current_user),
    directory: CategoryDirectory = Depends(get_category_directory)
):
    """The user's categories ordered by name."""
    return await directory.list_categories(user.user_id)

@router.post("", response_model=CategoryResponse)
async def create_category(
    body: CategoryCreate,
    user: CurrentUser = Depends(get_current_user),
    directory: CategoryDirectory = Depends(get_category_directory)
):
    """Get or create a category by its trimmed name."""
    return await directory.get_or_create_category(body.name, user.user_id)

@router.websocket("/live")
async def categories_live(
    websocket: WebSocket,
    token: str = Query(...),
    directory: CategoryDirectory = Depends(get_category_directory)
):
    """
    Push the user's full category list on connect and after every change.

    Server messages:
    - {"type": "categories", "categories": [...]}
    - {"type": "error", "message": "..."} followed by a close
    """
    user = user_from_token(token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    async def on_update(categories: List[CategoryEntry]) -> None:
        await websocket.send_json({"type": "categories", "categories": _serialize(categories)})

    async def on_error(error: Exception) -> None:
        await websocket.send_json(jsonable_encoder({"type": "error", "message": getattr(error, "message", str(error))}))
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)

    unsubscribe = await directory.subscribe_to_categories(user.user_id, on_update, on_error)
    try:
        while websocket.application_state == WebSocketState.CONNECTED:
            # Clients only send keepalives; the loop ends on disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Category subscriber for user {user.user_id} disconnected")
    finally:
        unsubscribe()
