"""FastAPI application for presentation items."""

from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from models.database.user import User
from services.auth import get_current_user, get_optional_user
from services.errors import ServiceError
from services.items.service import ItemService
from shared.models import ItemCreate, ItemResponse, ItemUpdate, ReorderRequest
from shared.response_models import MessageResponse
from shared.utils import setup_logging

logger = setup_logging("items-app")

app = FastAPI(
    title="Presentation Item Service",
    description="Add, edit, delete and reorder the slides of a presentation",
    version="1.0.0",
)


def get_item_service(db: Session = Depends(get_db)) -> ItemService:
    return ItemService(db)


@app.get("/presentations/{presentation_id}/items", response_model=list[ItemResponse])
async def list_items(
    presentation_id: str,
    user: User | None = Depends(get_optional_user),
    service: ItemService = Depends(get_item_service),
) -> list[ItemResponse]:
    """Items in playback order. Non-owners never see dashboard items."""
    try:
        _, items = service.list_for_viewer(presentation_id, user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return [ItemResponse.model_validate(item) for item in items]


@app.post("/presentations/{presentation_id}/items", response_model=ItemResponse, status_code=201)
async def add_item(
    presentation_id: str,
    request: ItemCreate,
    user: User = Depends(get_current_user),
    service: ItemService = Depends(get_item_service),
) -> ItemResponse:
    """Append an image or dashboard item (owner only)."""
    try:
        return ItemResponse.model_validate(service.add(presentation_id, user, request))
    except ServiceError as e:
        logger.warning(f"Rejected new item for presentation {presentation_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e


@app.put("/presentations/{presentation_id}/items/order", response_model=list[ItemResponse])
async def reorder_items(
    presentation_id: str,
    request: ReorderRequest,
    user: User = Depends(get_current_user),
    service: ItemService = Depends(get_item_service),
) -> list[ItemResponse]:
    """Persist a new item order atomically (owner only)."""
    try:
        items = service.reorder(presentation_id, user, request.item_ids)
    except ServiceError as e:
        logger.warning(f"Rejected reorder of presentation {presentation_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return [ItemResponse.model_validate(item) for item in items]


@app.patch("/items/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str,
    request: ItemUpdate,
    user: User = Depends(get_current_user),
    service: ItemService = Depends(get_item_service),
) -> ItemResponse:
    """Edit title, URL, display time or position (owner only)."""
    try:
        return ItemResponse.model_validate(service.update(item_id, user, request))
    except ServiceError as e:
        logger.warning(f"Rejected update of item {item_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e


@app.delete("/items/{item_id}", response_model=MessageResponse)
async def delete_item(
    item_id: str,
    user: User = Depends(get_current_user),
    service: ItemService = Depends(get_item_service),
) -> MessageResponse:
    """Remove an item and close the gap in the order (owner only)."""
    try:
        service.delete(item_id, user)
    except ServiceError as e:
        logger.warning(f"Rejected delete of item {item_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return MessageResponse(message="Item deleted")
