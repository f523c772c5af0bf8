"""FastAPI application for the shared presentation player."""

from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from models.database.user import User
from services.auth import get_optional_user
from services.errors import ServiceError
from services.items.service import ItemService
from shared.models import ItemResponse, PlayerPresentation, PlayerResponse
from shared.utils import setup_logging

logger = setup_logging("player-app")

app = FastAPI(
    title="Player Service",
    description="Read-only playback view of a presentation",
    version="1.0.0",
)


def get_item_service(db: Session = Depends(get_db)) -> ItemService:
    return ItemService(db)


@app.get("/player/{presentation_id}", response_model=PlayerResponse)
async def get_player_view(
    presentation_id: str,
    user: User | None = Depends(get_optional_user),
    service: ItemService = Depends(get_item_service),
) -> PlayerResponse:
    """Playback settings plus the items the caller may see, in order.

    Opened through the share link, so no sign-in is required for public
    presentations.
    """
    try:
        presentation, items = service.list_for_viewer(presentation_id, user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    logger.debug(f"Player view of {presentation_id} with {len(items)} items")
    return PlayerResponse(
        presentation=PlayerPresentation.model_validate(presentation),
        items=[ItemResponse.model_validate(item) for item in items],
    )
