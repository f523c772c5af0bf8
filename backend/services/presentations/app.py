"""FastAPI application for managing presentations."""

from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from models.database.user import User
from services.auth import get_current_user, get_optional_user
from services.errors import ServiceError
from services.presentations.service import PresentationService
from shared.models import (
    PresentationCreate,
    PresentationResponse,
    PresentationUpdate,
    ShareLinkResponse,
)
from shared.response_models import MessageResponse
from shared.utils import setup_logging

logger = setup_logging("presentations-app")

app = FastAPI(
    title="Presentation Service",
    description="Create, list, edit and delete presentations",
    version="1.0.0",
)


def get_presentation_service(db: Session = Depends(get_db)) -> PresentationService:
    return PresentationService(db)


@app.get("/presentations", response_model=list[PresentationResponse])
async def list_presentations(
    user: User | None = Depends(get_optional_user),
    service: PresentationService = Depends(get_presentation_service),
) -> list[PresentationResponse]:
    """List public presentations plus the caller's own, newest first."""
    return [PresentationResponse.model_validate(p) for p in service.list_visible(user)]


@app.post("/presentations", response_model=PresentationResponse, status_code=201)
async def create_presentation(
    request: PresentationCreate,
    user: User = Depends(get_current_user),
    service: PresentationService = Depends(get_presentation_service),
) -> PresentationResponse:
    """Create a presentation owned by the caller."""
    presentation = service.create(user, request)
    return PresentationResponse.model_validate(presentation)


@app.get("/presentations/{presentation_id}", response_model=PresentationResponse)
async def get_presentation(
    presentation_id: str,
    user: User | None = Depends(get_optional_user),
    service: PresentationService = Depends(get_presentation_service),
) -> PresentationResponse:
    try:
        return PresentationResponse.model_validate(service.get_visible(presentation_id, user))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e


@app.patch("/presentations/{presentation_id}", response_model=PresentationResponse)
async def update_presentation(
    presentation_id: str,
    request: PresentationUpdate,
    user: User = Depends(get_current_user),
    service: PresentationService = Depends(get_presentation_service),
) -> PresentationResponse:
    """Change title, refresh interval or visibility (owner only)."""
    try:
        return PresentationResponse.model_validate(service.update(presentation_id, user, request))
    except ServiceError as e:
        logger.warning(f"Rejected update of presentation {presentation_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e


@app.delete("/presentations/{presentation_id}", response_model=MessageResponse)
async def delete_presentation(
    presentation_id: str,
    user: User = Depends(get_current_user),
    service: PresentationService = Depends(get_presentation_service),
) -> MessageResponse:
    """Delete a presentation and all of its items (owner only)."""
    try:
        service.delete(presentation_id, user)
    except ServiceError as e:
        logger.warning(f"Rejected delete of presentation {presentation_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return MessageResponse(message="Presentation deleted")


@app.get("/presentations/{presentation_id}/share", response_model=ShareLinkResponse)
async def share_presentation(
    presentation_id: str,
    user: User = Depends(get_current_user),
    service: PresentationService = Depends(get_presentation_service),
) -> ShareLinkResponse:
    """Return the link that opens the player for this presentation."""
    try:
        presentation = service.get_owned(presentation_id, user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return ShareLinkResponse(
        presentation_id=presentation.id,
        url=service.share_url(presentation),
        is_public=presentation.is_public,
    )
