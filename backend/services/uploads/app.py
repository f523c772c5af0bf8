"""FastAPI application for slide image uploads."""

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from database import get_db
from models.database.user import User
from services.auth import get_current_user
from services.errors import ServiceError, UploadRejectedError
from services.items.service import ItemService
from services.uploads.pipeline import UploadPipeline
from shared.enums import ItemType
from shared.media_utils import ImageValidationError
from shared.models import ItemResponse, UploadResponse
from shared.utils import setup_logging

logger = setup_logging("uploads-app")

app = FastAPI(
    title="Upload Service",
    description="Validate, compress and store slide images",
    version="1.0.0",
)

VALIDATION_STATUS = {
    "unsupported_type": 415,
    "too_large": 413,
    "empty": 400,
}


def get_upload_pipeline() -> UploadPipeline:
    return UploadPipeline()


def get_item_service(db: Session = Depends(get_db)) -> ItemService:
    return ItemService(db)


@app.post("/items/{item_id}/image", response_model=UploadResponse)
async def upload_item_image(
    item_id: str,
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    items: ItemService = Depends(get_item_service),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> UploadResponse:
    """Store an image for an image item and point the item at its public URL.

    Nothing is written to storage unless the caller owns the item and the file
    passes validation.
    """
    try:
        item = items.get_owned_item(item_id, user)
        if item.type != ItemType.IMAGE.value:
            raise UploadRejectedError("Only image items accept uploads")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    data = await file.read()
    filename = file.filename or "upload"
    try:
        result = pipeline.process(filename, file.content_type or "", data)
    except ImageValidationError as e:
        logger.warning(f"Rejected upload {filename!r} for item {item_id}: {e}")
        raise HTTPException(status_code=VALIDATION_STATUS.get(e.reason, 400), detail=str(e)) from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    updated = items.set_url(item_id, user, result.public_url)
    image = result.image
    return UploadResponse(
        item=ItemResponse.model_validate(updated),
        public_url=result.public_url,
        storage_key=result.storage_key,
        original_size=image.original_size,
        stored_size=image.stored_size,
        reduction_percent=image.reduction_percent,
        compressed=image.compressed,
        warning=image.warning,
    )
