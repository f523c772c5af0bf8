from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field

from .enums import ItemType

MAX_REFRESH_MINUTES = 60
MAX_DISPLAY_MINUTES = 60


def _clean_title(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("Presentation title is required")
    return stripped


PresentationTitle = Annotated[str, Field(max_length=255), AfterValidator(_clean_title)]


# Auth Models
class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class SessionUser(BaseModel):
    id: str
    email: str
    roles: list[str] = []
    created_at: datetime | None = None


class AuthSessionResponse(BaseModel):
    """Issued on sign-up and sign-in."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    session_id: str
    user: SessionUser


class CurrentSessionResponse(BaseModel):
    """``session`` is null for anonymous callers."""

    session: AuthSessionResponse | None = None


# Presentation Models
class PresentationCreate(BaseModel):
    title: PresentationTitle
    refresh_interval: int = Field(default=5, ge=1, le=MAX_REFRESH_MINUTES, description="Minutes")
    is_public: bool = True


class PresentationUpdate(BaseModel):
    title: PresentationTitle | None = None
    refresh_interval: int | None = Field(default=None, ge=1, le=MAX_REFRESH_MINUTES)
    is_public: bool | None = None


class PresentationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    refresh_interval: int
    is_public: bool
    user_id: str
    created_at: datetime
    updated_at: datetime | None = None


class ShareLinkResponse(BaseModel):
    presentation_id: str
    url: str
    is_public: bool


# Item Models
class ItemCreate(BaseModel):
    type: ItemType
    title: str | None = Field(default=None, max_length=255)
    url: str = Field(default="", max_length=2048)
    display_time: int = Field(default=1, ge=0, le=MAX_DISPLAY_MINUTES, description="Minutes; 0 pins the slide")


class ItemUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    url: str | None = Field(default=None, max_length=2048)
    display_time: int | None = Field(default=None, ge=0, le=MAX_DISPLAY_MINUTES)
    order_index: int | None = Field(default=None, ge=0)


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    presentation_id: str
    type: ItemType
    title: str
    url: str
    display_time: int
    order_index: int
    created_at: datetime | None = None


class ReorderRequest(BaseModel):
    item_ids: list[str] = Field(..., description="Every sibling item id, in the new order")


# Player Models
class PlayerPresentation(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    refresh_interval: int


class PlayerResponse(BaseModel):
    presentation: PlayerPresentation
    items: list[ItemResponse]


# Upload Models
class UploadResponse(BaseModel):
    item: ItemResponse
    public_url: str
    storage_key: str
    original_size: int
    stored_size: int
    reduction_percent: int
    compressed: bool
    warning: str | None = None
