"""Presentation store operations with ownership checks."""

from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from models.database.presentation import Presentation
from models.database.user import User
from services.errors import PermissionDeniedError, PresentationNotFoundError
from services.presentations.access import can_view_presentation, is_owner
from shared.models import PresentationCreate, PresentationUpdate
from shared.utils import config, setup_logging

logger = setup_logging("presentation-service")


class PresentationService:
    """CRUD over presentations for a single request's database session."""

    def __init__(self, db: Session):
        self.db = db

    def list_visible(self, user: User | None) -> list[Presentation]:
        """Public presentations plus the caller's own, newest first."""
        condition = Presentation.is_public.is_(True)
        if user is not None:
            condition = or_(condition, Presentation.user_id == user.id)
        stmt = select(Presentation).where(condition).order_by(Presentation.created_at.desc())
        return list(self.db.scalars(stmt).all())

    def get_visible(self, presentation_id: str, user: User | None) -> Presentation:
        presentation = self.db.get(Presentation, presentation_id)
        if presentation is None or not can_view_presentation(presentation, user):
            raise PresentationNotFoundError(f"Presentation {presentation_id} not found")
        return presentation

    def get_owned(self, presentation_id: str, user: User | None) -> Presentation:
        """Load a presentation the caller may mutate.

        Raises:
            PresentationNotFoundError: missing, or private to someone else.
            PermissionDeniedError: visible (public) but owned by someone else.
        """
        presentation = self.get_visible(presentation_id, user)
        if not is_owner(presentation, user):
            raise PermissionDeniedError("Only the owner can modify this presentation")
        return presentation

    def create(self, user: User, data: PresentationCreate) -> Presentation:
        presentation = Presentation(
            user_id=user.id,
            title=data.title,
            refresh_interval=data.refresh_interval,
            is_public=data.is_public,
        )
        self.db.add(presentation)
        self.db.commit()
        self.db.refresh(presentation)
        logger.info(f"Created presentation {presentation.id} for user {user.id}")
        return presentation

    def update(self, presentation_id: str, user: User, data: PresentationUpdate) -> Presentation:
        presentation = self.get_owned(presentation_id, user)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(presentation, field, value)
        self.db.commit()
        self.db.refresh(presentation)
        logger.info(f"Updated presentation {presentation_id} ({', '.join(sorted(changes)) or 'no changes'})")
        return presentation

    def delete(self, presentation_id: str, user: User) -> None:
        """Delete a presentation; its items go with it."""
        presentation = self.get_owned(presentation_id, user)
        self.db.delete(presentation)
        self.db.commit()
        logger.info(f"Deleted presentation {presentation_id}")

    @staticmethod
    def share_url(presentation: Presentation) -> str:
        base_url = config.get("public_base_url", "http://localhost:8000")
        return f"{base_url}/presentation/{presentation.id}"
