"""Presentation item operations: add, edit, delete, reorder."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.database.presentation import Presentation
from models.database.presentation_item import PresentationItem
from models.database.user import User
from services.errors import (
    InvalidReorderError,
    ItemNotFoundError,
    PermissionDeniedError,
)
from services.presentations.access import can_view_item, is_owner, visible_items
from services.presentations.service import PresentationService
from shared.enums import DEFAULT_ITEM_TITLES
from shared.models import ItemCreate, ItemUpdate
from shared.utils import setup_logging

logger = setup_logging("item-service")


class ItemService:
    """Item CRUD scoped to one database session.

    ``order_index`` is kept contiguous (0..n-1) per presentation: new items are
    appended, deletes compact the remaining siblings, a single-item move shifts
    the others, and reorders rewrite them all.
    """

    def __init__(self, db: Session):
        self.db = db
        self.presentations = PresentationService(db)

    def _siblings(self, presentation_id: str) -> list[PresentationItem]:
        stmt = (
            select(PresentationItem)
            .where(PresentationItem.presentation_id == presentation_id)
            .order_by(PresentationItem.order_index, PresentationItem.created_at)
        )
        return list(self.db.scalars(stmt).all())

    def list_for_viewer(self, presentation_id: str, user: User | None) -> tuple[Presentation, list[PresentationItem]]:
        """Items in playback order, filtered by what the caller may see."""
        presentation = self.presentations.get_visible(presentation_id, user)
        return presentation, visible_items(presentation, self._siblings(presentation_id), user)

    def get_owned_item(self, item_id: str, user: User | None) -> PresentationItem:
        item = self.db.get(PresentationItem, item_id)
        if item is None:
            raise ItemNotFoundError(f"Item {item_id} not found")

        presentation = item.presentation
        if is_owner(presentation, user):
            return item
        if can_view_item(presentation, item, user):
            raise PermissionDeniedError("Only the owner can modify this item")
        raise ItemNotFoundError(f"Item {item_id} not found")

    def add(self, presentation_id: str, user: User, data: ItemCreate) -> PresentationItem:
        presentation = self.presentations.get_owned(presentation_id, user)
        count = self.db.scalar(
            select(func.count())
            .select_from(PresentationItem)
            .where(PresentationItem.presentation_id == presentation.id)
        )
        item = PresentationItem(
            presentation_id=presentation.id,
            type=data.type.value,
            title=data.title if data.title is not None else DEFAULT_ITEM_TITLES[data.type],
            url=data.url,
            display_time=data.display_time,
            order_index=count or 0,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Added {item.type} item {item.id} to presentation {presentation.id}")
        return item

    def _move(self, item: PresentationItem, target: int) -> None:
        """Place ``item`` at ``target`` (clamped to the last slot) and shift the rest."""
        others = [sibling for sibling in self._siblings(item.presentation_id) if sibling.id != item.id]
        others.insert(min(target, len(others)), item)
        for position, sibling in enumerate(others):
            sibling.order_index = position

    def update(self, item_id: str, user: User, data: ItemUpdate) -> PresentationItem:
        """Apply field changes; a new ``order_index`` moves the item among its siblings."""
        item = self.get_owned_item(item_id, user)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        target = changes.pop("order_index", None)
        try:
            for field, value in changes.items():
                setattr(item, field, value)
            if target is not None:
                self._move(item, target)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Update of item {item_id} failed; rolled back")
            raise
        self.db.refresh(item)
        if target is not None:
            changes["order_index"] = item.order_index
        logger.debug(f"Updated item {item_id} ({', '.join(sorted(changes))})")
        return item

    def set_url(self, item_id: str, user: User, url: str) -> PresentationItem:
        return self.update(item_id, user, ItemUpdate(url=url))

    def delete(self, item_id: str, user: User) -> None:
        item = self.get_owned_item(item_id, user)
        presentation_id = item.presentation_id
        self.db.delete(item)
        self.db.flush()
        for position, sibling in enumerate(self._siblings(presentation_id)):
            sibling.order_index = position
        self.db.commit()
        logger.info(f"Deleted item {item_id} from presentation {presentation_id}")

    def reorder(self, presentation_id: str, user: User, item_ids: list[str]) -> list[PresentationItem]:
        """Rewrite every sibling's ``order_index`` in one transaction.

        Raises:
            InvalidReorderError: ``item_ids`` is not a permutation of the siblings.
        """
        presentation = self.presentations.get_owned(presentation_id, user)
        siblings = {item.id: item for item in self._siblings(presentation.id)}

        if len(item_ids) != len(set(item_ids)) or set(item_ids) != set(siblings):
            raise InvalidReorderError("Reorder must list every item of the presentation exactly once")

        try:
            for position, item_id in enumerate(item_ids):
                siblings[item_id].order_index = position
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Reorder of presentation {presentation.id} failed; rolled back")
            raise

        logger.info(f"Reordered {len(item_ids)} items in presentation {presentation.id}")
        return [siblings[item_id] for item_id in item_ids]
