"""
Ownership and visibility rules for presentations and their items.

Anonymous viewers and non-owners get read-only access to public presentations,
minus dashboard items, whose embed URLs can carry access tokens.
"""

from models.database.presentation import Presentation
from models.database.presentation_item import PresentationItem
from models.database.user import User
from shared.enums import ItemType


def is_owner(presentation: Presentation, user: User | None) -> bool:
    return user is not None and presentation.user_id == user.id


def can_view_presentation(presentation: Presentation, user: User | None) -> bool:
    return bool(presentation.is_public) or is_owner(presentation, user)


def can_view_item(presentation: Presentation, item: PresentationItem, user: User | None) -> bool:
    if is_owner(presentation, user):
        return True
    return bool(presentation.is_public) and (item.type or "").lower() != ItemType.POWERBI.value


def visible_items(
    presentation: Presentation, items: list[PresentationItem], user: User | None
) -> list[PresentationItem]:
    return [item for item in items if can_view_item(presentation, item, user)]
