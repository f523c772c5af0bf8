"""Drag-to-reorder with optimistic display and rollback."""

from __future__ import annotations

from typing import Sequence, TypeVar

from client.api import APIError, PresentationClient
from client.notifications import Notifier
from shared.models import ItemResponse
from shared.utils import setup_logging

logger = setup_logging("client-reorder")

T = TypeVar("T")


def move_item(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Return a new list with the item at ``from_index`` dropped at ``to_index``."""
    if not 0 <= from_index < len(items) or not 0 <= to_index < len(items):
        raise IndexError(f"Cannot move item {from_index} to {to_index} in a list of {len(items)}")
    result = list(items)
    result.insert(to_index, result.pop(from_index))
    return result


class ReorderController:
    """Keeps the displayed order and the last order the server confirmed.

    ``displayed`` changes as soon as an item is dropped. If persisting the new
    order fails, it snaps back to ``known_good``.
    """

    def __init__(
        self,
        client: PresentationClient,
        presentation_id: str,
        items: Sequence[ItemResponse],
        notifier: Notifier | None = None,
    ) -> None:
        self.client = client
        self.presentation_id = presentation_id
        self.notifier = notifier or client.notifier
        self.known_good: list[ItemResponse] = list(items)
        self.displayed: list[ItemResponse] = list(items)

    def reset(self, items: Sequence[ItemResponse]) -> None:
        """Adopt a freshly fetched list as both displayed and known-good."""
        self.known_good = list(items)
        self.displayed = list(items)

    async def _restore_known_good(self) -> None:
        """Put the server back on the known-good order after a partial persist."""
        try:
            await self.client.reorder_items(
                self.presentation_id, [item.id for item in self.known_good], quiet=True
            )
        except APIError as e:
            logger.error(f"Could not restore order of presentation {self.presentation_id}: {e}")

    async def drop(self, from_index: int, to_index: int) -> bool:
        """Move an item and persist the new order; returns whether it stuck."""
        if from_index == to_index:
            return True

        reordered = move_item(self.displayed, from_index, to_index)
        self.displayed = reordered

        # Each update moves one item on the server, so they must land in position order
        failure: APIError | None = None
        for position, item in enumerate(reordered):
            try:
                await self.client.update_item(item.id, quiet=True, order_index=position)
            except APIError as e:
                failure = e
                break
        self.client.invalidate_items(self.presentation_id)

        if failure is not None:
            await self._restore_known_good()
            self.displayed = list(self.known_good)
            logger.warning(f"Reorder of presentation {self.presentation_id} failed at position {position}; rolled back")
            self.notifier.error("Error reordering items", str(failure))
            return False

        self.displayed = [
            item.model_copy(update={"order_index": position}) for position, item in enumerate(reordered)
        ]
        self.known_good = list(self.displayed)
        self.notifier.success("Order updated")
        return True
