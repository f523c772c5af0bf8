"""
Async client for the SlideLoop API used by the manager and player front ends.

Reads go through a query cache keyed ``presentations``, ``presentation:<id>``
and ``presentation-items:<id>``; every successful mutation invalidates the
keys it touches. Each call reports its outcome as a toast.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import aiohttp

from client.auth_state import AuthState
from client.notifications import Notifier
from services.uploads.pipeline import UploadPipeline
from shared.cache import Cache
from shared.enums import ItemType
from shared.http_client import AsyncHTTPClient, HTTPClientError
from shared.media_utils import ImageValidationError
from shared.models import (
    AuthSessionResponse,
    CurrentSessionResponse,
    ItemResponse,
    PlayerResponse,
    PresentationResponse,
    ShareLinkResponse,
    UploadResponse,
)
from shared.utils import setup_logging

logger = setup_logging("presentation-client")

API_PREFIX = "/api/v1"
PRESENTATIONS_KEY = "presentations"


def presentation_key(presentation_id: str) -> str:
    return f"presentation:{presentation_id}"


def items_key(presentation_id: str) -> str:
    return f"presentation-items:{presentation_id}"


class APIError(HTTPClientError):
    """A request failed; ``status`` is 0 when the server was never reached."""


class MutationInProgressError(RuntimeError):
    """The same mutation was submitted again before the first one finished."""


class LocalValidationError(ValueError):
    """Input rejected on the client before any request was made."""


class PresentationClient:
    def __init__(
        self,
        http: AsyncHTTPClient,
        auth: AuthState | None = None,
        cache: Cache | None = None,
        notifier: Notifier | None = None,
        pipeline: UploadPipeline | None = None,
    ) -> None:
        self.http = http
        self.auth = auth or AuthState()
        self.cache = cache or Cache()
        self.notifier = notifier or Notifier()
        self.pipeline = pipeline or UploadPipeline()
        self._pending: set[str] = set()

    # -- plumbing ---------------------------------------------------------

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None, data: Any = None) -> Any:
        try:
            return await self.http.request(
                method, f"{API_PREFIX}{path}", json=json, data=data, headers=self.auth.auth_headers()
            )
        except HTTPClientError as e:
            raise APIError(e.status, e.detail) from e
        except aiohttp.ClientError as e:
            raise APIError(0, str(e) or "Network error") from e

    def is_pending(self, mutation: str) -> bool:
        """Whether ``mutation`` is in flight, i.e. its control should be disabled."""
        return mutation in self._pending

    @asynccontextmanager
    async def _mutation(self, key: str) -> AsyncIterator[None]:
        if key in self._pending:
            raise MutationInProgressError(f"{key} is already in progress")
        self._pending.add(key)
        try:
            yield
        finally:
            self._pending.discard(key)

    def _require_session(self, message: str) -> None:
        if not self.auth.is_signed_in:
            self.notifier.error(message)
            raise LocalValidationError(message)

    @staticmethod
    def _require_title(title: str, message: str = "Presentation title is required") -> str:
        stripped = (title or "").strip()
        if not stripped:
            raise LocalValidationError(message)
        return stripped

    def invalidate_presentations(self, presentation_id: str | None = None) -> None:
        self.cache.delete(PRESENTATIONS_KEY)
        if presentation_id:
            self.cache.delete(presentation_key(presentation_id))

    def invalidate_items(self, presentation_id: str) -> None:
        self.cache.delete(items_key(presentation_id))

    # -- auth -------------------------------------------------------------

    async def sign_up(self, email: str, password: str) -> AuthSessionResponse:
        async with self._mutation("sign-up"):
            try:
                payload = await self._request("POST", "/auth/signup", json={"email": email, "password": password})
            except APIError as e:
                self.notifier.error("Sign-up failed", e.detail)
                raise
        session = AuthSessionResponse.model_validate(payload)
        self.auth.set_session(session)
        self.cache.clear()
        self.notifier.success("Account created")
        return session

    async def sign_in(self, email: str, password: str) -> AuthSessionResponse:
        async with self._mutation("sign-in"):
            try:
                payload = await self._request("POST", "/auth/signin", json={"email": email, "password": password})
            except APIError as e:
                self.notifier.error("Sign-in failed", e.detail)
                raise
        session = AuthSessionResponse.model_validate(payload)
        self.auth.set_session(session)
        self.cache.clear()
        self.notifier.success("Signed in")
        return session

    async def sign_out(self) -> None:
        if not self.auth.is_signed_in:
            return
        try:
            await self._request("POST", "/auth/signout")
        except APIError as e:
            # the local session is dropped either way
            logger.warning(f"Server sign-out failed: {e}")
        self.auth.clear()
        self.cache.clear()

    async def restore_session(self) -> AuthSessionResponse | None:
        """Ask the server whether the stored token still has a live session."""
        if not self.auth.is_signed_in:
            return None
        current = CurrentSessionResponse.model_validate(await self._request("GET", "/auth/session"))
        if current.session is None:
            self.auth.clear()
            self.cache.clear()
        return current.session

    # -- presentations ----------------------------------------------------

    async def list_presentations(self) -> list[PresentationResponse]:
        cached = self.cache.get(PRESENTATIONS_KEY)
        if cached is not None:
            return cached
        payload = await self._request("GET", "/presentations")
        presentations = [PresentationResponse.model_validate(p) for p in payload]
        self.cache.set(PRESENTATIONS_KEY, presentations)
        return presentations

    async def get_presentation(self, presentation_id: str) -> PresentationResponse:
        key = presentation_key(presentation_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        presentation = PresentationResponse.model_validate(
            await self._request("GET", f"/presentations/{presentation_id}")
        )
        self.cache.set(key, presentation)
        return presentation

    async def create_presentation(
        self, title: str, refresh_interval: int = 5, is_public: bool = True
    ) -> PresentationResponse:
        self._require_session("Sign in to create presentations")
        try:
            title = self._require_title(title)
        except LocalValidationError as e:
            self.notifier.error(str(e))
            raise

        async with self._mutation("create-presentation"):
            try:
                payload = await self._request(
                    "POST",
                    "/presentations",
                    json={"title": title, "refresh_interval": refresh_interval, "is_public": is_public},
                )
            except APIError as e:
                self.notifier.error("Error creating presentation", e.detail)
                raise
        presentation = PresentationResponse.model_validate(payload)
        self.invalidate_presentations()
        self.notifier.success("Presentation created")
        return presentation

    async def update_presentation(self, presentation_id: str, **changes: Any) -> PresentationResponse:
        """Change ``title``, ``refresh_interval`` and/or ``is_public``."""
        self._require_session("Sign in to edit")
        if "title" in changes:
            try:
                changes["title"] = self._require_title(changes["title"])
            except LocalValidationError as e:
                self.notifier.error(str(e))
                raise

        async with self._mutation(f"update-presentation:{presentation_id}"):
            try:
                payload = await self._request("PATCH", f"/presentations/{presentation_id}", json=changes)
            except APIError as e:
                self.notifier.error("Error updating presentation", e.detail)
                raise
        presentation = PresentationResponse.model_validate(payload)
        self.invalidate_presentations(presentation_id)
        self.notifier.success("Presentation updated")
        return presentation

    async def delete_presentation(self, presentation_id: str) -> None:
        self._require_session("Sign in to delete")
        async with self._mutation(f"delete-presentation:{presentation_id}"):
            try:
                await self._request("DELETE", f"/presentations/{presentation_id}")
            except APIError as e:
                self.notifier.error("Error deleting presentation", e.detail)
                raise
        self.invalidate_presentations(presentation_id)
        self.invalidate_items(presentation_id)
        self.notifier.success("Presentation deleted")

    async def get_share_link(self, presentation_id: str) -> ShareLinkResponse:
        try:
            payload = await self._request("GET", f"/presentations/{presentation_id}/share")
        except APIError as e:
            self.notifier.error("Error creating share link", e.detail)
            raise
        link = ShareLinkResponse.model_validate(payload)
        if not link.is_public:
            self.notifier.warning("Link created", "This presentation is private; only you can open it.")
        else:
            self.notifier.success("Link created")
        return link

    # -- items ------------------------------------------------------------

    async def list_items(self, presentation_id: str) -> list[ItemResponse]:
        key = items_key(presentation_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        payload = await self._request("GET", f"/presentations/{presentation_id}/items")
        items = [ItemResponse.model_validate(item) for item in payload]
        self.cache.set(key, items)
        return items

    async def add_item(
        self,
        presentation_id: str,
        item_type: ItemType,
        title: str | None = None,
        url: str = "",
        display_time: int = 1,
    ) -> ItemResponse:
        body: dict[str, Any] = {"type": ItemType(item_type).value, "url": url, "display_time": display_time}
        if title is not None:
            body["title"] = title

        async with self._mutation(f"add-item:{presentation_id}"):
            try:
                payload = await self._request("POST", f"/presentations/{presentation_id}/items", json=body)
            except APIError as e:
                self.notifier.error("Error adding item", e.detail)
                raise
        item = ItemResponse.model_validate(payload)
        self.invalidate_items(presentation_id)
        self.notifier.success("Item added")
        return item

    async def update_item(self, item_id: str, quiet: bool = False, **changes: Any) -> ItemResponse:
        """Change ``title``, ``url``, ``display_time`` and/or ``order_index``.

        ``quiet`` suppresses toasts, for callers that report a batch themselves.
        """
        async with self._mutation(f"update-item:{item_id}"):
            try:
                payload = await self._request("PATCH", f"/items/{item_id}", json=changes)
            except APIError as e:
                if not quiet:
                    self.notifier.error("Error updating item", e.detail)
                raise
        item = ItemResponse.model_validate(payload)
        self.invalidate_items(item.presentation_id)
        return item

    async def delete_item(self, item_id: str, presentation_id: str) -> None:
        async with self._mutation(f"delete-item:{item_id}"):
            try:
                await self._request("DELETE", f"/items/{item_id}")
            except APIError as e:
                self.notifier.error("Error removing item", e.detail)
                raise
        self.invalidate_items(presentation_id)
        self.notifier.success("Item removed")

    async def reorder_items(
        self, presentation_id: str, item_ids: list[str], quiet: bool = False
    ) -> list[ItemResponse]:
        """Persist a full ordering in one atomic request."""
        async with self._mutation(f"reorder:{presentation_id}"):
            try:
                payload = await self._request(
                    "PUT", f"/presentations/{presentation_id}/items/order", json={"item_ids": item_ids}
                )
            except APIError as e:
                if not quiet:
                    self.notifier.error("Error reordering items", e.detail)
                raise
        self.invalidate_items(presentation_id)
        return [ItemResponse.model_validate(item) for item in payload]

    async def upload_item_image(
        self, item_id: str, filename: str, content_type: str, data: bytes
    ) -> UploadResponse:
        """Validate and compress locally, then upload.

        Raises:
            ImageValidationError: before any request when the file is rejected.
        """
        try:
            prepared = self.pipeline.prepare(filename, content_type, data)
        except ImageValidationError as e:
            self.notifier.error(str(e))
            raise
        if prepared.warning:
            self.notifier.warning(prepared.warning)

        form = aiohttp.FormData()
        form.add_field("file", prepared.data, filename=prepared.filename, content_type=prepared.content_type)

        async with self._mutation(f"upload:{item_id}"):
            try:
                payload = await self._request("POST", f"/items/{item_id}/image", data=form)
            except APIError as e:
                self.notifier.error("Error uploading image", e.detail)
                raise
        result = UploadResponse.model_validate(payload)
        self.invalidate_items(result.item.presentation_id)
        reduction = prepared.reduction_percent
        self.notifier.success("Image uploaded", f"Reduced by {reduction}%" if reduction else "")
        return result

    # -- player -----------------------------------------------------------

    async def get_player_view(self, presentation_id: str) -> PlayerResponse:
        """Uncached; the player polls this."""
        return PlayerResponse.model_validate(await self._request("GET", f"/player/{presentation_id}"))
