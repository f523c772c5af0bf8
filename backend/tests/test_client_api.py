"""Tests for the async presentation client, with the HTTP layer mocked."""

import asyncio
import io
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from client.api import (
    APIError,
    LocalValidationError,
    MutationInProgressError,
    PresentationClient,
    items_key,
    presentation_key,
)
from client.auth_state import AuthState
from shared.enums import AuthEvent, ToastLevel
from shared.http_client import AsyncHTTPClient, HTTPClientError
from shared.media_utils import ImageValidationError

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc).isoformat()


def presentation_payload(presentation_id: str = "p1", title: str = "Lobby") -> dict:
    return {
        "id": presentation_id,
        "title": title,
        "refresh_interval": 5,
        "is_public": True,
        "user_id": "u1",
        "created_at": NOW,
        "updated_at": NOW,
    }


def item_payload(item_id: str = "i1", order_index: int = 0, presentation_id: str = "p1") -> dict:
    return {
        "id": item_id,
        "presentation_id": presentation_id,
        "type": "image",
        "title": f"Item {item_id}",
        "url": "",
        "display_time": 1,
        "order_index": order_index,
        "created_at": NOW,
    }


def session_payload() -> dict:
    return {
        "access_token": "token-abc",
        "token_type": "bearer",
        "expires_in": 3600,
        "session_id": "s1",
        "user": {"id": "u1", "email": "me@example.com", "roles": ["user"], "created_at": NOW},
    }


@pytest.fixture
def http() -> AsyncMock:
    return AsyncMock(spec=AsyncHTTPClient)


@pytest.fixture
def api(http: AsyncMock) -> PresentationClient:
    return PresentationClient(http)


@pytest.fixture
def signed_in_api(api: PresentationClient) -> PresentationClient:
    from shared.models import AuthSessionResponse

    api.auth.set_session(AuthSessionResponse.model_validate(session_payload()))
    return api


class TestAuthFlows:
    @pytest.mark.asyncio
    async def test_sign_in_sets_session_and_notifies(self, api: PresentationClient, http: AsyncMock) -> None:
        events = []
        subscription = api.auth.on_auth_state_change(lambda event, session: events.append(event))
        http.request.return_value = session_payload()

        session = await api.sign_in("me@example.com", "secret123")

        assert session.access_token == "token-abc"
        assert api.auth.auth_headers() == {"Authorization": "Bearer token-abc"}
        assert events == [AuthEvent.SIGNED_IN]
        assert api.notifier.latest.level == ToastLevel.SUCCESS

        subscription.unsubscribe()
        http.request.return_value = {"success": True}
        await api.sign_out()
        assert events == [AuthEvent.SIGNED_IN]
        assert not api.auth.is_signed_in

    @pytest.mark.asyncio
    async def test_sign_in_failure_toasts(self, api: PresentationClient, http: AsyncMock) -> None:
        http.request.side_effect = HTTPClientError(400, "Incorrect email or password")
        with pytest.raises(APIError) as exc_info:
            await api.sign_in("me@example.com", "bad")
        assert exc_info.value.status == 400
        assert api.notifier.latest.level == ToastLevel.ERROR
        assert api.notifier.latest.description == "Incorrect email or password"
        assert not api.auth.is_signed_in

    @pytest.mark.asyncio
    async def test_sign_out_event(self, signed_in_api: PresentationClient, http: AsyncMock) -> None:
        state: AuthState = signed_in_api.auth
        events = []
        state.on_auth_state_change(lambda event, session: events.append((event, session)))
        http.request.return_value = {"success": True}

        await signed_in_api.sign_out()

        assert events == [(AuthEvent.SIGNED_OUT, None)]

    @pytest.mark.asyncio
    async def test_restore_expired_session(self, signed_in_api: PresentationClient, http: AsyncMock) -> None:
        http.request.return_value = {"session": None}
        assert await signed_in_api.restore_session() is None
        assert not signed_in_api.auth.is_signed_in


class TestQueriesAndCache:
    @pytest.mark.asyncio
    async def test_list_presentations_is_cached(self, api: PresentationClient, http: AsyncMock) -> None:
        http.request.return_value = [presentation_payload()]

        first = await api.list_presentations()
        second = await api.list_presentations()

        assert first == second
        assert first[0].title == "Lobby"
        http.request.assert_awaited_once()
        assert http.request.call_args.args[:2] == ("GET", "/api/v1/presentations")

    @pytest.mark.asyncio
    async def test_mutation_invalidates_cache(self, signed_in_api: PresentationClient, http: AsyncMock) -> None:
        http.request.return_value = [presentation_payload()]
        await signed_in_api.list_presentations()

        http.request.return_value = presentation_payload("p2", "Kitchen")
        await signed_in_api.create_presentation("  Kitchen ")

        assert http.request.call_args.kwargs["json"]["title"] == "Kitchen"
        assert signed_in_api.cache.get("presentations") is None

    @pytest.mark.asyncio
    async def test_update_presentation_invalidates_entries(
        self, signed_in_api: PresentationClient, http: AsyncMock
    ) -> None:
        signed_in_api.cache.set(presentation_key("p1"), "stale")
        signed_in_api.cache.set("presentations", "stale")
        http.request.return_value = presentation_payload(title="Renamed")

        updated = await signed_in_api.update_presentation("p1", title="Renamed")

        assert updated.title == "Renamed"
        assert signed_in_api.cache.get(presentation_key("p1")) is None
        assert signed_in_api.cache.get("presentations") is None

    @pytest.mark.asyncio
    async def test_item_mutations_invalidate_item_cache(
        self, signed_in_api: PresentationClient, http: AsyncMock
    ) -> None:
        signed_in_api.cache.set(items_key("p1"), ["stale"])
        http.request.return_value = item_payload()
        await signed_in_api.add_item("p1", "image")
        assert signed_in_api.cache.get(items_key("p1")) is None

        signed_in_api.cache.set(items_key("p1"), ["stale"])
        await signed_in_api.update_item("i1", title="New")
        assert signed_in_api.cache.get(items_key("p1")) is None

    @pytest.mark.asyncio
    async def test_reorder_items_sends_full_order(
        self, signed_in_api: PresentationClient, http: AsyncMock
    ) -> None:
        signed_in_api.cache.set(items_key("p1"), ["stale"])
        http.request.return_value = [item_payload("i2", 0), item_payload("i1", 1)]

        items = await signed_in_api.reorder_items("p1", ["i2", "i1"])

        assert [(item.id, item.order_index) for item in items] == [("i2", 0), ("i1", 1)]
        method, path = http.request.call_args.args[:2]
        assert (method, path) == ("PUT", "/api/v1/presentations/p1/items/order")
        assert http.request.call_args.kwargs["json"] == {"item_ids": ["i2", "i1"]}
        assert signed_in_api.cache.get(items_key("p1")) is None

    @pytest.mark.asyncio
    async def test_quiet_reorder_failure_posts_no_toast(
        self, signed_in_api: PresentationClient, http: AsyncMock
    ) -> None:
        http.request.side_effect = HTTPClientError(400, "Reorder must list every item")

        with pytest.raises(APIError):
            await signed_in_api.reorder_items("p1", ["i1"], quiet=True)
        assert signed_in_api.notifier.latest is None

        with pytest.raises(APIError):
            await signed_in_api.reorder_items("p1", ["i1"])
        assert signed_in_api.notifier.latest.title == "Error reordering items"

    @pytest.mark.asyncio
    async def test_failed_mutation_keeps_cache(self, signed_in_api: PresentationClient, http: AsyncMock) -> None:
        signed_in_api.cache.set(items_key("p1"), ["cached"])
        http.request.side_effect = HTTPClientError(403, "Only the owner can modify this item")

        with pytest.raises(APIError):
            await signed_in_api.delete_item("i1", "p1")

        assert signed_in_api.cache.get(items_key("p1")) == ["cached"]
        assert signed_in_api.notifier.latest.title == "Error removing item"


class TestLocalValidation:
    @pytest.mark.asyncio
    async def test_blank_title_never_reaches_network(
        self, signed_in_api: PresentationClient, http: AsyncMock
    ) -> None:
        with pytest.raises(LocalValidationError):
            await signed_in_api.create_presentation("   ")
        with pytest.raises(LocalValidationError):
            await signed_in_api.update_presentation("p1", title="")
        http.request.assert_not_awaited()
        assert signed_in_api.notifier.latest.level == ToastLevel.ERROR

    @pytest.mark.asyncio
    async def test_signed_out_user_cannot_create(self, api: PresentationClient, http: AsyncMock) -> None:
        with pytest.raises(LocalValidationError):
            await api.create_presentation("Lobby")
        http.request.assert_not_awaited()
        assert api.notifier.latest.title == "Sign in to create presentations"

    @pytest.mark.asyncio
    async def test_disallowed_upload_never_reaches_network(
        self, signed_in_api: PresentationClient, http: AsyncMock
    ) -> None:
        with pytest.raises(ImageValidationError):
            await signed_in_api.upload_item_image("i1", "movie.mp4", "video/mp4", b"data")
        http.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_oversized_upload_never_reaches_network(
        self, signed_in_api: PresentationClient, http: AsyncMock, monkeypatch
    ) -> None:
        monkeypatch.setenv("SETTING_UPLOAD_MAX_UPLOAD_BYTES", "10")
        with pytest.raises(ImageValidationError) as exc_info:
            await signed_in_api.upload_item_image("i1", "big.png", "image/png", b"x" * 11)
        assert exc_info.value.reason == "too_large"
        http.request.assert_not_awaited()


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_sends_compressed_file(self, signed_in_api: PresentationClient, http: AsyncMock) -> None:
        buffer = io.BytesIO()
        Image.new("RGB", (2500, 500), (0, 0, 0)).save(buffer, format="JPEG")
        data = buffer.getvalue()
        http.request.return_value = {
            "item": item_payload(),
            "public_url": "http://testserver/storage/presentation-images/1_a.jpg",
            "storage_key": "1_a.jpg",
            "original_size": 10,
            "stored_size": 5,
            "reduction_percent": 50,
            "compressed": True,
            "warning": None,
        }

        result = await signed_in_api.upload_item_image("i1", "a.jpg", "image/jpeg", data)

        assert result.storage_key == "1_a.jpg"
        method, path = http.request.call_args.args[:2]
        assert (method, path) == ("POST", "/api/v1/items/i1/image")
        assert http.request.call_args.kwargs["data"] is not None
        assert signed_in_api.notifier.latest.title == "Image uploaded"


class TestMutationTracking:
    @pytest.mark.asyncio
    async def test_duplicate_submission_rejected(self, signed_in_api: PresentationClient, http: AsyncMock) -> None:
        release = asyncio.Event()

        async def slow_request(*args, **kwargs):
            await release.wait()
            return item_payload()

        http.request.side_effect = slow_request

        first = asyncio.create_task(signed_in_api.add_item("p1", "image"))
        await asyncio.sleep(0)
        assert signed_in_api.is_pending("add-item:p1")

        with pytest.raises(MutationInProgressError):
            await signed_in_api.add_item("p1", "image")

        release.set()
        await first
        assert not signed_in_api.is_pending("add-item:p1")
        assert http.request.await_count == 1

    @pytest.mark.asyncio
    async def test_network_error_becomes_api_error(self, signed_in_api: PresentationClient, http: AsyncMock) -> None:
        import aiohttp

        http.request.side_effect = aiohttp.ClientConnectionError("connection refused")
        with pytest.raises(APIError) as exc_info:
            await signed_in_api.get_player_view("p1")
        assert exc_info.value.status == 0
