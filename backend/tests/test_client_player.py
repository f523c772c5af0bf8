"""Tests for the client player loop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from client.api import APIError
from client.player import PlayerSession
from shared.enums import SlideKind
from shared.models import ItemResponse, PlayerPresentation, PlayerResponse


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _view(refresh_interval: int = 5, display_times=(1, 2)) -> PlayerResponse:
    return PlayerResponse(
        presentation=PlayerPresentation(id="p1", title="Lobby", refresh_interval=refresh_interval),
        items=[
            ItemResponse(
                id=f"i{index}",
                presentation_id="p1",
                type="image",
                title=f"Slide {index}",
                url=f"https://cdn.example.com/{index}.png",
                display_time=display_time,
                order_index=index,
            )
            for index, display_time in enumerate(display_times)
        ],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def api() -> MagicMock:
    client = MagicMock()
    client.get_player_view = AsyncMock(return_value=_view())
    return client


class TestPlayerSession:
    @pytest.mark.asyncio
    async def test_status_after_load(self, api: MagicMock, clock: FakeClock) -> None:
        session = PlayerSession(api, "p1", clock=clock)
        assert await session.load() is True

        status = session.status()
        assert status.presentation_title == "Lobby"
        assert status.position == "1 of 2"
        assert status.next_slide_in == "1:00"
        assert status.next_refresh_in == "5:00"
        assert status.slide.kind == SlideKind.IMAGE

    @pytest.mark.asyncio
    async def test_tick_advances_and_reports(self, api: MagicMock, clock: FakeClock) -> None:
        statuses = []
        session = PlayerSession(api, "p1", clock=clock, on_status=statuses.append)
        await session.load()

        clock.now = 60
        status = session.tick()

        assert status.position == "2 of 2"
        assert status.next_slide_in == "2:00"
        assert status.next_refresh_in == "4:00"
        assert statuses == [status]

    @pytest.mark.asyncio
    async def test_countdown_rounds_partial_seconds_up(self, api: MagicMock, clock: FakeClock) -> None:
        session = PlayerSession(api, "p1", clock=clock)
        await session.load()

        clock.now = 0.5
        assert session.tick().next_slide_in == "1:00"
        clock.now = 1.5
        assert session.tick().next_slide_in == "0:59"

    @pytest.mark.asyncio
    async def test_failed_poll_keeps_last_items(self, api: MagicMock, clock: FakeClock) -> None:
        session = PlayerSession(api, "p1", clock=clock)
        await session.load()

        api.get_player_view.side_effect = APIError(0, "offline")
        assert await session.load() is False

        assert session.last_error is not None
        assert len(session.scheduler.items) == 2
        assert session.status().slide.kind == SlideKind.IMAGE

    @pytest.mark.asyncio
    async def test_refresh_interval_change_resets_countdown(self, api: MagicMock, clock: FakeClock) -> None:
        session = PlayerSession(api, "p1", clock=clock)
        await session.load()
        clock.now = 30

        api.get_player_view.return_value = _view(refresh_interval=10)
        await session.load()

        assert session.status().next_refresh_in == "10:00"

    @pytest.mark.asyncio
    async def test_empty_presentation_shows_placeholder(self, api: MagicMock, clock: FakeClock) -> None:
        api.get_player_view.return_value = _view(display_times=())
        session = PlayerSession(api, "p1", clock=clock)
        await session.load()

        status = session.status()
        assert status.position == "0 of 0"
        assert status.slide.kind == SlideKind.PLACEHOLDER

    @pytest.mark.asyncio
    async def test_start_polls_and_stop_cancels(self, api: MagicMock) -> None:
        session = PlayerSession(api, "p1", poll_interval=0.01, tick_interval=0.01)
        await session.start()
        assert session.running

        await asyncio.sleep(0.05)
        await session.stop()

        assert not session.running
        assert api.get_player_view.await_count >= 2
        calls = api.get_player_view.await_count
        await asyncio.sleep(0.03)
        assert api.get_player_view.await_count == calls
