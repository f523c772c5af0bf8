"""Presentation player loop: poll for items, tick the scheduler, report status."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable

from client.api import APIError, PresentationClient
from services.player.scheduler import (
    Clock,
    PlaybackScheduler,
    RefreshCountdown,
    SlideView,
    format_countdown,
    render_slide,
)
from shared.models import PlayerPresentation
from shared.utils import config, setup_logging

logger = setup_logging("client-player")


@dataclass
class PlayerStatus:
    presentation_title: str
    slide: SlideView
    position: str
    next_slide_in: str
    next_refresh_in: str


StatusListener = Callable[[PlayerStatus], None]


class PlayerSession:
    """Drives one presentation on screen until ``stop()``."""

    def __init__(
        self,
        client: PresentationClient,
        presentation_id: str,
        clock: Clock | None = None,
        poll_interval: float | None = None,
        tick_interval: float | None = None,
        on_status: StatusListener | None = None,
    ) -> None:
        self.client = client
        self.presentation_id = presentation_id
        self.poll_interval = poll_interval or float(config.get_setting("player.poll_interval_seconds", 30))
        self.tick_interval = tick_interval or float(config.get_setting("player.tick_seconds", 1))
        self.on_status = on_status
        self.scheduler = PlaybackScheduler(clock)
        self.refresh = RefreshCountdown(5, clock)
        self.presentation: PlayerPresentation | None = None
        self.last_error: APIError | None = None
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def load(self) -> bool:
        """Fetch the player view once. On failure the last known items stay."""
        try:
            view = await self.client.get_player_view(self.presentation_id)
        except APIError as e:
            self.last_error = e
            logger.warning(f"Player poll for {self.presentation_id} failed: {e}")
            return False

        self.last_error = None
        if self.presentation is None or self.presentation.refresh_interval != view.presentation.refresh_interval:
            self.refresh.interval_minutes = view.presentation.refresh_interval
            self.refresh.reset()
        self.presentation = view.presentation
        if self.scheduler.set_items(view.items):
            logger.info(f"Playing {len(view.items)} items of {self.presentation_id}")
        return True

    def status(self) -> PlayerStatus:
        items = self.scheduler.items
        position = f"{self.scheduler.current_index + 1} of {len(items)}" if items else "0 of 0"
        return PlayerStatus(
            presentation_title=self.presentation.title if self.presentation else "",
            slide=render_slide(self.scheduler.current_item),
            position=position,
            next_slide_in=format_countdown(self.scheduler.remaining()),
            next_refresh_in=format_countdown(self.refresh.remaining()),
        )

    def tick(self) -> PlayerStatus:
        self.scheduler.tick()
        status = self.status()
        if self.on_status:
            self.on_status(status)
        return status

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            await self.load()

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            self.tick()

    async def start(self) -> None:
        if self.running:
            return
        await self.load()
        self._tasks = [
            asyncio.create_task(self._poll_loop()),
            asyncio.create_task(self._tick_loop()),
        ]

    async def stop(self) -> None:
        """Cancel pending timers."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
