"""
Playback timing for the presentation player.

Countdowns are derived from elapsed clock time on every tick rather than from a
decremented counter, so a late or skipped tick never drifts the schedule.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence
from urllib.parse import urlparse

from shared.enums import ItemType, SlideKind
from shared.utils import setup_logging

logger = setup_logging("player-scheduler")

Clock = Callable[[], float]


def format_countdown(seconds: float) -> str:
    """Render seconds as ``m:ss``, rounding partial seconds up."""
    total = max(0, math.ceil(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


def _fingerprint(items: Sequence[Any]) -> tuple:
    return tuple(
        (item.id, item.type, item.title, item.url, item.display_time) for item in items
    )


class PlaybackScheduler:
    """Cycles through items, holding each for ``display_time`` minutes."""

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or time.monotonic
        self.items: list[Any] = []
        self.current_index = 0
        self._started_at = self.clock()
        self._fingerprint: tuple = ()

    def set_items(self, items: Sequence[Any]) -> bool:
        """Replace the item list.

        Playback restarts from the first item only when the content actually
        changed; returns whether it did.
        """
        fingerprint = _fingerprint(items)
        if fingerprint == self._fingerprint:
            return False

        self.items = list(items)
        self._fingerprint = fingerprint
        self.current_index = 0
        self._started_at = self.clock()
        logger.debug(f"Loaded {len(self.items)} items, restarting playback")
        return True

    @property
    def current_item(self) -> Any | None:
        if not self.items:
            return None
        return self.items[self.current_index]

    def _duration(self) -> float:
        item = self.current_item
        if item is None:
            return 0
        return (item.display_time or 0) * 60

    def remaining(self) -> float:
        """Seconds left on the active item; 0 for pinned items or an empty list."""
        duration = self._duration()
        if duration <= 0:
            return 0
        return max(0.0, duration - (self.clock() - self._started_at))

    def tick(self) -> bool:
        """Advance to the next item if the active one has expired."""
        duration = self._duration()
        if duration <= 0:
            return False

        now = self.clock()
        if now - self._started_at < duration:
            return False

        self.current_index = (self.current_index + 1) % len(self.items)
        self._started_at = now
        return True


class RefreshCountdown:
    """Time until the next data refresh, restarting itself at zero."""

    def __init__(self, interval_minutes: int, clock: Clock | None = None):
        self.clock = clock or time.monotonic
        self.interval_minutes = interval_minutes
        self._started_at = self.clock()

    @property
    def interval_seconds(self) -> float:
        return max(0, self.interval_minutes) * 60

    def reset(self) -> None:
        self._started_at = self.clock()

    def remaining(self) -> float:
        interval = self.interval_seconds
        if interval <= 0:
            return 0
        elapsed = self.clock() - self._started_at
        if elapsed >= interval:
            # skip whole periods that elapsed between ticks
            self._started_at += (elapsed // interval) * interval
            elapsed = self.clock() - self._started_at
        return interval - elapsed


@dataclass
class SlideView:
    kind: SlideKind
    title: str = ""
    src: str | None = None
    message: str | None = None


def _is_http_url(url: str | None) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def render_slide(item: Any | None) -> SlideView:
    if item is None:
        return SlideView(kind=SlideKind.PLACEHOLDER, message="No slides in this presentation")

    title = item.title or ""
    if item.type not in (ItemType.IMAGE.value, ItemType.POWERBI.value):
        return SlideView(kind=SlideKind.ERROR, title=title, message=f"Unknown item type: {item.type}")
    if not _is_http_url(item.url):
        return SlideView(kind=SlideKind.ERROR, title=title, message="This slide has no valid URL")

    kind = SlideKind.IMAGE if item.type == ItemType.IMAGE.value else SlideKind.IFRAME
    return SlideView(kind=kind, title=title, src=item.url)
