"""User-facing toast notifications produced by client flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from shared.enums import ToastLevel
from shared.utils import setup_logging

logger = setup_logging("client-notifications")

ToastListener = Callable[["Toast"], None]


@dataclass
class Toast:
    level: ToastLevel
    title: str
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)


class Notifier:
    """Collects toasts and forwards them to whatever renders them."""

    def __init__(self) -> None:
        self.toasts: list[Toast] = []
        self._listeners: list[ToastListener] = []

    def subscribe(self, listener: ToastListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, level: ToastLevel, title: str, description: str = "") -> Toast:
        toast = Toast(level=level, title=title, description=description)
        self.toasts.append(toast)
        log = logger.warning if level == ToastLevel.ERROR else logger.info
        log(f"[{level.value}] {title} {description}")
        for listener in list(self._listeners):
            listener(toast)
        return toast

    def success(self, title: str, description: str = "") -> Toast:
        return self.notify(ToastLevel.SUCCESS, title, description)

    def error(self, title: str, description: str = "") -> Toast:
        return self.notify(ToastLevel.ERROR, title, description)

    def warning(self, title: str, description: str = "") -> Toast:
        return self.notify(ToastLevel.WARNING, title, description)

    @property
    def latest(self) -> Toast | None:
        return self.toasts[-1] if self.toasts else None

    def clear(self) -> None:
        self.toasts.clear()
