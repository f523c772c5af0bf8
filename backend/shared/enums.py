"""
Enums and constants used across the application.
"""

from enum import Enum


class ItemType(str, Enum):
    """Kinds of slide a presentation item can hold."""

    IMAGE = "image"
    POWERBI = "powerbi"


class AppRole(str, Enum):
    """Roles a user can be granted."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class AuthEvent(str, Enum):
    """Auth state transitions delivered to subscribers."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class SlideKind(str, Enum):
    """How the player renders the active slide."""

    IMAGE = "image"
    IFRAME = "iframe"
    ERROR = "error"
    PLACEHOLDER = "placeholder"


class ToastLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


DEFAULT_ITEM_TITLES = {
    ItemType.IMAGE: "New image",
    ItemType.POWERBI: "New dashboard",
}
