"""
Database models package - SQLAlchemy ORM models
"""

from .presentation import Presentation
from .presentation_item import PresentationItem
from .user import User, UserRole

__all__ = [
    "Presentation",
    "PresentationItem",
    "User",
    "UserRole",
]
