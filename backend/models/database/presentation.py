"""
Presentation model - named, ordered collections of slides
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Presentation(Base):
    """Presentation owned by a single user"""

    __tablename__ = "presentations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    refresh_interval = Column(Integer, nullable=False, default=5)  # minutes
    is_public = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # Relationships
    user = relationship("User", back_populates="presentations")
    items = relationship(
        "PresentationItem",
        back_populates="presentation",
        cascade="all, delete-orphan",
        order_by="PresentationItem.order_index",
    )

    def __repr__(self) -> str:
        return f"<Presentation(id={self.id}, title={self.title})>"
