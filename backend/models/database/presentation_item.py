"""
Presentation item model - one slide (image or dashboard)
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base


class PresentationItem(Base):
    """Slide with its own display duration and playback position"""

    __tablename__ = "presentation_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    presentation_id = Column(
        String(36), ForeignKey("presentations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(20), nullable=False)  # image, powerbi
    title = Column(String(255), nullable=False, default="")
    url = Column(Text, nullable=False, default="")
    display_time = Column(Integer, nullable=False, default=1)  # minutes
    # Contiguous 0..n-1 per presentation, kept by the item service rather than a constraint
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    presentation = relationship("Presentation", back_populates="items")
