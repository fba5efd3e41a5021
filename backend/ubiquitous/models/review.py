"""
Term review model
"""
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from ubiquitous.core.database import Base


class ReviewStatus(str, Enum):
    """Review outcome enumeration"""
    CONFIRMED = "confirmed"
    NEEDS_UPDATE = "needs_update"
    NEEDS_DISCUSSION = "needs_discussion"


class Review(Base):
    """Periodic confirmation that a term's definition still holds"""
    __tablename__ = "reviews"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    term_id = Column(Uuid(as_uuid=True), ForeignKey("terms.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewed_by = Column(String(255), nullable=False, index=True)
    reviewed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    status = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)

    term = relationship("Term", back_populates="reviews")

    def __repr__(self):
        return f"<Review(id={self.id}, term_id={self.term_id}, status={self.status})>"
