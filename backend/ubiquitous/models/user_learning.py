"""
Per-user learning progress and activity log
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (JSON, Column, DateTime, ForeignKey, String,
                        UniqueConstraint, Uuid)
from sqlalchemy.orm import relationship

from ubiquitous.core.database import Base


class UserLearning(Base):
    """Marks that a user has learned a term"""
    __tablename__ = "user_learning"
    __table_args__ = (
        UniqueConstraint("user_id", "term_id", name="unique_user_term_learning"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(String(255), nullable=False, index=True)
    term_id = Column(Uuid(as_uuid=True), ForeignKey("terms.id", ondelete="CASCADE"), nullable=False, index=True)
    learned_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    term = relationship("Term", back_populates="learners")

    def __repr__(self):
        return f"<UserLearning(user_id={self.user_id}, term_id={self.term_id})>"


class UserActivity(Base):
    """Append-only log of user actions, used for engagement analytics"""
    __tablename__ = "user_activity"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(String(255), nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True
    )

    def __repr__(self):
        return f"<UserActivity(user_id={self.user_id}, action={self.action})>"
