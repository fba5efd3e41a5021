"""
Discussion threads and comments attached to terms or proposals
"""
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import (CheckConstraint, Column, DateTime, ForeignKey, String,
                        Text, Uuid)
from sqlalchemy.orm import relationship

from ubiquitous.core.database import Base


THREAD_TITLE_MAX_LENGTH = 255


class ThreadStatus(str, Enum):
    """Thread status enumeration"""
    OPEN = "open"
    CLOSED = "closed"


class DiscussionThread(Base):
    """A discussion about exactly one term or one proposal"""
    __tablename__ = "discussion_threads"
    __table_args__ = (
        CheckConstraint(
            "(term_id IS NOT NULL AND proposal_id IS NULL) OR "
            "(term_id IS NULL AND proposal_id IS NOT NULL)",
            name="thread_single_target"
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    term_id = Column(Uuid(as_uuid=True), ForeignKey("terms.id", ondelete="CASCADE"), nullable=True, index=True)
    proposal_id = Column(
        Uuid(as_uuid=True), ForeignKey("term_proposals.id", ondelete="CASCADE"), nullable=True, index=True
    )
    title = Column(String(THREAD_TITLE_MAX_LENGTH), nullable=False)
    status = Column(String(20), nullable=False, default=ThreadStatus.OPEN.value, index=True)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    term = relationship("Term", back_populates="threads")
    proposal = relationship("TermProposal", back_populates="threads")
    comments = relationship(
        "Comment",
        back_populates="thread",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Comment.posted_at",
    )

    @property
    def is_open(self) -> bool:
        return self.status == ThreadStatus.OPEN.value

    @property
    def comment_count(self) -> int:
        return len(self.comments)

    def __repr__(self):
        return f"<DiscussionThread(id={self.id}, title={self.title}, status={self.status})>"


class Comment(Base):
    """A message posted to a discussion thread"""
    __tablename__ = "comments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    thread_id = Column(
        Uuid(as_uuid=True), ForeignKey("discussion_threads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    posted_by = Column(String(255), nullable=False, index=True)
    posted_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    thread = relationship("DiscussionThread", back_populates="comments")

    def __repr__(self):
        return f"<Comment(id={self.id}, thread_id={self.thread_id}, posted_by={self.posted_by})>"
