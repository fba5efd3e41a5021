"""
Term models: terms, their per-context definitions and change history
"""
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import (JSON, Boolean, Column, Date, DateTime, ForeignKey,
                        Integer, String, Text, UniqueConstraint, Uuid)
from sqlalchemy.orm import relationship

from ubiquitous.core.database import Base


class TermStatus(str, Enum):
    """Term status enumeration"""
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class Term(Base):
    """A ubiquitous-language term defined within one bounded context"""
    __tablename__ = "terms"
    __table_args__ = (
        UniqueConstraint("name", "bounded_context_id", name="unique_term_per_context"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False, index=True)
    definition = Column(Text, nullable=False)
    bounded_context_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("bounded_contexts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    status = Column(String(50), nullable=False, default=TermStatus.ACTIVE.value, index=True)
    examples = Column(JSON, nullable=True)  # list of example sentences
    usage_notes = Column(Text, nullable=True)
    quality_score = Column(Integer, nullable=False, default=0)

    # Onboarding and review scheduling
    essential_for_onboarding = Column(Boolean, nullable=False, default=False, index=True)
    review_cycle_days = Column(Integer, nullable=True)
    next_review_date = Column(Date, nullable=True, index=True)

    # Usage counters
    view_count = Column(Integer, nullable=False, default=0)
    search_count = Column(Integer, nullable=False, default=0)

    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_by = Column(String(255), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    bounded_context = relationship("BoundedContext", back_populates="terms")
    context_definitions = relationship(
        "TermContext",
        back_populates="term",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    history = relationship(
        "TermHistory",
        back_populates="term",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TermHistory.version.desc()",
    )
    outgoing_relationships = relationship(
        "TermRelationship",
        foreign_keys="TermRelationship.source_term_id",
        back_populates="source_term",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    incoming_relationships = relationship(
        "TermRelationship",
        foreign_keys="TermRelationship.target_term_id",
        back_populates="target_term",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reviews = relationship(
        "Review",
        back_populates="term",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Review.reviewed_at.desc()",
    )
    learners = relationship(
        "UserLearning",
        back_populates="term",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    threads = relationship(
        "DiscussionThread",
        back_populates="term",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def context_name(self):
        return self.bounded_context.name if self.bounded_context else None

    def __repr__(self):
        return f"<Term(id={self.id}, name={self.name}, status={self.status})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "definition": self.definition,
            "bounded_context_id": str(self.bounded_context_id),
            "status": self.status,
            "examples": list(self.examples or []),
            "usage_notes": self.usage_notes,
            "quality_score": self.quality_score,
            "essential_for_onboarding": self.essential_for_onboarding,
            "review_cycle_days": self.review_cycle_days,
            "next_review_date": self.next_review_date.isoformat() if self.next_review_date else None,
            "view_count": self.view_count,
            "search_count": self.search_count,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }


class TermContext(Base):
    """Additional definition of a term inside another bounded context"""
    __tablename__ = "term_contexts"
    __table_args__ = (
        UniqueConstraint("term_id", "context_id", name="unique_term_context"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    term_id = Column(Uuid(as_uuid=True), ForeignKey("terms.id", ondelete="CASCADE"), nullable=False, index=True)
    context_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("bounded_contexts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    definition = Column(Text, nullable=False)
    examples = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    term = relationship("Term", back_populates="context_definitions")
    context = relationship("BoundedContext")

    @property
    def context_name(self):
        return self.context.name if self.context else None

    def __repr__(self):
        return f"<TermContext(term_id={self.term_id}, context_id={self.context_id})>"


class TermHistory(Base):
    """Versioned record of a change to a term"""
    __tablename__ = "term_history"
    __table_args__ = (
        UniqueConstraint("term_id", "version", name="unique_term_version"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    term_id = Column(Uuid(as_uuid=True), ForeignKey("terms.id", ondelete="CASCADE"), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    previous_definition = Column(Text, nullable=True)
    new_definition = Column(Text, nullable=False)
    changed_fields = Column(JSON, nullable=True)  # list of field names
    change_reason = Column(Text, nullable=True)
    changed_by = Column(String(255), nullable=False)
    changed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    term = relationship("Term", back_populates="history")

    def __repr__(self):
        return f"<TermHistory(term_id={self.term_id}, version={self.version})>"
