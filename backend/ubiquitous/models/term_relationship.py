"""
Directed relationships between terms
"""
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import (CheckConstraint, Column, DateTime, ForeignKey, String,
                        Text, UniqueConstraint, Uuid)
from sqlalchemy.orm import relationship

from ubiquitous.core.database import Base


class RelationshipType(str, Enum):
    """Relationship type enumeration"""
    AGGREGATION = "aggregation"
    ASSOCIATION = "association"
    DEPENDENCY = "dependency"
    INHERITANCE = "inheritance"


# Edge types that must stay acyclic within their own type
ACYCLIC_RELATIONSHIP_TYPES = frozenset({
    RelationshipType.AGGREGATION,
    RelationshipType.DEPENDENCY,
    RelationshipType.INHERITANCE,
})


class TermRelationship(Base):
    """Edge source_term --relationship_type--> target_term"""
    __tablename__ = "term_relationships"
    __table_args__ = (
        UniqueConstraint(
            "source_term_id", "target_term_id", "relationship_type",
            name="unique_term_relationship"
        ),
        CheckConstraint("source_term_id <> target_term_id", name="no_self_reference"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    source_term_id = Column(
        Uuid(as_uuid=True), ForeignKey("terms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_term_id = Column(
        Uuid(as_uuid=True), ForeignKey("terms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    relationship_type = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    source_term = relationship(
        "Term", foreign_keys=[source_term_id], back_populates="outgoing_relationships"
    )
    target_term = relationship(
        "Term", foreign_keys=[target_term_id], back_populates="incoming_relationships"
    )

    def __repr__(self):
        return (
            f"<TermRelationship(source={self.source_term_id}, "
            f"target={self.target_term_id}, type={self.relationship_type})>"
        )
