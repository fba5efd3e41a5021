"""
Term proposal model
"""
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from ubiquitous.core.database import Base


class ProposalStatus(str, Enum):
    """Proposal status enumeration"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ON_HOLD = "on_hold"


# Once decided, a proposal can no longer be edited or decided again
DECIDED_PROPOSAL_STATUSES = (ProposalStatus.APPROVED.value, ProposalStatus.REJECTED.value)


class TermProposal(Base):
    """A suggested term awaiting approval"""
    __tablename__ = "term_proposals"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False, index=True)
    definition = Column(Text, nullable=False)
    bounded_context_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("bounded_contexts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    proposed_by = Column(String(255), nullable=False, index=True)
    proposed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    status = Column(String(50), nullable=False, default=ProposalStatus.PENDING.value, index=True)
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    term_id = Column(Uuid(as_uuid=True), ForeignKey("terms.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    bounded_context = relationship("BoundedContext", back_populates="proposals")
    threads = relationship(
        "DiscussionThread",
        back_populates="proposal",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_decided(self) -> bool:
        return self.status in DECIDED_PROPOSAL_STATUSES

    def __repr__(self):
        return f"<TermProposal(id={self.id}, name={self.name}, status={self.status})>"
