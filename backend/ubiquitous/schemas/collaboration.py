"""
Proposal, discussion and review DTOs
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from ubiquitous.models.discussion import ThreadStatus
from ubiquitous.models.review import ReviewStatus
from ubiquitous.schemas.term import TermResponse


# ----------------------------------------------------------------------------
# Proposals
# ----------------------------------------------------------------------------

class ProposalCreate(BaseModel):
    """Request model for proposing a new term"""
    name: str = Field(..., min_length=1, max_length=255)
    definition: str = Field(..., min_length=1)
    bounded_context_id: UUID


class ProposalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    definition: Optional[str] = Field(None, min_length=1)
    bounded_context_id: Optional[UUID] = None


class RejectProposalRequest(BaseModel):
    reason: str = Field(..., description="Reason for rejection")


class ProposalResponse(BaseModel):
    """Proposal response model"""
    id: UUID
    name: str
    definition: str
    bounded_context_id: UUID
    proposed_by: str
    proposed_at: datetime
    status: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    term_id: Optional[UUID] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class ProposalApprovalResponse(BaseModel):
    proposal: ProposalResponse
    term: TermResponse


# ----------------------------------------------------------------------------
# Discussions
# ----------------------------------------------------------------------------

class ThreadCreate(BaseModel):
    """Request model for opening a thread on a term or a proposal"""
    title: str = Field(..., min_length=1, max_length=255)
    term_id: Optional[UUID] = None
    proposal_id: Optional[UUID] = None

    @model_validator(mode="after")
    def check_single_target(self):
        if (self.term_id is None) == (self.proposal_id is None):
            raise ValueError("Exactly one of term_id or proposal_id is required")
        return self


class ThreadUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[ThreadStatus] = None


class ThreadResponse(BaseModel):
    """Discussion thread response model"""
    id: UUID
    term_id: Optional[UUID] = None
    proposal_id: Optional[UUID] = None
    title: str
    status: str
    created_by: str
    created_at: datetime
    updated_at: datetime
    comment_count: int = 0

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    """Comment response model"""
    id: UUID
    thread_id: UUID
    content: str
    posted_by: str
    posted_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ThreadWithComments(ThreadResponse):
    comments: List[CommentResponse] = Field(default_factory=list)


# ----------------------------------------------------------------------------
# Reviews
# ----------------------------------------------------------------------------

class ScheduleReviewRequest(BaseModel):
    interval_days: int = Field(..., ge=1, le=3650, description="Days between reviews")


class ReviewCreate(BaseModel):
    """Request model for recording a review outcome"""
    status: ReviewStatus
    notes: Optional[str] = None


class ReviewResponse(BaseModel):
    """Review response model"""
    id: UUID
    term_id: UUID
    reviewed_by: str
    reviewed_at: datetime
    status: str
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class PerformReviewResponse(BaseModel):
    review: ReviewResponse
    next_review_date: Optional[date] = None
    thread_id: Optional[UUID] = None


class DueReviewResponse(BaseModel):
    """A term whose review date has arrived"""
    term_id: UUID
    name: str
    bounded_context_id: UUID
    next_review_date: date
    review_cycle_days: Optional[int] = None
    review_count: int = 0
    latest_review: Optional[ReviewResponse] = None


class ReviewNotificationResponse(BaseModel):
    due: int
    upcoming: int
    notified: int
