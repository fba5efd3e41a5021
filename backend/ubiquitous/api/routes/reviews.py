"""
API routes for term reviews
"""
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ubiquitous.core.auth import require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.schemas.collaboration import (DueReviewResponse,
                                              PerformReviewResponse,
                                              ReviewCreate,
                                              ReviewNotificationResponse,
                                              ReviewResponse,
                                              ScheduleReviewRequest)
from ubiquitous.schemas.term import TermResponse
from ubiquitous.services.review_service import ReviewService

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.post("/schedule/{term_id}", response_model=TermResponse)
async def schedule_review(
    term_id: UUID,
    request: ScheduleReviewRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Review the term every ``interval_days``"""
    return ReviewService(db).schedule_review(term_id, request.interval_days)


@router.delete("/schedule/{term_id}", response_model=TermResponse)
async def cancel_review_schedule(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return ReviewService(db).cancel_review_schedule(term_id)


@router.get("/due", response_model=List[DueReviewResponse])
async def get_due_reviews(as_of: Optional[date] = None, db: Session = Depends(get_db)):
    """Active terms whose review date has arrived"""
    return [
        DueReviewResponse(**{
            **entry,
            "latest_review": ReviewResponse.model_validate(entry["latest_review"]) if entry["latest_review"] else None
        })
        for entry in ReviewService(db).get_terms_due_for_review(as_of)
    ]


@router.post("/notifications", response_model=ReviewNotificationResponse)
async def send_review_notifications(
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return ReviewService(db).send_review_notifications(as_of)


@router.post("/terms/{term_id}", response_model=PerformReviewResponse)
async def perform_review(
    term_id: UUID,
    request: ReviewCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Record the outcome of reviewing a term"""
    result = ReviewService(db).perform_review(term_id, user_id, request.status, notes=request.notes)
    return PerformReviewResponse(
        review=ReviewResponse.model_validate(result["review"]),
        next_review_date=result["next_review_date"],
        thread_id=result["thread_id"]
    )


@router.get("/terms/{term_id}", response_model=List[ReviewResponse])
async def get_review_history(term_id: UUID, db: Session = Depends(get_db)):
    return ReviewService(db).get_review_history(term_id)


@router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(review_id: UUID, db: Session = Depends(get_db)):
    return ReviewService(db).get_review(review_id)
