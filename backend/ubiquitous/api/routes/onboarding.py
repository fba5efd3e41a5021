"""
API routes for onboarding and learning progress
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ubiquitous.core.auth import get_current_user_id, require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.schemas.insight import (CanLearnResponse, LearningPathEntry,
                                        ProgressResponse)
from ubiquitous.schemas.term import TermResponse, TermSummary
from ubiquitous.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])


@router.get("/essential-terms", response_model=List[TermResponse])
async def get_essential_terms(db: Session = Depends(get_db)):
    return OnboardingService(db).get_essential_terms()


@router.post("/essential-terms/{term_id}", response_model=TermResponse)
async def mark_as_essential(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return OnboardingService(db).mark_as_essential(term_id)


@router.delete("/essential-terms/{term_id}", response_model=TermResponse)
async def unmark_as_essential(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return OnboardingService(db).unmark_as_essential(term_id)


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """Share of essential terms the acting user has learned"""
    progress = OnboardingService(db).get_user_progress(user_id)
    progress["learned_terms"] = [TermSummary.model_validate(t) for t in progress["learned_terms"]]
    progress["remaining_terms"] = [TermSummary.model_validate(t) for t in progress["remaining_terms"]]
    return ProgressResponse(**progress)


@router.get("/learning-path", response_model=List[LearningPathEntry])
async def get_learning_path(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """Essential terms ordered so prerequisites come first"""
    return [
        LearningPathEntry(**{**entry, "term": TermSummary.model_validate(entry["term"])})
        for entry in OnboardingService(db).get_learning_path(user_id)
    ]


@router.get("/next-terms", response_model=List[TermSummary])
async def get_next_terms(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return OnboardingService(db).get_next_terms_to_learn(user_id, limit=limit)


@router.post("/learned/{term_id}")
async def mark_as_learned(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    record = OnboardingService(db).mark_as_learned(user_id, term_id)
    return {"term_id": record.term_id, "user_id": record.user_id, "learned_at": record.learned_at}


@router.delete("/learned/{term_id}")
async def unmark_as_learned(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    removed = OnboardingService(db).unmark_as_learned(user_id, term_id)
    return {"term_id": term_id, "user_id": user_id, "removed": removed}


@router.get("/can-learn/{term_id}", response_model=CanLearnResponse)
async def can_learn(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return OnboardingService(db).can_learn(user_id, term_id)
