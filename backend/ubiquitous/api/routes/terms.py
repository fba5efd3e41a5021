"""
API routes for terms
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ubiquitous.core.auth import get_current_user_id, require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.models.term import TermStatus
from ubiquitous.schemas.term import (TermContextCreate, TermContextResponse,
                                     TermContextUpdate, TermCreate,
                                     TermHistoryResponse, TermResponse,
                                     TermUpdate, TermWithContexts)
from ubiquitous.services.analytics_service import AnalyticsService
from ubiquitous.services.onboarding_service import OnboardingService
from ubiquitous.services.term_service import TermService

router = APIRouter(prefix="/api/terms", tags=["terms"])


@router.get("", response_model=List[TermResponse])
async def list_terms(
    context_id: Optional[UUID] = None,
    status: Optional[TermStatus] = None,
    search: Optional[str] = None,
    include_deleted: bool = False,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """List terms with optional context, status and text filters"""
    return TermService(db).list_terms(
        context_id=context_id,
        status=status,
        search=search,
        include_deleted=include_deleted,
        limit=limit,
        offset=offset
    )


@router.post("", response_model=TermResponse, status_code=status.HTTP_201_CREATED)
async def create_term(
    request: TermCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Create a term in a bounded context"""
    return TermService(db).create_term(
        name=request.name,
        definition=request.definition,
        bounded_context_id=request.bounded_context_id,
        created_by=user_id,
        status=request.status,
        examples=request.examples,
        usage_notes=request.usage_notes,
        essential_for_onboarding=request.essential_for_onboarding,
        review_cycle_days=request.review_cycle_days,
    )


@router.get("/{term_id}", response_model=TermWithContexts)
async def get_term(
    term_id: UUID,
    track_view: bool = True,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """
    Get a term with its additional context definitions

    Each read counts as a view unless ``track_view=false``.
    """
    service = TermService(db)
    if track_view:
        service.increment_view_count(term_id)
        AnalyticsService(db).track_user_activity(user_id, "view_term", "term", str(term_id))
    term, contexts = service.get_term_with_contexts(term_id)
    return TermWithContexts(
        **TermResponse.model_validate(term).model_dump(),
        contexts=[TermContextResponse.model_validate(tc) for tc in contexts]
    )


@router.put("/{term_id}", response_model=TermResponse)
async def update_term(
    term_id: UUID,
    request: TermUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Update the given fields; omitted fields are left untouched"""
    changes = request.model_dump(exclude_unset=True)
    change_reason = changes.pop("change_reason", None)
    return TermService(db).update_term(term_id, changes, user_id, change_reason=change_reason)


@router.delete("/{term_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_term(
    term_id: UUID,
    permanent: bool = False,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Archive a term, or remove it for good with ``permanent=true``"""
    TermService(db).delete_term(term_id, user_id, permanent=permanent)


@router.post("/{term_id}/restore", response_model=TermResponse)
async def restore_term(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return TermService(db).restore_term(term_id, user_id)


@router.get("/{term_id}/history", response_model=List[TermHistoryResponse])
async def get_term_history(term_id: UUID, db: Session = Depends(get_db)):
    """Change history, newest version first"""
    return TermService(db).get_term_history(term_id)


@router.get("/{term_id}/contexts", response_model=List[TermContextResponse])
async def get_term_contexts(term_id: UUID, db: Session = Depends(get_db)):
    _, contexts = TermService(db).get_term_with_contexts(term_id)
    return contexts


@router.post("/{term_id}/contexts", response_model=TermContextResponse, status_code=status.HTTP_201_CREATED)
async def add_term_to_context(
    term_id: UUID,
    request: TermContextCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Define the term inside an additional bounded context"""
    return TermService(db).add_term_to_context(
        term_id,
        request.context_id,
        request.definition,
        user_id,
        examples=request.examples
    )


@router.put("/{term_id}/contexts/{context_id}", response_model=TermContextResponse)
async def update_term_in_context(
    term_id: UUID,
    context_id: UUID,
    request: TermContextUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return TermService(db).update_term_in_context(
        term_id,
        context_id,
        user_id,
        definition=request.definition,
        examples=request.examples
    )


@router.delete("/{term_id}/contexts/{context_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_term_from_context(
    term_id: UUID,
    context_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    TermService(db).remove_term_from_context(term_id, context_id, user_id)


@router.post("/{term_id}/learned")
async def mark_term_learned(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Mark the term as learned by the acting user"""
    record = OnboardingService(db).mark_as_learned(user_id, term_id)
    return {"term_id": record.term_id, "user_id": record.user_id, "learned_at": record.learned_at}
