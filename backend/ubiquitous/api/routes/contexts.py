"""
API routes for bounded contexts
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ubiquitous.core.auth import require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.schemas.term import (ContextCreate, ContextResponse,
                                     ContextUpdate, ContextWithTerms,
                                     TermSummary)
from ubiquitous.services.context_service import ContextService

router = APIRouter(prefix="/api/contexts", tags=["contexts"])


@router.get("", response_model=List[ContextResponse])
async def list_contexts(db: Session = Depends(get_db)):
    """List bounded contexts ordered by name"""
    return ContextService(db).list_contexts()


@router.post("", response_model=ContextResponse, status_code=status.HTTP_201_CREATED)
async def create_context(
    request: ContextCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Create a bounded context"""
    return ContextService(db).create_context(
        name=request.name,
        description=request.description,
        created_by=user_id
    )


@router.get("/{context_id}", response_model=ContextResponse)
async def get_context(context_id: UUID, db: Session = Depends(get_db)):
    return ContextService(db).get_context(context_id)


@router.put("/{context_id}", response_model=ContextResponse)
async def update_context(
    context_id: UUID,
    request: ContextUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return ContextService(db).update_context(
        context_id,
        name=request.name,
        description=request.description
    )


@router.delete("/{context_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_context(
    context_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Delete a context and every term defined in it"""
    ContextService(db).delete_context(context_id)


@router.get("/{context_id}/terms", response_model=ContextWithTerms)
async def get_context_terms(
    context_id: UUID,
    include_deleted: bool = False,
    db: Session = Depends(get_db)
):
    """Context with its terms"""
    context, terms = ContextService(db).get_context_with_terms(context_id, include_deleted=include_deleted)
    return ContextWithTerms(
        **ContextResponse.model_validate(context).model_dump(),
        terms=[TermSummary.model_validate(term) for term in terms]
    )
