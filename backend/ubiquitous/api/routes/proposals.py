"""
API routes for term proposals
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ubiquitous.core.auth import require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.schemas.collaboration import (ProposalApprovalResponse,
                                              ProposalCreate,
                                              ProposalResponse,
                                              ProposalUpdate,
                                              RejectProposalRequest)
from ubiquitous.schemas.term import TermResponse
from ubiquitous.services.proposal_service import ProposalService

router = APIRouter(prefix="/api/proposals", tags=["proposals"])


@router.get("", response_model=List[ProposalResponse])
async def list_proposals(
    status: Optional[str] = None,
    context_id: Optional[UUID] = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db)
):
    """List proposals, newest first"""
    return ProposalService(db).list_proposals(status=status, context_id=context_id, limit=limit, offset=offset)


@router.post("", response_model=ProposalResponse, status_code=status.HTTP_201_CREATED)
async def create_proposal(
    request: ProposalCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return ProposalService(db).create_proposal(
        name=request.name,
        definition=request.definition,
        bounded_context_id=request.bounded_context_id,
        proposed_by=user_id
    )


@router.get("/{proposal_id}", response_model=ProposalResponse)
async def get_proposal(proposal_id: UUID, db: Session = Depends(get_db)):
    return ProposalService(db).get_proposal(proposal_id)


@router.put("/{proposal_id}", response_model=ProposalResponse)
async def update_proposal(
    proposal_id: UUID,
    request: ProposalUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return ProposalService(db).update_proposal(
        proposal_id,
        name=request.name,
        definition=request.definition,
        bounded_context_id=request.bounded_context_id
    )


@router.delete("/{proposal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_proposal(
    proposal_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    ProposalService(db).delete_proposal(proposal_id)


@router.post("/{proposal_id}/approve", response_model=ProposalApprovalResponse)
async def approve_proposal(
    proposal_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Approve a proposal and create its term"""
    proposal, term = ProposalService(db).approve_proposal(proposal_id, approved_by=user_id)
    return ProposalApprovalResponse(
        proposal=ProposalResponse.model_validate(proposal),
        term=TermResponse.model_validate(term)
    )


@router.post("/{proposal_id}/reject", response_model=ProposalResponse)
async def reject_proposal(
    proposal_id: UUID,
    request: RejectProposalRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return ProposalService(db).reject_proposal(proposal_id, rejected_by=user_id, reason=request.reason)


@router.post("/{proposal_id}/hold", response_model=ProposalResponse)
async def hold_proposal(
    proposal_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return ProposalService(db).hold_proposal(proposal_id)
