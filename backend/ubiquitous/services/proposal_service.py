"""
Proposal service: suggest, discuss and decide on new terms
"""
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import (ConflictError, NotFoundError,
                                        ValidationError)
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.core.metrics import proposals_decided_total
from ubiquitous.models.bounded_context import BoundedContext
from ubiquitous.models.term import Term, TermStatus
from ubiquitous.models.term_proposal import ProposalStatus, TermProposal
from ubiquitous.services.term_service import TermService
from ubiquitous.utils.datetime_utils import utc_now

logger = LoggingConfig.get_logger(__name__)

# Statuses from which a proposal can still be decided
OPEN_PROPOSAL_STATUSES = (ProposalStatus.PENDING.value, ProposalStatus.ON_HOLD.value)


def parse_proposal_status(value: str) -> ProposalStatus:
    try:
        return ProposalStatus(getattr(value, "value", value))
    except ValueError:
        allowed = ", ".join(s.value for s in ProposalStatus)
        raise ValidationError(f'Invalid proposal status "{value}". Must be one of: {allowed}')


class ProposalService:
    """Service for managing term proposals"""

    def __init__(self, db: Session):
        self.db = db

    def _get_context(self, context_id: UUID) -> BoundedContext:
        context = self.db.query(BoundedContext).filter(BoundedContext.id == context_id).first()
        if not context:
            raise NotFoundError("Bounded context", context_id)
        return context

    def _check_no_active_term(self, name: str, context: BoundedContext) -> None:
        existing = self.db.query(Term).filter(
            Term.name == name,
            Term.bounded_context_id == context.id,
            Term.deleted_at.is_(None)
        ).first()
        if existing:
            raise ConflictError("Term", name, scope=f'context "{context.name}"')

    def create_proposal(
        self,
        name: str,
        definition: str,
        bounded_context_id: UUID,
        proposed_by: str
    ) -> TermProposal:
        """Propose a new term for a bounded context"""
        name = name.strip()
        if not name or not definition.strip():
            raise ValidationError("Proposal name and definition are required")
        context = self._get_context(bounded_context_id)
        self._check_no_active_term(name, context)

        proposal = TermProposal(
            name=name,
            definition=definition,
            bounded_context_id=context.id,
            proposed_by=proposed_by,
            status=ProposalStatus.PENDING.value,
        )
        try:
            self.db.add(proposal)
            self.db.commit()
            self.db.refresh(proposal)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Proposal '{name}' submitted for context '{context.name}'",
            extra={"proposal_id": str(proposal.id), "user_id": proposed_by}
        )
        return proposal

    def get_proposal(self, proposal_id: UUID) -> TermProposal:
        proposal = self.db.query(TermProposal).filter(TermProposal.id == proposal_id).first()
        if not proposal:
            raise NotFoundError("Proposal", proposal_id)
        return proposal

    def list_proposals(
        self,
        status: Optional[str] = None,
        context_id: Optional[UUID] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[TermProposal]:
        query = self.db.query(TermProposal)
        if status:
            query = query.filter(TermProposal.status == parse_proposal_status(status).value)
        if context_id:
            query = query.filter(TermProposal.bounded_context_id == context_id)
        return query.order_by(TermProposal.proposed_at.desc()).offset(offset).limit(limit).all()

    def update_proposal(
        self,
        proposal_id: UUID,
        name: Optional[str] = None,
        definition: Optional[str] = None,
        bounded_context_id: Optional[UUID] = None
    ) -> TermProposal:
        proposal = self.get_proposal(proposal_id)
        if proposal.is_decided:
            raise ValidationError(f"Cannot update a proposal that has been {proposal.status}")

        if bounded_context_id is not None:
            proposal.bounded_context_id = self._get_context(bounded_context_id).id
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Proposal name cannot be empty")
            proposal.name = name
        if definition is not None:
            if not definition.strip():
                raise ValidationError("Proposal definition cannot be empty")
            proposal.definition = definition

        try:
            self.db.commit()
            self.db.refresh(proposal)
        except Exception:
            self.db.rollback()
            raise
        return proposal

    def _require_open(self, proposal: TermProposal, action: str) -> None:
        if proposal.status not in OPEN_PROPOSAL_STATUSES:
            raise ValidationError(f"Cannot {action} a proposal that is {proposal.status}")

    def approve_proposal(self, proposal_id: UUID, approved_by: str) -> Tuple[TermProposal, Term]:
        """
        Approve a pending or on-hold proposal

        Creates the corresponding active term and links it to the proposal.

        Returns:
            The updated proposal and the new term
        """
        proposal = self.get_proposal(proposal_id)
        self._require_open(proposal, "approve")

        term = TermService(self.db).create_term(
            name=proposal.name,
            definition=proposal.definition,
            bounded_context_id=proposal.bounded_context_id,
            created_by=approved_by,
            status=TermStatus.ACTIVE,
            source="proposal",
        )

        proposal.status = ProposalStatus.APPROVED.value
        proposal.approved_by = approved_by
        proposal.approved_at = utc_now()
        proposal.term_id = term.id
        try:
            self.db.commit()
            self.db.refresh(proposal)
        except Exception:
            self.db.rollback()
            raise

        proposals_decided_total.labels(status=ProposalStatus.APPROVED.value).inc()
        logger.info(
            f"Proposal '{proposal.name}' approved by {approved_by}",
            extra={"proposal_id": str(proposal.id), "term_id": str(term.id)}
        )
        return proposal, term

    def reject_proposal(self, proposal_id: UUID, rejected_by: str, reason: str) -> TermProposal:
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required")
        proposal = self.get_proposal(proposal_id)
        self._require_open(proposal, "reject")

        proposal.status = ProposalStatus.REJECTED.value
        proposal.rejection_reason = reason.strip()
        try:
            self.db.commit()
            self.db.refresh(proposal)
        except Exception:
            self.db.rollback()
            raise

        proposals_decided_total.labels(status=ProposalStatus.REJECTED.value).inc()
        logger.info(
            f"Proposal '{proposal.name}' rejected by {rejected_by}: {proposal.rejection_reason}",
            extra={"proposal_id": str(proposal.id)}
        )
        return proposal

    def hold_proposal(self, proposal_id: UUID) -> TermProposal:
        proposal = self.get_proposal(proposal_id)
        if proposal.status != ProposalStatus.PENDING.value:
            raise ValidationError(f"Only pending proposals can be put on hold (current: {proposal.status})")

        proposal.status = ProposalStatus.ON_HOLD.value
        try:
            self.db.commit()
            self.db.refresh(proposal)
        except Exception:
            self.db.rollback()
            raise
        return proposal

    def delete_proposal(self, proposal_id: UUID) -> None:
        proposal = self.get_proposal(proposal_id)
        try:
            self.db.delete(proposal)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
