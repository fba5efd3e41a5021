"""
Onboarding service: essential terms, learning progress and learning paths
"""
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import NotFoundError
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.models.term import Term
from ubiquitous.models.term_relationship import (RelationshipType,
                                                 TermRelationship)
from ubiquitous.models.user_learning import UserLearning

logger = LoggingConfig.get_logger(__name__)

# A term must be learned after the targets of these outgoing edges
PREREQUISITE_TYPES = (RelationshipType.INHERITANCE.value, RelationshipType.DEPENDENCY.value)


class OnboardingService:
    """Service guiding new team members through the essential vocabulary"""

    def __init__(self, db: Session):
        self.db = db

    def _get_term(self, term_id: UUID) -> Term:
        term = self.db.query(Term).filter(Term.id == term_id, Term.deleted_at.is_(None)).first()
        if not term:
            raise NotFoundError("Term", term_id)
        return term

    # ------------------------------------------------------------------
    # Essential terms
    # ------------------------------------------------------------------

    def get_essential_terms(self) -> List[Term]:
        return self.db.query(Term).filter(
            Term.deleted_at.is_(None),
            Term.essential_for_onboarding.is_(True)
        ).order_by(Term.name).all()

    def _set_essential(self, term_id: UUID, essential: bool) -> Term:
        term = self._get_term(term_id)
        term.essential_for_onboarding = essential
        try:
            self.db.commit()
            self.db.refresh(term)
        except Exception:
            self.db.rollback()
            raise
        return term

    def mark_as_essential(self, term_id: UUID) -> Term:
        return self._set_essential(term_id, True)

    def unmark_as_essential(self, term_id: UUID) -> Term:
        return self._set_essential(term_id, False)

    # ------------------------------------------------------------------
    # Learning records
    # ------------------------------------------------------------------

    def _learned_ids(self, user_id: Optional[str]) -> Set[UUID]:
        if not user_id:
            return set()
        rows = self.db.query(UserLearning.term_id).filter(UserLearning.user_id == user_id).all()
        return {row[0] for row in rows}

    def mark_as_learned(self, user_id: str, term_id: UUID) -> UserLearning:
        """Record that a user learned a term; repeated calls return the existing record"""
        term = self._get_term(term_id)
        existing = self.db.query(UserLearning).filter(
            UserLearning.user_id == user_id,
            UserLearning.term_id == term.id
        ).first()
        if existing:
            return existing

        record = UserLearning(user_id=user_id, term_id=term.id)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except Exception:
            self.db.rollback()
            raise
        logger.debug(f"User {user_id} learned '{term.name}'")
        return record

    def unmark_as_learned(self, user_id: str, term_id: UUID) -> bool:
        record = self.db.query(UserLearning).filter(
            UserLearning.user_id == user_id,
            UserLearning.term_id == term_id
        ).first()
        if not record:
            return False
        try:
            self.db.delete(record)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True

    def get_learned_terms(self, user_id: str) -> List[Term]:
        return self.db.query(Term).join(UserLearning, UserLearning.term_id == Term.id).filter(
            UserLearning.user_id == user_id,
            Term.deleted_at.is_(None)
        ).order_by(UserLearning.learned_at).all()

    def get_user_progress(self, user_id: str) -> Dict[str, Any]:
        essential = self.get_essential_terms()
        learned_ids = self._learned_ids(user_id)
        learned = [term for term in essential if term.id in learned_ids]
        remaining = [term for term in essential if term.id not in learned_ids]
        percent = round(len(learned) / len(essential) * 100) if essential else 0
        return {
            "user_id": user_id,
            "total_essential": len(essential),
            "learned_essential": len(learned),
            "progress_percent": percent,
            "learned_terms": learned,
            "remaining_terms": remaining,
        }

    # ------------------------------------------------------------------
    # Learning path
    # ------------------------------------------------------------------

    def _prerequisites(self, essential_ids: Set[UUID]) -> Dict[UUID, List[UUID]]:
        """Essential-to-essential prerequisite edges, keyed by the dependent term"""
        prerequisites: Dict[UUID, List[UUID]] = {term_id: [] for term_id in essential_ids}
        if not essential_ids:
            return prerequisites
        rows = self.db.query(
            TermRelationship.source_term_id, TermRelationship.target_term_id
        ).filter(
            TermRelationship.relationship_type.in_(PREREQUISITE_TYPES),
            TermRelationship.source_term_id.in_(essential_ids),
            TermRelationship.target_term_id.in_(essential_ids)
        ).all()
        for source_id, target_id in rows:
            if target_id not in prerequisites[source_id]:
                prerequisites[source_id].append(target_id)
        return prerequisites

    def get_learning_path(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Essential terms ordered so that every term follows its prerequisites

        Prerequisites of a term are the essential targets of its outgoing
        inheritance and dependency edges. A visited set keeps cycles from
        looping; the first term reached wins.
        """
        essential = self.get_essential_terms()
        by_id = {term.id: term for term in essential}
        prerequisites = self._prerequisites(set(by_id))
        learned_ids = self._learned_ids(user_id)

        ordered: List[UUID] = []
        visited: Set[UUID] = set()

        def visit(term_id: UUID) -> None:
            if term_id in visited:
                return
            visited.add(term_id)
            for prerequisite_id in prerequisites.get(term_id, []):
                visit(prerequisite_id)
            ordered.append(term_id)

        for term in essential:
            visit(term.id)

        return [
            {
                "order": index + 1,
                "term": by_id[term_id],
                "prerequisites": prerequisites.get(term_id, []),
                "learned": term_id in learned_ids,
            }
            for index, term_id in enumerate(ordered)
        ]

    def get_next_terms_to_learn(self, user_id: str, limit: int = 5) -> List[Term]:
        """Unlearned essential terms whose prerequisites are all learned"""
        learned_ids = self._learned_ids(user_id)
        ready = [
            entry["term"]
            for entry in self.get_learning_path(user_id)
            if not entry["learned"] and all(p in learned_ids for p in entry["prerequisites"])
        ]
        return ready[:limit]

    def can_learn(self, user_id: str, term_id: UUID) -> Dict[str, Any]:
        term = self._get_term(term_id)
        learned_ids = self._learned_ids(user_id)
        rows = self.db.query(TermRelationship.target_term_id).join(
            Term, Term.id == TermRelationship.target_term_id
        ).filter(
            TermRelationship.source_term_id == term.id,
            TermRelationship.relationship_type.in_(PREREQUISITE_TYPES),
            Term.essential_for_onboarding.is_(True),
            Term.deleted_at.is_(None)
        ).all()
        missing = [row[0] for row in rows if row[0] not in learned_ids]
        return {"term_id": term.id, "can_learn": not missing, "missing_prerequisites": missing}
