"""
Term service: catalog CRUD, per-context definitions and change history
"""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import (ConflictError, NotFoundError,
                                        ValidationError)
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.core.metrics import terms_created_total
from ubiquitous.models.bounded_context import BoundedContext
from ubiquitous.models.term import Term, TermContext, TermHistory, TermStatus
from ubiquitous.services.search_service import (LIKE_ESCAPE, SearchService,
                                                escape_like)
from ubiquitous.utils.datetime_utils import days_from, utc_now, utc_today

logger = LoggingConfig.get_logger(__name__)

# Fields whose changes are recorded in term history
TRACKED_FIELDS = (
    "name",
    "definition",
    "bounded_context_id",
    "status",
    "examples",
    "usage_notes",
    "essential_for_onboarding",
    "review_cycle_days",
)


def _plain(value: Any) -> Any:
    """Unwrap enums so values compare equal to what the ORM stores"""
    return getattr(value, "value", value)


def parse_term_status(value: Any) -> TermStatus:
    try:
        return TermStatus(_plain(value))
    except ValueError:
        allowed = ", ".join(s.value for s in TermStatus)
        raise ValidationError(f'Invalid term status "{value}". Must be one of: {allowed}')


class TermService:
    """Service for managing terms"""

    def __init__(self, db: Session, search_service: Optional[SearchService] = None):
        self.db = db
        self.search = search_service or SearchService(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_context(self, context_id: UUID) -> BoundedContext:
        context = self.db.query(BoundedContext).filter(BoundedContext.id == context_id).first()
        if not context:
            raise NotFoundError("Bounded context", context_id)
        return context

    def _check_name_available(
        self,
        name: str,
        context: BoundedContext,
        exclude_id: Optional[UUID] = None
    ) -> None:
        query = self.db.query(Term).filter(
            Term.name == name,
            Term.bounded_context_id == context.id
        )
        if exclude_id is not None:
            query = query.filter(Term.id != exclude_id)
        existing = query.first()
        if existing:
            scope = f'context "{context.name}"'
            if existing.is_deleted:
                scope = f"{scope} (archived, restore it instead)"
            raise ConflictError("Term", name, scope=scope)

    def _next_version(self, term_id: UUID) -> int:
        latest = self.db.query(func.max(TermHistory.version)).filter(
            TermHistory.term_id == term_id
        ).scalar()
        return (latest or 0) + 1

    def _record_history(
        self,
        term: Term,
        changed_by: str,
        changed_fields: List[str],
        previous_definition: Optional[str],
        change_reason: Optional[str] = None
    ) -> TermHistory:
        entry = TermHistory(
            term_id=term.id,
            version=self._next_version(term.id),
            previous_definition=previous_definition,
            new_definition=term.definition,
            changed_fields=changed_fields,
            change_reason=change_reason,
            changed_by=changed_by,
        )
        self.db.add(entry)
        return entry

    def sync_index(self, term: Term) -> None:
        """Push a term to the search index; failures never fail the write"""
        try:
            if term.is_deleted:
                self.search.remove_term(term.id)
            else:
                self.search.index_term(term)
        except Exception as e:
            logger.warning(f"Failed to sync term {term.id} to search index: {e}")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_term(
        self,
        name: str,
        definition: str,
        bounded_context_id: UUID,
        created_by: str,
        status: TermStatus = TermStatus.ACTIVE,
        examples: Optional[List[str]] = None,
        usage_notes: Optional[str] = None,
        essential_for_onboarding: bool = False,
        review_cycle_days: Optional[int] = None,
        source: str = "api"
    ) -> Term:
        """Create a term; names are unique within a bounded context"""
        name = name.strip()
        if not name or not definition.strip():
            raise ValidationError("Term name and definition are required")

        context = self._get_context(bounded_context_id)
        self._check_name_available(name, context)

        term = Term(
            name=name,
            definition=definition,
            bounded_context_id=context.id,
            status=parse_term_status(status).value,
            examples=list(examples or []),
            usage_notes=usage_notes,
            essential_for_onboarding=essential_for_onboarding,
            review_cycle_days=review_cycle_days,
            next_review_date=days_from(utc_today(), review_cycle_days) if review_cycle_days else None,
            created_by=created_by,
            updated_by=created_by,
        )
        try:
            self.db.add(term)
            self.db.flush()
            self._record_history(term, created_by, [], None, "Initial creation")
            self.db.commit()
            self.db.refresh(term)
        except Exception:
            self.db.rollback()
            raise

        terms_created_total.labels(source=source).inc()
        logger.info(
            f"Created term '{name}' in context '{context.name}'",
            extra={"term_id": str(term.id), "user_id": created_by}
        )
        self.sync_index(term)
        return term

    def get_term(self, term_id: UUID, include_deleted: bool = False) -> Term:
        term = self.db.query(Term).filter(Term.id == term_id).first()
        if not term or (term.is_deleted and not include_deleted):
            raise NotFoundError("Term", term_id)
        return term

    def get_term_with_contexts(self, term_id: UUID) -> Tuple[Term, List[TermContext]]:
        term = self.get_term(term_id)
        contexts = self.db.query(TermContext).filter(
            TermContext.term_id == term_id
        ).order_by(TermContext.created_at).all()
        return term, contexts

    def list_terms(
        self,
        context_id: Optional[UUID] = None,
        status: Optional[TermStatus] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
        limit: int = 100,
        offset: int = 0
    ) -> List[Term]:
        query = self.db.query(Term)
        if not include_deleted:
            query = query.filter(Term.deleted_at.is_(None))
        if context_id:
            query = query.filter(Term.bounded_context_id == context_id)
        if status:
            query = query.filter(Term.status == _plain(status))
        if search:
            pattern = f"%{escape_like(search.strip())}%"
            query = query.filter(or_(
                Term.name.ilike(pattern, escape=LIKE_ESCAPE),
                Term.definition.ilike(pattern, escape=LIKE_ESCAPE)
            ))
        return query.order_by(Term.name).offset(offset).limit(limit).all()

    def count_terms(self, include_deleted: bool = False) -> int:
        query = self.db.query(func.count(Term.id))
        if not include_deleted:
            query = query.filter(Term.deleted_at.is_(None))
        return query.scalar() or 0

    def update_term(
        self,
        term_id: UUID,
        changes: Dict[str, Any],
        updated_by: str,
        change_reason: Optional[str] = None
    ) -> Term:
        """
        Apply field changes and record a history entry when anything changed

        Keys outside TRACKED_FIELDS are ignored. Returns the term unchanged
        (and writes no history) when every value equals the stored one.
        """
        term = self.get_term(term_id)
        try:
            changed_fields = self.stage_update(term, changes, updated_by, change_reason)
            if not changed_fields:
                return term
            self.db.commit()
            self.db.refresh(term)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Updated term '{term.name}': {', '.join(changed_fields)}",
            extra={"term_id": str(term.id), "user_id": updated_by}
        )
        self.sync_index(term)
        return term

    def stage_update(
        self,
        term: Term,
        changes: Dict[str, Any],
        updated_by: str,
        change_reason: Optional[str] = None
    ) -> List[str]:
        """
        Apply field changes to ``term`` and add their history entry without committing

        Returns the changed field names, empty when nothing changed. The caller
        commits and then calls ``sync_index``.
        """
        changes = {k: _plain(v) for k, v in changes.items() if k in TRACKED_FIELDS}

        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("Term name cannot be empty")
        if "definition" in changes and not (changes["definition"] or "").strip():
            raise ValidationError("Term definition cannot be empty")
        if "status" in changes:
            changes["status"] = parse_term_status(changes["status"]).value
        if "examples" in changes:
            changes["examples"] = list(changes["examples"] or [])

        changed_fields = [
            field for field, value in changes.items()
            if getattr(term, field) != value
        ]
        if not changed_fields:
            return []

        target_context_id = changes.get("bounded_context_id", term.bounded_context_id)
        if "name" in changed_fields or "bounded_context_id" in changed_fields:
            context = self._get_context(target_context_id)
            self._check_name_available(changes.get("name", term.name), context, exclude_id=term.id)

        previous_definition = term.definition
        for field in changed_fields:
            setattr(term, field, changes[field])

        if "review_cycle_days" in changed_fields:
            cycle = term.review_cycle_days
            term.next_review_date = days_from(utc_today(), cycle) if cycle else None

        term.updated_by = updated_by
        self._record_history(term, updated_by, changed_fields, previous_definition, change_reason)
        return changed_fields

    def delete_term(self, term_id: UUID, deleted_by: str, permanent: bool = False) -> None:
        """Archive a term, or remove it with everything attached when permanent"""
        term = self.get_term(term_id, include_deleted=permanent)

        try:
            if permanent:
                self.db.delete(term)
            else:
                previous_definition = term.definition
                previous_status = term.status
                term.status = TermStatus.ARCHIVED.value
                term.deleted_at = utc_now()
                term.updated_by = deleted_by
                fields = ["deleted_at"] if previous_status == term.status else ["status", "deleted_at"]
                self._record_history(term, deleted_by, fields, previous_definition, "Archived")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"{'Permanently deleted' if permanent else 'Archived'} term {term_id}",
            extra={"term_id": str(term_id), "user_id": deleted_by}
        )
        try:
            self.search.remove_term(term_id)
        except Exception as e:
            logger.warning(f"Failed to remove term {term_id} from search index: {e}")

    def restore_term(self, term_id: UUID, restored_by: str) -> Term:
        term = self.get_term(term_id, include_deleted=True)
        if not term.is_deleted:
            raise ValidationError(f'Term "{term.name}" is not archived')

        term.deleted_at = None
        term.status = TermStatus.ACTIVE.value
        term.updated_by = restored_by
        try:
            self._record_history(term, restored_by, ["status", "deleted_at"], term.definition, "Restored")
            self.db.commit()
            self.db.refresh(term)
        except Exception:
            self.db.rollback()
            raise
        self.sync_index(term)
        return term

    def get_term_history(self, term_id: UUID) -> List[TermHistory]:
        self.get_term(term_id, include_deleted=True)
        return self.db.query(TermHistory).filter(
            TermHistory.term_id == term_id
        ).order_by(TermHistory.version.desc()).all()

    # ------------------------------------------------------------------
    # Additional contexts
    # ------------------------------------------------------------------

    def _get_term_context(self, term_id: UUID, context_id: UUID) -> TermContext:
        entry = self.db.query(TermContext).filter(
            TermContext.term_id == term_id,
            TermContext.context_id == context_id
        ).first()
        if not entry:
            raise NotFoundError("Term context", f"{term_id}/{context_id}")
        return entry

    def add_term_to_context(
        self,
        term_id: UUID,
        context_id: UUID,
        definition: str,
        user_id: str,
        examples: Optional[List[str]] = None
    ) -> TermContext:
        """Define an existing term inside an additional bounded context"""
        term = self.get_term(term_id)
        context = self._get_context(context_id)

        if context.id == term.bounded_context_id:
            raise ValidationError(f'"{context.name}" is already the primary context of "{term.name}"')
        exists = self.db.query(TermContext).filter(
            TermContext.term_id == term_id,
            TermContext.context_id == context_id
        ).first()
        if exists:
            raise ConflictError("Term", term.name, scope=f'context "{context.name}"')
        if not definition or not definition.strip():
            raise ValidationError("Definition is required")

        entry = TermContext(
            term_id=term.id,
            context_id=context.id,
            definition=definition,
            examples=list(examples or []),
        )
        term.updated_by = user_id
        try:
            self.db.add(entry)
            self._record_history(term, user_id, ["contexts"], term.definition, f'Added to context "{context.name}"')
            self.db.commit()
            self.db.refresh(entry)
        except Exception:
            self.db.rollback()
            raise
        return entry

    def update_term_in_context(
        self,
        term_id: UUID,
        context_id: UUID,
        user_id: str,
        definition: Optional[str] = None,
        examples: Optional[List[str]] = None
    ) -> TermContext:
        term = self.get_term(term_id)
        entry = self._get_term_context(term_id, context_id)

        if definition is not None:
            if not definition.strip():
                raise ValidationError("Definition cannot be empty")
            entry.definition = definition
        if examples is not None:
            entry.examples = list(examples)

        term.updated_by = user_id
        try:
            self._record_history(
                term, user_id, ["contexts"], term.definition,
                f'Updated definition in context "{entry.context_name}"'
            )
            self.db.commit()
            self.db.refresh(entry)
        except Exception:
            self.db.rollback()
            raise
        return entry

    def remove_term_from_context(self, term_id: UUID, context_id: UUID, user_id: str) -> None:
        term = self.get_term(term_id)
        entry = self._get_term_context(term_id, context_id)
        context_name = entry.context_name

        term.updated_by = user_id
        try:
            self.db.delete(entry)
            self._record_history(term, user_id, ["contexts"], term.definition, f'Removed from context "{context_name}"')
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Usage
    # ------------------------------------------------------------------

    def increment_view_count(self, term_id: UUID) -> int:
        term = self.get_term(term_id)
        term.view_count = (term.view_count or 0) + 1
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return term.view_count
