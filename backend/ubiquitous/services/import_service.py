"""
Import contexts, terms, per-context definitions and relationships from an export document
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import UbiquitousError
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.models.bounded_context import BoundedContext
from ubiquitous.models.term import Term, TermContext, TermStatus
from ubiquitous.models.term_relationship import TermRelationship
from ubiquitous.services.context_service import ContextService
from ubiquitous.services.relationship_service import (RelationshipService,
                                                      parse_relationship_type)
from ubiquitous.services.term_service import TermService

logger = LoggingConfig.get_logger(__name__)

VALIDATION_ONLY_WARNING = "Validation only - no data was imported"


def _error_message(error: Exception) -> str:
    return error.message if isinstance(error, UbiquitousError) else str(error) or type(error).__name__


class ImportService:
    """Service loading export documents back into the catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.contexts = ContextService(db)
        self.terms = TermService(db)
        self.relationships = RelationshipService(db)

    @staticmethod
    def validate_import_data(data: Any) -> List[str]:
        """Structural checks; returns the list of problems found"""
        if not isinstance(data, dict):
            return ["Invalid data format - expected JSON object"]

        errors = []
        if not data.get("version"):
            errors.append("Missing version field")
        contexts = data.get("contexts")
        terms = data.get("terms")
        if not isinstance(contexts, list):
            errors.append("Missing or invalid contexts array")
        if not isinstance(terms, list):
            errors.append("Missing or invalid terms array")

        if isinstance(contexts, list):
            for index, context in enumerate(contexts):
                if not isinstance(context, dict):
                    errors.append(f"Context at index {index} is not a valid object")
                elif not context.get("name"):
                    errors.append(f"Context at index {index} is missing required field: name")

        if isinstance(terms, list):
            for index, term in enumerate(terms):
                if not isinstance(term, dict):
                    errors.append(f"Term at index {index} is not a valid object")
                    continue
                for field in ("name", "definition", "contextName"):
                    if not term.get(field):
                        errors.append(f"Term at index {index} is missing required field: {field}")

        for key in ("termContexts", "relationships"):
            if key in data and not isinstance(data[key], list):
                errors.append(f"Invalid {key} array")
        return errors

    def _find_term(self, name: Optional[str], context_name: Optional[str] = None) -> Optional[Term]:
        if not name:
            return None
        query = self.db.query(Term).filter(Term.name == name, Term.deleted_at.is_(None))
        if context_name:
            query = query.join(BoundedContext, BoundedContext.id == Term.bounded_context_id).filter(
                BoundedContext.name == context_name
            )
        return query.order_by(Term.created_at).first()

    def import_json(
        self,
        data: Any,
        user_id: str,
        skip_existing: bool = False,
        validate_only: bool = False
    ) -> Dict[str, Any]:
        """
        Import an export document

        Existing items are never overwritten. Failures of single items are
        collected as errors and the remaining items are still imported.
        """
        result: Dict[str, Any] = {
            "success": False,
            "imported": {"contexts": 0, "terms": 0, "termContexts": 0, "relationships": 0},
            "errors": [],
            "warnings": [],
        }
        errors = result["errors"]
        warnings = result["warnings"]
        imported = result["imported"]

        validation_errors = self.validate_import_data(data)
        if validation_errors:
            errors.extend(validation_errors)
            return result

        if validate_only:
            result["success"] = True
            warnings.append(VALIDATION_ONLY_WARNING)
            return result

        for item in data.get("contexts") or []:
            name = item["name"]
            try:
                if self.contexts.get_context_by_name(name):
                    if skip_existing:
                        warnings.append(f'Context "{name}" already exists - skipped')
                    continue
                self.contexts.create_context(name, item.get("description"), created_by=user_id)
                imported["contexts"] += 1
            except Exception as e:
                errors.append(f'Failed to import context "{name}": {_error_message(e)}')

        for item in data.get("terms") or []:
            name = item["name"]
            context_name = item["contextName"]
            try:
                context = self.contexts.get_context_by_name(context_name)
                if not context:
                    warnings.append(f'Context "{context_name}" not found for term "{name}" - skipped')
                    continue
                existing = self.db.query(Term).filter(
                    Term.name == name, Term.bounded_context_id == context.id
                ).first()
                if existing:
                    if skip_existing:
                        warnings.append(f'Term "{name}" already exists - skipped')
                    continue
                self.terms.create_term(
                    name=name,
                    definition=item["definition"],
                    bounded_context_id=context.id,
                    created_by=user_id,
                    status=item.get("status") or TermStatus.ACTIVE.value,
                    examples=item.get("examples") or [],
                    usage_notes=item.get("usageNotes"),
                    essential_for_onboarding=bool(item.get("essentialForOnboarding", False)),
                    review_cycle_days=item.get("reviewCycleDays"),
                    source="import",
                )
                imported["terms"] += 1
            except Exception as e:
                errors.append(f'Failed to import term "{name}": {_error_message(e)}')

        for item in data.get("termContexts") or []:
            term_name = item.get("termName")
            context_name = item.get("contextName")
            try:
                term = self._find_term(term_name, item.get("termContext"))
                if not term:
                    warnings.append(f'Term "{term_name}" not found for context assignment - skipped')
                    continue
                context = self.contexts.get_context_by_name(context_name) if context_name else None
                if not context:
                    warnings.append(f'Context "{context_name}" not found for term assignment - skipped')
                    continue
                exists = self.db.query(TermContext).filter(
                    TermContext.term_id == term.id, TermContext.context_id == context.id
                ).first()
                if exists or context.id == term.bounded_context_id:
                    if skip_existing:
                        warnings.append(f'Term "{term_name}" already in context "{context_name}" - skipped')
                    continue
                self.terms.add_term_to_context(
                    term.id, context.id, item.get("definition") or term.definition,
                    user_id, examples=item.get("examples") or []
                )
                imported["termContexts"] += 1
            except Exception as e:
                errors.append(
                    f'Failed to import term-context relationship for "{term_name}": {_error_message(e)}'
                )

        for item in data.get("relationships") or []:
            source_name = item.get("sourceTerm")
            target_name = item.get("targetTerm")
            try:
                source = self._find_term(source_name, item.get("sourceContext"))
                target = self._find_term(target_name, item.get("targetContext"))
                if not source or not target:
                    warnings.append(
                        f'Terms for relationship "{source_name}" -> "{target_name}" not found - skipped'
                    )
                    continue
                rel_type = parse_relationship_type(item.get("relationshipType"))
                existing = self.db.query(TermRelationship).filter(
                    TermRelationship.source_term_id == source.id,
                    TermRelationship.target_term_id == target.id,
                    TermRelationship.relationship_type == rel_type.value
                ).first()
                if existing:
                    if skip_existing:
                        warnings.append(
                            f'Relationship "{source_name}" -> "{target_name}" already exists - skipped'
                        )
                    continue
                self.relationships.create_relationship(
                    source.id, target.id, rel_type, user_id, description=item.get("description")
                )
                imported["relationships"] += 1
            except Exception as e:
                errors.append(f"Failed to import relationship: {_error_message(e)}")

        result["success"] = not errors
        logger.info(
            f"Import finished: {imported} ({len(errors)} errors, {len(warnings)} warnings)",
            extra={"user_id": user_id}
        )
        return result
