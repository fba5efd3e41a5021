"""
Bounded context service
"""
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import ConflictError, NotFoundError
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.models.bounded_context import BoundedContext
from ubiquitous.models.term import Term

logger = LoggingConfig.get_logger(__name__)


class ContextService:
    """Service for managing bounded contexts"""

    def __init__(self, db: Session):
        self.db = db

    def get_context_by_name(self, name: str) -> Optional[BoundedContext]:
        return self.db.query(BoundedContext).filter(BoundedContext.name == name).first()

    def create_context(
        self,
        name: str,
        description: Optional[str] = None,
        created_by: Optional[str] = None
    ) -> BoundedContext:
        """Create a bounded context with a unique name"""
        name = name.strip()
        if self.get_context_by_name(name):
            raise ConflictError("Bounded context", name)

        context = BoundedContext(name=name, description=description, created_by=created_by)
        try:
            self.db.add(context)
            self.db.commit()
            self.db.refresh(context)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Created bounded context '{name}'", extra={"context_id": str(context.id)})
        return context

    def get_context(self, context_id: UUID) -> BoundedContext:
        context = self.db.query(BoundedContext).filter(BoundedContext.id == context_id).first()
        if not context:
            raise NotFoundError("Bounded context", context_id)
        return context

    def list_contexts(self) -> List[BoundedContext]:
        return self.db.query(BoundedContext).order_by(BoundedContext.name).all()

    def update_context(
        self,
        context_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None
    ) -> BoundedContext:
        context = self.get_context(context_id)

        if name is not None:
            name = name.strip()
            if name != context.name:
                existing = self.get_context_by_name(name)
                if existing and existing.id != context.id:
                    raise ConflictError("Bounded context", name)
                context.name = name
        if description is not None:
            context.description = description

        try:
            self.db.commit()
            self.db.refresh(context)
        except Exception:
            self.db.rollback()
            raise
        return context

    def delete_context(self, context_id: UUID) -> None:
        """Delete a context together with its terms and proposals"""
        context = self.get_context(context_id)
        name = context.name
        try:
            self.db.delete(context)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Deleted bounded context '{name}'", extra={"context_id": str(context_id)})

    def get_context_with_terms(
        self,
        context_id: UUID,
        include_deleted: bool = False
    ) -> Tuple[BoundedContext, List[Term]]:
        context = self.get_context(context_id)
        query = self.db.query(Term).filter(Term.bounded_context_id == context_id)
        if not include_deleted:
            query = query.filter(Term.deleted_at.is_(None))
        return context, query.order_by(Term.name).all()
