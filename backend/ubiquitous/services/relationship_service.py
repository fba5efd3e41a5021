"""
Relationship service: typed edges between terms, cycle checks and diagrams
"""
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import (ConflictError, NotFoundError,
                                        ValidationError)
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.models.bounded_context import BoundedContext
from ubiquitous.models.term import Term
from ubiquitous.models.term_relationship import (ACYCLIC_RELATIONSHIP_TYPES,
                                                 RelationshipType,
                                                 TermRelationship)

logger = LoggingConfig.get_logger(__name__)

# Edge types followed when building a term hierarchy
HIERARCHY_TYPES = (RelationshipType.INHERITANCE.value, RelationshipType.AGGREGATION.value)


def parse_relationship_type(value: Any) -> RelationshipType:
    try:
        return RelationshipType(getattr(value, "value", value))
    except ValueError:
        allowed = ", ".join(t.value for t in RelationshipType)
        raise ValidationError(f'Invalid relationship type "{value}". Must be one of: {allowed}')


class RelationshipService:
    """Service for managing relationships between terms"""

    def __init__(self, db: Session):
        self.db = db

    def _get_term(self, term_id: UUID) -> Term:
        term = self.db.query(Term).filter(Term.id == term_id, Term.deleted_at.is_(None)).first()
        if not term:
            raise NotFoundError("Term", term_id)
        return term

    def _find_duplicate(
        self,
        source_term_id: UUID,
        target_term_id: UUID,
        relationship_type: RelationshipType,
        exclude_id: Optional[UUID] = None
    ) -> Optional[TermRelationship]:
        query = self.db.query(TermRelationship).filter(
            TermRelationship.source_term_id == source_term_id,
            TermRelationship.target_term_id == target_term_id,
            TermRelationship.relationship_type == relationship_type.value
        )
        if exclude_id is not None:
            query = query.filter(TermRelationship.id != exclude_id)
        return query.first()

    # ------------------------------------------------------------------
    # Cycle detection
    # ------------------------------------------------------------------

    def _adjacency(
        self,
        relationship_type: RelationshipType,
        ignore_id: Optional[UUID] = None
    ) -> Dict[UUID, List[UUID]]:
        query = self.db.query(
            TermRelationship.source_term_id, TermRelationship.target_term_id
        ).filter(TermRelationship.relationship_type == relationship_type.value)
        if ignore_id is not None:
            query = query.filter(TermRelationship.id != ignore_id)

        adjacency: Dict[UUID, List[UUID]] = defaultdict(list)
        for source_id, target_id in query.all():
            adjacency[source_id].append(target_id)
        return adjacency

    @staticmethod
    def _reachable(adjacency: Dict[UUID, List[UUID]], start: UUID, goal: UUID) -> bool:
        stack = [start]
        visited: Set[UUID] = set()
        while stack:
            node = stack.pop()
            if node == goal:
                return True
            if node in visited:
                continue
            visited.add(node)
            stack.extend(adjacency.get(node, ()))
        return False

    def would_create_cycle(
        self,
        source_term_id: UUID,
        target_term_id: UUID,
        relationship_type: Any,
        ignore_id: Optional[UUID] = None
    ) -> bool:
        """
        Check whether adding source -> target closes a loop

        Only aggregation, dependency and inheritance edges are constrained,
        each within its own type. Association edges may form cycles.
        """
        rel_type = parse_relationship_type(relationship_type)
        if rel_type not in ACYCLIC_RELATIONSHIP_TYPES:
            return False
        if source_term_id == target_term_id:
            return True
        adjacency = self._adjacency(rel_type, ignore_id=ignore_id)
        return self._reachable(adjacency, target_term_id, source_term_id)

    def validate_no_circular_dependency(self, relationship_type: Any = None) -> List[List[str]]:
        """Return every cycle found among constrained edges; empty when the graph is valid"""
        if relationship_type is not None:
            types = [parse_relationship_type(relationship_type)]
        else:
            types = sorted(ACYCLIC_RELATIONSHIP_TYPES, key=lambda t: t.value)

        cycles: List[List[str]] = []
        for rel_type in types:
            if rel_type not in ACYCLIC_RELATIONSHIP_TYPES:
                continue
            cycles.extend(self._find_cycles(self._adjacency(rel_type)))

        if cycles:
            logger.warning(f"Found {len(cycles)} circular relationship chain(s)")
        return cycles

    @staticmethod
    def _find_cycles(adjacency: Dict[UUID, List[UUID]]) -> List[List[str]]:
        done: Set[UUID] = set()
        cycles: List[List[str]] = []

        for root in list(adjacency):
            if root in done:
                continue
            path: List[UUID] = []
            on_path: Set[UUID] = set()
            stack = [(root, iter(adjacency.get(root, ())))]
            path.append(root)
            on_path.add(root)
            while stack:
                node, children = stack[-1]
                child = next(children, None)
                if child is None:
                    stack.pop()
                    path.pop()
                    on_path.discard(node)
                    done.add(node)
                    continue
                if child in on_path:
                    start = path.index(child)
                    cycles.append([str(n) for n in path[start:]] + [str(child)])
                elif child not in done:
                    stack.append((child, iter(adjacency.get(child, ()))))
                    path.append(child)
                    on_path.add(child)
        return cycles

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_relationship(
        self,
        source_term_id: UUID,
        target_term_id: UUID,
        relationship_type: Any,
        created_by: str,
        description: Optional[str] = None
    ) -> TermRelationship:
        rel_type = parse_relationship_type(relationship_type)
        if source_term_id == target_term_id:
            raise ValidationError("A term cannot have a relationship with itself")

        source = self._get_term(source_term_id)
        target = self._get_term(target_term_id)

        if self._find_duplicate(source.id, target.id, rel_type):
            raise ConflictError("Relationship", f"{source.name} -{rel_type.value}-> {target.name}")
        if self.would_create_cycle(source.id, target.id, rel_type):
            raise ValidationError(
                f'Adding this {rel_type.value} relationship from "{source.name}" to "{target.name}" '
                f"would create a circular dependency"
            )

        relationship = TermRelationship(
            source_term_id=source.id,
            target_term_id=target.id,
            relationship_type=rel_type.value,
            description=description,
            created_by=created_by,
        )
        try:
            self.db.add(relationship)
            self.db.commit()
            self.db.refresh(relationship)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Linked '{source.name}' -{rel_type.value}-> '{target.name}'",
            extra={"relationship_id": str(relationship.id), "user_id": created_by}
        )
        return relationship

    def get_relationship(self, relationship_id: UUID) -> TermRelationship:
        relationship = self.db.query(TermRelationship).filter(
            TermRelationship.id == relationship_id
        ).first()
        if not relationship:
            raise NotFoundError("Relationship", relationship_id)
        return relationship

    def update_relationship(
        self,
        relationship_id: UUID,
        relationship_type: Any = None,
        description: Optional[str] = None
    ) -> TermRelationship:
        relationship = self.get_relationship(relationship_id)

        if relationship_type is not None:
            rel_type = parse_relationship_type(relationship_type)
            if rel_type.value != relationship.relationship_type:
                source_id = relationship.source_term_id
                target_id = relationship.target_term_id
                if self._find_duplicate(source_id, target_id, rel_type, exclude_id=relationship.id):
                    raise ConflictError("Relationship", f"{source_id} -{rel_type.value}-> {target_id}")
                if self.would_create_cycle(source_id, target_id, rel_type, ignore_id=relationship.id):
                    raise ValidationError(
                        f"Changing this relationship to {rel_type.value} would create a circular dependency"
                    )
                relationship.relationship_type = rel_type.value
        if description is not None:
            relationship.description = description

        try:
            self.db.commit()
            self.db.refresh(relationship)
        except Exception:
            self.db.rollback()
            raise
        return relationship

    def delete_relationship(self, relationship_id: UUID) -> None:
        relationship = self.get_relationship(relationship_id)
        try:
            self.db.delete(relationship)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def delete_relationships_between(self, term_a_id: UUID, term_b_id: UUID) -> int:
        """Remove every edge between two terms, in both directions"""
        relationships = self.db.query(TermRelationship).filter(
            or_(
                and_(TermRelationship.source_term_id == term_a_id, TermRelationship.target_term_id == term_b_id),
                and_(TermRelationship.source_term_id == term_b_id, TermRelationship.target_term_id == term_a_id),
            )
        ).all()
        try:
            for relationship in relationships:
                self.db.delete(relationship)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return len(relationships)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_relationships_for_term(
        self,
        term_id: UUID,
        relationship_type: Any = None
    ) -> List[Dict[str, Any]]:
        """
        Relationships touching a term, seen from that term

        Each entry is ``{"relationship", "direction", "related_term"}`` where
        direction is "outgoing" when the term is the source.
        """
        self._get_term(term_id)
        query = self.db.query(TermRelationship).filter(
            or_(TermRelationship.source_term_id == term_id, TermRelationship.target_term_id == term_id)
        )
        if relationship_type is not None:
            query = query.filter(
                TermRelationship.relationship_type == parse_relationship_type(relationship_type).value
            )

        views = []
        for relationship in query.order_by(TermRelationship.created_at).all():
            outgoing = relationship.source_term_id == term_id
            related = relationship.target_term if outgoing else relationship.source_term
            if related is None or related.is_deleted:
                continue
            views.append({
                "relationship": relationship,
                "direction": "outgoing" if outgoing else "incoming",
                "related_term": related,
            })
        return views

    def get_related_terms_by_type(self, term_id: UUID, relationship_type: Any) -> List[Dict[str, Any]]:
        return self.get_relationships_for_term(term_id, relationship_type=relationship_type)

    def get_term_hierarchy(self, term_id: UUID, max_depth: int = 10) -> Dict[str, Any]:
        """Tree of a term and its descendants along inheritance and aggregation edges"""
        root = self._get_term(term_id)
        visited: Set[UUID] = set()

        def build(term: Term, relationship_type: Optional[str], depth: int) -> Dict[str, Any]:
            visited.add(term.id)
            node = {
                "id": str(term.id),
                "name": term.name,
                "relationship_type": relationship_type,
                "children": [],
            }
            if depth >= max_depth:
                return node
            for edge in term.outgoing_relationships:
                child = edge.target_term
                if edge.relationship_type not in HIERARCHY_TYPES:
                    continue
                if child is None or child.is_deleted or child.id in visited:
                    continue
                node["children"].append(build(child, edge.relationship_type, depth + 1))
            return node

        return build(root, None, 0)

    def get_diagram_data(self, context_id: Optional[UUID] = None) -> Dict[str, List[Dict[str, Any]]]:
        """
        Nodes and edges for rendering the term graph

        With a context, only its terms and the edges between them are included.
        """
        query = self.db.query(Term).filter(Term.deleted_at.is_(None))
        if context_id is not None:
            context = self.db.query(BoundedContext).filter(BoundedContext.id == context_id).first()
            if not context:
                raise NotFoundError("Bounded context", context_id)
            query = query.filter(Term.bounded_context_id == context_id)

        terms = query.order_by(Term.name).all()
        term_ids = {term.id for term in terms}
        nodes = [
            {
                "id": str(term.id),
                "label": term.name,
                "type": "term",
                "context_id": str(term.bounded_context_id),
            }
            for term in terms
        ]

        edges = []
        if term_ids:
            relationships = self.db.query(TermRelationship).filter(
                TermRelationship.source_term_id.in_(term_ids),
                TermRelationship.target_term_id.in_(term_ids)
            ).order_by(TermRelationship.created_at).all()
            edges = [
                {
                    "id": str(rel.id),
                    "source": str(rel.source_term_id),
                    "target": str(rel.target_term_id),
                    "label": rel.relationship_type,
                    "type": rel.relationship_type,
                }
                for rel in relationships
            ]
        return {"nodes": nodes, "edges": edges}
