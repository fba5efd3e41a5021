"""
API routes for term relationships, diagrams and cycle validation
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ubiquitous.core.auth import require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.models.term_relationship import RelationshipType
from ubiquitous.schemas.relationship import (CycleValidationResponse,
                                             DiagramData, HierarchyNode,
                                             RelationshipCreate,
                                             RelationshipResponse,
                                             RelationshipUpdate,
                                             TermRelationshipView)
from ubiquitous.schemas.term import TermSummary
from ubiquitous.services.relationship_service import RelationshipService

router = APIRouter(prefix="/api/relationships", tags=["relationships"])


def _views(entries: List[Dict[str, Any]]) -> List[TermRelationshipView]:
    return [
        TermRelationshipView(
            **RelationshipResponse.model_validate(entry["relationship"]).model_dump(),
            direction=entry["direction"],
            related_term=TermSummary.model_validate(entry["related_term"])
        )
        for entry in entries
    ]


@router.post("", response_model=RelationshipResponse, status_code=status.HTTP_201_CREATED)
async def create_relationship(
    request: RelationshipCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Link two terms; rejected when it would close a cycle"""
    return RelationshipService(db).create_relationship(
        source_term_id=request.source_term_id,
        target_term_id=request.target_term_id,
        relationship_type=request.relationship_type,
        created_by=user_id,
        description=request.description
    )


@router.get("/diagram", response_model=DiagramData)
async def get_diagram(db: Session = Depends(get_db)):
    """Graph of every term and relationship"""
    return RelationshipService(db).get_diagram_data()


@router.get("/validate", response_model=CycleValidationResponse)
async def validate_relationships(
    relationship_type: Optional[RelationshipType] = None,
    db: Session = Depends(get_db)
):
    cycles = RelationshipService(db).validate_no_circular_dependency(relationship_type)
    return CycleValidationResponse(valid=not cycles, cycles=cycles)


@router.get("/contexts/{context_id}/diagram", response_model=DiagramData)
async def get_context_diagram(context_id: UUID, db: Session = Depends(get_db)):
    """Graph of one context's terms and the relationships between them"""
    return RelationshipService(db).get_diagram_data(context_id)


@router.get("/terms/{term_id}", response_model=List[TermRelationshipView])
async def get_term_relationships(term_id: UUID, db: Session = Depends(get_db)):
    return _views(RelationshipService(db).get_relationships_for_term(term_id))


@router.get("/terms/{term_id}/type/{relationship_type}", response_model=List[TermRelationshipView])
async def get_term_relationships_by_type(
    term_id: UUID,
    relationship_type: RelationshipType,
    db: Session = Depends(get_db)
):
    return _views(RelationshipService(db).get_related_terms_by_type(term_id, relationship_type))


@router.get("/terms/{term_id}/hierarchy", response_model=HierarchyNode)
async def get_term_hierarchy(term_id: UUID, max_depth: int = 10, db: Session = Depends(get_db)):
    """Descendants along inheritance and aggregation edges"""
    return RelationshipService(db).get_term_hierarchy(term_id, max_depth=max_depth)


@router.delete("/between/{term_a_id}/{term_b_id}")
async def delete_relationships_between(
    term_a_id: UUID,
    term_b_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Remove every relationship between two terms, in both directions"""
    deleted = RelationshipService(db).delete_relationships_between(term_a_id, term_b_id)
    return {"deleted": deleted}


@router.get("/{relationship_id}", response_model=RelationshipResponse)
async def get_relationship(relationship_id: UUID, db: Session = Depends(get_db)):
    return RelationshipService(db).get_relationship(relationship_id)


@router.put("/{relationship_id}", response_model=RelationshipResponse)
async def update_relationship(
    relationship_id: UUID,
    request: RelationshipUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return RelationshipService(db).update_relationship(
        relationship_id,
        relationship_type=request.relationship_type,
        description=request.description
    )


@router.delete("/{relationship_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_relationship(
    relationship_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    RelationshipService(db).delete_relationship(relationship_id)
