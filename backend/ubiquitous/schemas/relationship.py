"""
Term relationship and diagram DTOs
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ubiquitous.models.term_relationship import RelationshipType
from ubiquitous.schemas.term import TermSummary


class RelationshipCreate(BaseModel):
    """Request model for linking two terms"""
    source_term_id: UUID
    target_term_id: UUID
    relationship_type: RelationshipType
    description: Optional[str] = None


class RelationshipUpdate(BaseModel):
    relationship_type: Optional[RelationshipType] = None
    description: Optional[str] = None


class RelationshipResponse(BaseModel):
    """Relationship response model"""
    id: UUID
    source_term_id: UUID
    target_term_id: UUID
    relationship_type: str
    description: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TermRelationshipView(RelationshipResponse):
    """A relationship seen from one of its terms"""
    direction: str  # 'outgoing' or 'incoming'
    related_term: TermSummary


class DiagramNode(BaseModel):
    id: str
    label: str
    type: str = "term"
    context_id: Optional[str] = None


class DiagramEdge(BaseModel):
    id: str
    source: str
    target: str
    label: str
    type: str


class DiagramData(BaseModel):
    """Nodes and edges ready for a graph renderer"""
    nodes: List[DiagramNode] = Field(default_factory=list)
    edges: List[DiagramEdge] = Field(default_factory=list)


class HierarchyNode(BaseModel):
    """Term tree following inheritance and aggregation edges"""
    id: str
    name: str
    relationship_type: Optional[str] = None
    children: List["HierarchyNode"] = Field(default_factory=list)


class CycleValidationResponse(BaseModel):
    valid: bool
    cycles: List[List[str]] = Field(default_factory=list)


HierarchyNode.model_rebuild()
