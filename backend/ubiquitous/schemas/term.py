"""
Term and bounded context DTOs
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ubiquitous.models.term import TermStatus


def _none_to_list(v):
    return [] if v is None else v


class ContextCreate(BaseModel):
    """Request model for creating a bounded context"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ContextUpdate(BaseModel):
    """Request model for updating a bounded context"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


class ContextResponse(BaseModel):
    """Bounded context response model"""
    id: UUID
    name: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TermSummary(BaseModel):
    """Compact term reference used inside other responses"""
    id: UUID
    name: str
    status: str
    bounded_context_id: UUID

    class Config:
        from_attributes = True


class ContextWithTerms(ContextResponse):
    terms: List[TermSummary] = Field(default_factory=list)


class TermCreate(BaseModel):
    """Request model for creating a term"""
    name: str = Field(..., min_length=1, max_length=255)
    definition: str = Field(..., min_length=1)
    bounded_context_id: UUID
    status: TermStatus = TermStatus.ACTIVE
    examples: List[str] = Field(default_factory=list)
    usage_notes: Optional[str] = None
    essential_for_onboarding: bool = False
    review_cycle_days: Optional[int] = Field(None, ge=1)

    @field_validator("examples", mode="before")
    @classmethod
    def examples_default(cls, v):
        return _none_to_list(v)


class TermUpdate(BaseModel):
    """Request model for updating a term; omitted fields are left untouched"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    definition: Optional[str] = Field(None, min_length=1)
    bounded_context_id: Optional[UUID] = None
    status: Optional[TermStatus] = None
    examples: Optional[List[str]] = None
    usage_notes: Optional[str] = None
    essential_for_onboarding: Optional[bool] = None
    review_cycle_days: Optional[int] = Field(None, ge=1)
    change_reason: Optional[str] = None


class TermResponse(BaseModel):
    """Term response model"""
    id: UUID
    name: str
    definition: str
    bounded_context_id: UUID
    context_name: Optional[str] = None
    status: str
    examples: List[str] = Field(default_factory=list)
    usage_notes: Optional[str] = None
    quality_score: int = 0
    essential_for_onboarding: bool = False
    review_cycle_days: Optional[int] = None
    next_review_date: Optional[date] = None
    view_count: int = 0
    search_count: int = 0
    created_by: str
    created_at: datetime
    updated_by: str
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    @field_validator("examples", mode="before")
    @classmethod
    def examples_default(cls, v):
        return _none_to_list(v)

    class Config:
        from_attributes = True


class TermContextCreate(BaseModel):
    """Request model for defining a term inside an additional context"""
    context_id: UUID
    definition: str = Field(..., min_length=1)
    examples: List[str] = Field(default_factory=list)

    @field_validator("examples", mode="before")
    @classmethod
    def examples_default(cls, v):
        return _none_to_list(v)


class TermContextUpdate(BaseModel):
    definition: Optional[str] = Field(None, min_length=1)
    examples: Optional[List[str]] = None


class TermContextResponse(BaseModel):
    id: UUID
    term_id: UUID
    context_id: UUID
    context_name: Optional[str] = None
    definition: str
    examples: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("examples", mode="before")
    @classmethod
    def examples_default(cls, v):
        return _none_to_list(v)

    class Config:
        from_attributes = True


class TermWithContexts(TermResponse):
    contexts: List[TermContextResponse] = Field(default_factory=list)


class TermHistoryResponse(BaseModel):
    """Term history entry response model"""
    id: UUID
    term_id: UUID
    version: int
    previous_definition: Optional[str] = None
    new_definition: str
    changed_fields: List[str] = Field(default_factory=list)
    change_reason: Optional[str] = None
    changed_by: str
    changed_at: datetime

    @field_validator("changed_fields", mode="before")
    @classmethod
    def changed_fields_default(cls, v):
        return _none_to_list(v)

    class Config:
        from_attributes = True
