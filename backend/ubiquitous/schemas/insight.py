"""
DTOs for onboarding, analytics, search, code analysis, import/export and the AI assistant
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ubiquitous.schemas.term import TermSummary


# ----------------------------------------------------------------------------
# Onboarding
# ----------------------------------------------------------------------------

class ProgressResponse(BaseModel):
    user_id: str
    total_essential: int
    learned_essential: int
    progress_percent: int
    learned_terms: List[TermSummary] = Field(default_factory=list)
    remaining_terms: List[TermSummary] = Field(default_factory=list)


class LearningPathEntry(BaseModel):
    order: int
    term: TermSummary
    prerequisites: List[UUID] = Field(default_factory=list)
    learned: bool = False


class CanLearnResponse(BaseModel):
    term_id: UUID
    can_learn: bool
    missing_prerequisites: List[UUID] = Field(default_factory=list)


# ----------------------------------------------------------------------------
# Analytics
# ----------------------------------------------------------------------------

class TrackActivityRequest(BaseModel):
    action: str = Field(..., min_length=1, max_length=100)
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class TermUsage(BaseModel):
    id: UUID
    name: str
    count: int


class UserCount(BaseModel):
    user_id: str
    count: int


class DashboardMetrics(BaseModel):
    active_users_this_week: int
    total_terms: int
    coverage_rate: float
    most_viewed_terms: List[TermUsage] = Field(default_factory=list)
    most_searched_terms: List[TermUsage] = Field(default_factory=list)


# ----------------------------------------------------------------------------
# Search
# ----------------------------------------------------------------------------

class SearchHit(BaseModel):
    id: UUID
    name: str
    definition: str
    bounded_context_id: UUID
    context_name: Optional[str] = None
    status: str
    score: float = 0.0


class SearchResponse(BaseModel):
    hits: List[SearchHit] = Field(default_factory=list)
    query: str
    limit: int
    offset: int
    estimated_total_hits: int
    processing_time_ms: int
    backend: str


# ----------------------------------------------------------------------------
# Code analysis
# ----------------------------------------------------------------------------

class CodeAnalysisRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    code: str


class CodeElement(BaseModel):
    type: str  # 'class', 'method' or 'variable'
    name: str
    line: int
    matched: bool = False
    matched_term: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)


class RenameSuggestion(BaseModel):
    element: str
    current_name: str
    suggested_names: List[str]


class CodeAnalysisReport(BaseModel):
    id: UUID
    file_name: str
    uploaded_by: str
    uploaded_at: datetime
    total_elements: int
    matched_elements: int
    unmatched_elements: int
    match_rate: float
    elements: List[CodeElement] = Field(default_factory=list)
    suggestions: List[RenameSuggestion] = Field(default_factory=list)


class CodeAnalysisSummary(BaseModel):
    id: UUID
    file_name: str
    uploaded_by: str
    uploaded_at: datetime
    match_rate: float

    class Config:
        from_attributes = True


# ----------------------------------------------------------------------------
# Import / export
# ----------------------------------------------------------------------------

class ImportedCounts(BaseModel):
    contexts: int = 0
    terms: int = 0
    termContexts: int = 0
    relationships: int = 0


class ImportResult(BaseModel):
    success: bool = False
    imported: ImportedCounts = Field(default_factory=ImportedCounts)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ImportValidationResponse(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


# ----------------------------------------------------------------------------
# AI assistant
# ----------------------------------------------------------------------------

class ClarityRequest(BaseModel):
    definition: str = Field(..., min_length=1)
    term_id: Optional[UUID] = None


class ClarityAnalysis(BaseModel):
    score: int = Field(..., ge=0, le=100)
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class ConsistencyRequest(BaseModel):
    name: str = Field(..., min_length=1)
    definition: str = Field(..., min_length=1)
    context_id: UUID


class ConsistencyCheck(BaseModel):
    consistent: bool
    conflicts: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class SuggestionsRequest(BaseModel):
    definition: str = Field(..., min_length=1)


class SuggestionsResponse(BaseModel):
    suggestions: List[str] = Field(default_factory=list)


class SimilarTermsRequest(BaseModel):
    name: str = Field(..., min_length=1)
    definition: Optional[str] = None
    limit: int = Field(5, ge=1, le=50)


class SimilarTerm(BaseModel):
    id: UUID
    name: str
    context_name: Optional[str] = None
    similarity: float
    reason: str


class QuestionRequest(BaseModel):
    question: str = Field(..., min_length=1)
    context_id: Optional[UUID] = None


class AnswerResponse(BaseModel):
    answer: str
    model: str
    referenced_terms: List[str] = Field(default_factory=list)
