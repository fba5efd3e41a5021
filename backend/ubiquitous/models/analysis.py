"""
Stored results of code analysis and LLM assistant calls
"""
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import (JSON, Column, DateTime, Float, ForeignKey, Integer,
                        String, Text, Uuid)

from ubiquitous.core.database import Base


class CodeAnalysis(Base):
    """Terminology alignment report for an uploaded source file"""
    __tablename__ = "code_analysis"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    file_name = Column(String(255), nullable=False)
    uploaded_by = Column(String(255), nullable=False, index=True)
    uploaded_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    extracted_elements = Column(JSON, nullable=False)  # list of element dicts
    match_rate = Column(Float, nullable=False, default=0.0)

    def __repr__(self):
        return f"<CodeAnalysis(id={self.id}, file_name={self.file_name}, match_rate={self.match_rate})>"


class AIAnalysisType(str, Enum):
    """AI analysis type enumeration"""
    CLARITY = "clarity"
    CONSISTENCY = "consistency"
    SUGGESTION = "suggestion"
    QA = "qa"


class AIAnalysis(Base):
    """One LLM assistant exchange"""
    __tablename__ = "ai_analysis"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    term_id = Column(Uuid(as_uuid=True), ForeignKey("terms.id", ondelete="CASCADE"), nullable=True, index=True)
    proposal_id = Column(
        Uuid(as_uuid=True), ForeignKey("term_proposals.id", ondelete="CASCADE"), nullable=True, index=True
    )
    analysis_type = Column(String(50), nullable=False, index=True)
    input_text = Column(Text, nullable=False)
    output_text = Column(Text, nullable=False)
    clarity_score = Column(Integer, nullable=True)
    suggestions = Column(JSON, nullable=True)
    similar_terms = Column(JSON, nullable=True)
    model = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    def __repr__(self):
        return f"<AIAnalysis(id={self.id}, type={self.analysis_type})>"
