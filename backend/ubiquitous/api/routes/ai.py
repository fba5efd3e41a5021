"""
API routes for the AI assistant
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ubiquitous.core.database import get_db
from ubiquitous.schemas.insight import (AnswerResponse, ClarityAnalysis,
                                        ClarityRequest, ConsistencyCheck,
                                        ConsistencyRequest, QuestionRequest,
                                        SimilarTerm, SimilarTermsRequest,
                                        SuggestionsRequest,
                                        SuggestionsResponse)
from ubiquitous.services.ai_service import AIService

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/clarity", response_model=ClarityAnalysis)
async def analyze_clarity(request: ClarityRequest, db: Session = Depends(get_db)):
    """Score a definition's clarity; updates the term's quality score when term_id is given"""
    return await AIService(db).analyze_clarity(request.definition, term_id=request.term_id)


@router.post("/consistency", response_model=ConsistencyCheck)
async def check_consistency(request: ConsistencyRequest, db: Session = Depends(get_db)):
    return await AIService(db).check_consistency(request.name, request.definition, request.context_id)


@router.post("/suggestions", response_model=SuggestionsResponse)
async def suggest_improvements(request: SuggestionsRequest, db: Session = Depends(get_db)):
    suggestions = await AIService(db).suggest_improvements(request.definition)
    return SuggestionsResponse(suggestions=suggestions)


@router.post("/similar-terms", response_model=List[SimilarTerm])
async def find_similar_terms(request: SimilarTermsRequest, db: Session = Depends(get_db)):
    """Existing terms resembling a candidate; works without an LLM"""
    return AIService(db).find_similar_terms(request.name, request.definition, limit=request.limit)


@router.post("/ask", response_model=AnswerResponse)
async def ask_question(request: QuestionRequest, db: Session = Depends(get_db)):
    """Answer a question from the glossary"""
    return await AIService(db).answer_question(request.question, context_id=request.context_id)
