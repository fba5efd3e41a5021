"""
API routes for term search and index maintenance
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ubiquitous.core.auth import get_current_user_id, require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.models.term import TermStatus
from ubiquitous.schemas.insight import SearchResponse
from ubiquitous.services.analytics_service import AnalyticsService
from ubiquitous.services.search_service import SearchService
from ubiquitous.services.term_service import TermService

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search_terms(
    q: str = Query(..., description="Search text"),
    context_id: Optional[UUID] = None,
    status: Optional[TermStatus] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Ranked term search"""
    result = SearchService(db).search(
        q,
        context_id=context_id,
        status=status.value if status else None,
        limit=limit,
        offset=offset
    )
    AnalyticsService(db).track_user_activity(
        user_id, "search", details={"query": result["query"], "hits": result["estimated_total_hits"]}
    )
    return result


@router.get("/suggestions")
async def search_suggestions(
    q: str = "",
    limit: int = Query(5, ge=1, le=20),
    db: Session = Depends(get_db)
):
    """Term names starting with ``q``"""
    return {"query": q, "suggestions": SearchService(db).suggest(q, limit=limit)}


@router.post("/index/rebuild")
async def rebuild_index(db: Session = Depends(get_db), user_id: str = Depends(require_user_id)):
    return SearchService(db).rebuild_index()


@router.get("/index/stats")
async def get_index_stats(db: Session = Depends(get_db)):
    return SearchService(db).get_index_stats()


@router.post("/index/terms/{term_id}")
async def index_term(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Push one term to the search index"""
    term = TermService(db).get_term(term_id)
    indexed = SearchService(db).index_term(term)
    return {"term_id": term.id, "indexed": indexed}


@router.get("/health")
async def search_health(db: Session = Depends(get_db)):
    return SearchService(db).health()
