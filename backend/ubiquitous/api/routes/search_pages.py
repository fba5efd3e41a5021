"""
Web search page
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ubiquitous.core.auth import get_current_user_id
from ubiquitous.core.database import get_db
from ubiquitous.core.templates import templates
from ubiquitous.services.analytics_service import AnalyticsService
from ubiquitous.services.search_service import SearchService

router = APIRouter(tags=["search_pages"])


@router.get("/search", response_class=HTMLResponse)
async def search_page(
    request: Request,
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    results = None
    query = (q or "").strip()
    if query:
        results = SearchService(db).search(query, limit=50)
        AnalyticsService(db).track_user_activity(
            user_id, "search", details={"query": query, "hits": results["estimated_total_hits"]}
        )
    return templates.TemplateResponse(
        request,
        "search.html",
        {"q": query, "results": results}
    )
