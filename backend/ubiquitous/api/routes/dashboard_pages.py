"""
Web pages: dashboard and onboarding
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ubiquitous.core.auth import get_current_user_id
from ubiquitous.core.database import get_db
from ubiquitous.core.templates import templates
from ubiquitous.services.analytics_service import AnalyticsService
from ubiquitous.services.onboarding_service import OnboardingService
from ubiquitous.services.proposal_service import ProposalService
from ubiquitous.services.review_service import ReviewService

router = APIRouter(tags=["dashboard_pages"])

USER_COOKIE = "user_id"
USER_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request, db: Session = Depends(get_db)):
    """Dashboard with catalog metrics, due reviews and pending proposals"""
    analytics = AnalyticsService(db)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "metrics": analytics.get_metrics(),
            "system": analytics.get_system_metrics(),
            "due_reviews": ReviewService(db).get_terms_due_for_review(),
            "pending_proposals": ProposalService(db).list_proposals(status="pending", limit=10),
        }
    )


@router.get("/onboarding", response_class=HTMLResponse)
async def onboarding(
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Learning progress and path for the acting user"""
    service = OnboardingService(db)
    path = service.get_learning_path(user_id)
    return templates.TemplateResponse(
        request,
        "onboarding.html",
        {
            "user_id": user_id,
            "progress": service.get_user_progress(user_id),
            "path": path,
            "names": {entry["term"].id: entry["term"].name for entry in path},
            "next_terms": service.get_next_terms_to_learn(user_id),
        }
    )


@router.post("/onboarding/learned/{term_id}")
async def onboarding_mark_learned(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    OnboardingService(db).mark_as_learned(user_id, term_id)
    return RedirectResponse(url="/onboarding", status_code=303)


@router.post("/user")
async def set_acting_user(request: Request, user_id: str = Form("")):
    """Remember who is using the web pages; an empty name falls back to the default user"""
    response = RedirectResponse(url=request.headers.get("referer") or "/", status_code=303)
    user_id = user_id.strip()
    if user_id:
        response.set_cookie(USER_COOKIE, user_id, max_age=USER_COOKIE_MAX_AGE, samesite="lax")
    else:
        response.delete_cookie(USER_COOKIE)
    return response
