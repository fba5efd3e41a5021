"""
Web pages for browsing and editing terms
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ubiquitous.core.auth import get_current_user_id
from ubiquitous.core.database import get_db
from ubiquitous.core.exceptions import UbiquitousError, ValidationError
from ubiquitous.core.templates import templates
from ubiquitous.models.review import ReviewStatus
from ubiquitous.models.term import TermStatus
from ubiquitous.services.analytics_service import AnalyticsService
from ubiquitous.services.context_service import ContextService
from ubiquitous.services.discussion_service import DiscussionService
from ubiquitous.services.relationship_service import RelationshipService
from ubiquitous.services.review_service import ReviewService
from ubiquitous.services.term_service import TermService

router = APIRouter(tags=["terms_pages"])


def _lines(text: Optional[str]) -> List[str]:
    """One example per non-empty line"""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def _optional_int(value: Optional[str], field: str) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        number = int(value)
    except ValueError:
        raise ValidationError(f"{field} must be a whole number")
    if number < 1:
        raise ValidationError(f"{field} must be at least 1")
    return number


def _parse_uuid(value: Optional[str], field: str) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        raise ValidationError(f"Invalid {field}")


def _render_form(request: Request, db: Session, term, values: dict, error: Optional[str] = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "terms/form.html",
        {
            "term": term,
            "values": values,
            "contexts": ContextService(db).list_contexts(),
            "statuses": [s.value for s in TermStatus],
            "error": error,
        },
        status_code=status_code
    )


@router.get("/terms", response_class=HTMLResponse)
async def terms_list(
    request: Request,
    context_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Term catalog with context, status and text filters"""
    context_uuid = _parse_uuid(context_id, "context id")
    terms = TermService(db).list_terms(
        context_id=context_uuid,
        status=status or None,
        search=q or None,
        limit=500
    )
    return templates.TemplateResponse(
        request,
        "terms/list.html",
        {
            "terms": terms,
            "contexts": ContextService(db).list_contexts(),
            "statuses": [s.value for s in TermStatus],
            "filters": {"context_id": context_id or "", "status": status or "", "q": q or ""},
        }
    )


@router.get("/terms/new", response_class=HTMLResponse)
async def term_new(request: Request, context_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    values = {"bounded_context_id": context_id or "", "status": TermStatus.ACTIVE.value}
    return _render_form(request, db, None, values)


@router.post("/terms/new", response_class=HTMLResponse)
async def term_create(
    request: Request,
    name: str = Form(""),
    definition: str = Form(""),
    bounded_context_id: str = Form(""),
    status: str = Form(TermStatus.ACTIVE.value),
    examples: str = Form(""),
    usage_notes: str = Form(""),
    essential_for_onboarding: bool = Form(False),
    review_cycle_days: str = Form(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    values = {
        "name": name,
        "definition": definition,
        "bounded_context_id": bounded_context_id,
        "status": status,
        "examples": examples,
        "usage_notes": usage_notes,
        "essential_for_onboarding": essential_for_onboarding,
        "review_cycle_days": review_cycle_days,
    }
    try:
        context_uuid = _parse_uuid(bounded_context_id, "bounded context")
        if context_uuid is None:
            raise ValidationError("Bounded context is required")
        term = TermService(db).create_term(
            name=name,
            definition=definition,
            bounded_context_id=context_uuid,
            created_by=user_id,
            status=status,
            examples=_lines(examples),
            usage_notes=usage_notes or None,
            essential_for_onboarding=essential_for_onboarding,
            review_cycle_days=_optional_int(review_cycle_days, "Review cycle"),
            source="web",
        )
    except UbiquitousError as e:
        return _render_form(request, db, None, values, error=e.message, status_code=e.status_code)
    return RedirectResponse(url=f"/terms/{term.id}", status_code=303)


@router.get("/terms/{term_id}", response_class=HTMLResponse)
async def term_detail(
    request: Request,
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Term page: definition, per-context definitions, relationships, reviews, history and threads"""
    service = TermService(db)
    service.increment_view_count(term_id)
    AnalyticsService(db).track_user_activity(user_id, "view_term", "term", str(term_id))
    term, term_contexts = service.get_term_with_contexts(term_id)

    assigned = {tc.context_id for tc in term_contexts} | {term.bounded_context_id}
    return templates.TemplateResponse(
        request,
        "terms/detail.html",
        {
            "term": term,
            "term_contexts": term_contexts,
            "other_contexts": [c for c in ContextService(db).list_contexts() if c.id not in assigned],
            "relationships": RelationshipService(db).get_relationships_for_term(term_id),
            "history": service.get_term_history(term_id),
            "reviews": ReviewService(db).get_review_history(term_id),
            "review_statuses": [s.value for s in ReviewStatus],
            "threads": DiscussionService(db).list_threads(term_id=term_id),
        }
    )


@router.get("/terms/{term_id}/edit", response_class=HTMLResponse)
async def term_edit(request: Request, term_id: UUID, db: Session = Depends(get_db)):
    term = TermService(db).get_term(term_id)
    values = {
        "name": term.name,
        "definition": term.definition,
        "bounded_context_id": str(term.bounded_context_id),
        "status": term.status,
        "examples": "\n".join(term.examples or []),
        "usage_notes": term.usage_notes or "",
        "essential_for_onboarding": term.essential_for_onboarding,
        "review_cycle_days": term.review_cycle_days or "",
    }
    return _render_form(request, db, term, values)


@router.post("/terms/{term_id}/edit", response_class=HTMLResponse)
async def term_update(
    request: Request,
    term_id: UUID,
    name: str = Form(""),
    definition: str = Form(""),
    status: str = Form(TermStatus.ACTIVE.value),
    examples: str = Form(""),
    usage_notes: str = Form(""),
    essential_for_onboarding: bool = Form(False),
    review_cycle_days: str = Form(""),
    change_reason: str = Form(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    service = TermService(db)
    term = service.get_term(term_id)
    values = {
        "name": name,
        "definition": definition,
        "bounded_context_id": str(term.bounded_context_id),
        "status": status,
        "examples": examples,
        "usage_notes": usage_notes,
        "essential_for_onboarding": essential_for_onboarding,
        "review_cycle_days": review_cycle_days,
        "change_reason": change_reason,
    }
    try:
        service.update_term(
            term_id,
            {
                "name": name,
                "definition": definition,
                "status": status,
                "examples": _lines(examples),
                "usage_notes": usage_notes or None,
                "essential_for_onboarding": essential_for_onboarding,
                "review_cycle_days": _optional_int(review_cycle_days, "Review cycle"),
            },
            user_id,
            change_reason=change_reason or None
        )
    except UbiquitousError as e:
        return _render_form(request, db, term, values, error=e.message, status_code=e.status_code)
    return RedirectResponse(url=f"/terms/{term_id}", status_code=303)


@router.post("/terms/{term_id}/delete")
async def term_delete(
    term_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    TermService(db).delete_term(term_id, user_id)
    return RedirectResponse(url="/terms", status_code=303)


@router.post("/terms/{term_id}/contexts")
async def term_add_context(
    term_id: UUID,
    context_id: UUID = Form(...),
    definition: str = Form(...),
    examples: str = Form(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    TermService(db).add_term_to_context(term_id, context_id, definition, user_id, examples=_lines(examples))
    return RedirectResponse(url=f"/terms/{term_id}", status_code=303)


@router.post("/terms/{term_id}/review")
async def term_review(
    term_id: UUID,
    status: str = Form(...),
    notes: str = Form(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    result = ReviewService(db).perform_review(term_id, user_id, status, notes=notes or None)
    if result["thread_id"]:
        return RedirectResponse(url=f"/discussions/{result['thread_id']}", status_code=303)
    return RedirectResponse(url=f"/terms/{term_id}", status_code=303)


@router.post("/terms/{term_id}/threads")
async def term_open_thread(
    term_id: UUID,
    title: str = Form(...),
    content: str = Form(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    service = DiscussionService(db)
    thread = service.create_thread(title, user_id, term_id=term_id)
    if content.strip():
        service.add_comment(thread.id, content, user_id)
    return RedirectResponse(url=f"/discussions/{thread.id}", status_code=303)
