"""
Web pages for bounded contexts
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ubiquitous.core.auth import get_current_user_id
from ubiquitous.core.database import get_db
from ubiquitous.core.exceptions import UbiquitousError, ValidationError
from ubiquitous.core.templates import templates
from ubiquitous.services.context_service import ContextService
from ubiquitous.services.proposal_service import ProposalService

router = APIRouter(tags=["contexts_pages"])


def _render_form(request: Request, context, values: dict, error: Optional[str] = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "contexts/form.html",
        {"context": context, "values": values, "error": error},
        status_code=status_code
    )


@router.get("/contexts", response_class=HTMLResponse)
async def contexts_list(request: Request, db: Session = Depends(get_db)):
    return templates.TemplateResponse(
        request,
        "contexts/list.html",
        {"contexts": ContextService(db).list_contexts()}
    )


@router.get("/contexts/new", response_class=HTMLResponse)
async def context_new(request: Request):
    return _render_form(request, None, {})


@router.post("/contexts/new", response_class=HTMLResponse)
async def context_create(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    values = {"name": name, "description": description}
    try:
        if not name.strip():
            raise ValidationError("Context name is required")
        context = ContextService(db).create_context(name, description or None, created_by=user_id)
    except UbiquitousError as e:
        return _render_form(request, None, values, error=e.message, status_code=e.status_code)
    return RedirectResponse(url=f"/contexts/{context.id}", status_code=303)


@router.get("/contexts/{context_id}", response_class=HTMLResponse)
async def context_detail(request: Request, context_id: UUID, db: Session = Depends(get_db)):
    """Context page with its terms and open proposals"""
    context, terms = ContextService(db).get_context_with_terms(context_id)
    proposals = ProposalService(db).list_proposals(status="pending", context_id=context_id)
    return templates.TemplateResponse(
        request,
        "contexts/detail.html",
        {"context": context, "terms": terms, "proposals": proposals}
    )


@router.get("/contexts/{context_id}/edit", response_class=HTMLResponse)
async def context_edit(request: Request, context_id: UUID, db: Session = Depends(get_db)):
    context = ContextService(db).get_context(context_id)
    values = {"name": context.name, "description": context.description or ""}
    return _render_form(request, context, values)


@router.post("/contexts/{context_id}/edit", response_class=HTMLResponse)
async def context_update(
    request: Request,
    context_id: UUID,
    name: str = Form(""),
    description: str = Form(""),
    db: Session = Depends(get_db)
):
    service = ContextService(db)
    context = service.get_context(context_id)
    values = {"name": name, "description": description}
    try:
        if not name.strip():
            raise ValidationError("Context name is required")
        service.update_context(context_id, name=name, description=description)
    except UbiquitousError as e:
        return _render_form(request, context, values, error=e.message, status_code=e.status_code)
    return RedirectResponse(url=f"/contexts/{context_id}", status_code=303)


@router.post("/contexts/{context_id}/delete")
async def context_delete(context_id: UUID, db: Session = Depends(get_db)):
    ContextService(db).delete_context(context_id)
    return RedirectResponse(url="/contexts", status_code=303)
