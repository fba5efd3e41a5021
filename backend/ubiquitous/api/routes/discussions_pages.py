"""
Web pages for discussion threads
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ubiquitous.core.auth import get_current_user_id
from ubiquitous.core.database import get_db
from ubiquitous.core.exceptions import UbiquitousError
from ubiquitous.core.templates import templates
from ubiquitous.services.discussion_service import DiscussionService

router = APIRouter(tags=["discussions_pages"])


def _render_thread(request: Request, service: DiscussionService, thread_id: UUID,
                   error: Optional[str] = None, status_code: int = 200):
    thread, comments = service.get_thread_with_comments(thread_id)
    return templates.TemplateResponse(
        request,
        "discussions/detail.html",
        {"thread": thread, "comments": comments, "error": error},
        status_code=status_code
    )


@router.get("/discussions", response_class=HTMLResponse)
async def discussions_list(
    request: Request,
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    threads = DiscussionService(db).list_threads(status=status or None)
    return templates.TemplateResponse(
        request,
        "discussions/list.html",
        {"threads": threads, "status": status or ""}
    )


@router.get("/discussions/{thread_id}", response_class=HTMLResponse)
async def discussion_detail(request: Request, thread_id: UUID, db: Session = Depends(get_db)):
    return _render_thread(request, DiscussionService(db), thread_id)


@router.post("/discussions/{thread_id}/comments", response_class=HTMLResponse)
async def discussion_comment(
    request: Request,
    thread_id: UUID,
    content: str = Form(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    service = DiscussionService(db)
    try:
        service.add_comment(thread_id, content, user_id)
    except UbiquitousError as e:
        return _render_thread(request, service, thread_id, error=e.message, status_code=e.status_code)
    return RedirectResponse(url=f"/discussions/{thread_id}", status_code=303)


@router.post("/discussions/{thread_id}/close")
async def discussion_close(thread_id: UUID, db: Session = Depends(get_db)):
    DiscussionService(db).close_thread(thread_id)
    return RedirectResponse(url=f"/discussions/{thread_id}", status_code=303)


@router.post("/discussions/{thread_id}/reopen")
async def discussion_reopen(thread_id: UUID, db: Session = Depends(get_db)):
    DiscussionService(db).reopen_thread(thread_id)
    return RedirectResponse(url=f"/discussions/{thread_id}", status_code=303)
