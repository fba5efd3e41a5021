"""
API routes for discussion threads and comments
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ubiquitous.core.auth import require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.models.discussion import ThreadStatus
from ubiquitous.schemas.collaboration import (CommentCreate, CommentResponse,
                                              CommentUpdate, ThreadCreate,
                                              ThreadResponse, ThreadUpdate,
                                              ThreadWithComments)
from ubiquitous.services.discussion_service import DiscussionService

router = APIRouter(prefix="/api/discussions", tags=["discussions"])


@router.get("/threads", response_model=List[ThreadResponse])
async def list_threads(
    status: Optional[ThreadStatus] = None,
    term_id: Optional[UUID] = None,
    proposal_id: Optional[UUID] = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db)
):
    """List threads, most recently active first"""
    return DiscussionService(db).list_threads(
        status=status, term_id=term_id, proposal_id=proposal_id, limit=limit, offset=offset
    )


@router.post("/threads", response_model=ThreadResponse, status_code=status.HTTP_201_CREATED)
async def create_thread(
    request: ThreadCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Open a thread on a term or a proposal"""
    return DiscussionService(db).create_thread(
        title=request.title,
        created_by=user_id,
        term_id=request.term_id,
        proposal_id=request.proposal_id
    )


@router.get("/threads/{thread_id}", response_model=ThreadWithComments)
async def get_thread(thread_id: UUID, db: Session = Depends(get_db)):
    thread, comments = DiscussionService(db).get_thread_with_comments(thread_id)
    return ThreadWithComments(
        **ThreadResponse.model_validate(thread).model_dump(),
        comments=[CommentResponse.model_validate(c) for c in comments]
    )


@router.put("/threads/{thread_id}", response_model=ThreadResponse)
async def update_thread(
    thread_id: UUID,
    request: ThreadUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return DiscussionService(db).update_thread(thread_id, title=request.title, status=request.status)


@router.delete("/threads/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thread(
    thread_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    DiscussionService(db).delete_thread(thread_id)


@router.post("/threads/{thread_id}/close", response_model=ThreadResponse)
async def close_thread(
    thread_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return DiscussionService(db).close_thread(thread_id)


@router.post("/threads/{thread_id}/reopen", response_model=ThreadResponse)
async def reopen_thread(
    thread_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    return DiscussionService(db).reopen_thread(thread_id)


@router.get("/threads/{thread_id}/comments", response_model=List[CommentResponse])
async def list_comments(thread_id: UUID, db: Session = Depends(get_db)):
    service = DiscussionService(db)
    service.get_thread(thread_id)
    return service.list_comments(thread_id)


@router.post(
    "/threads/{thread_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_comment(
    thread_id: UUID,
    request: CommentCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Post a comment; closed threads reject new comments"""
    return DiscussionService(db).add_comment(thread_id, request.content, posted_by=user_id)


@router.get("/comments/{comment_id}", response_model=CommentResponse)
async def get_comment(comment_id: UUID, db: Session = Depends(get_db)):
    return DiscussionService(db).get_comment(comment_id)


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: UUID,
    request: CommentUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Edit a comment; only its author may"""
    return DiscussionService(db).update_comment(comment_id, request.content, user_id)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    DiscussionService(db).delete_comment(comment_id, user_id)
