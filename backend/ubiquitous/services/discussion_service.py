"""
Discussion service: threads on terms or proposals and their comments
"""
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import (ForbiddenError, NotFoundError,
                                        ValidationError)
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.models.discussion import (THREAD_TITLE_MAX_LENGTH, Comment,
                                         DiscussionThread, ThreadStatus)
from ubiquitous.models.term import Term
from ubiquitous.models.term_proposal import TermProposal
from ubiquitous.utils.datetime_utils import utc_now

logger = LoggingConfig.get_logger(__name__)


def clean_thread_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Thread title is required")
    if len(title) > THREAD_TITLE_MAX_LENGTH:
        raise ValidationError(f"Thread title must be at most {THREAD_TITLE_MAX_LENGTH} characters")
    return title


class DiscussionService:
    """Service for discussion threads and comments"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def create_thread(
        self,
        title: str,
        created_by: str,
        term_id: Optional[UUID] = None,
        proposal_id: Optional[UUID] = None
    ) -> DiscussionThread:
        """Open a thread on exactly one term or one proposal"""
        if (term_id is None) == (proposal_id is None):
            raise ValidationError("A thread must reference exactly one term or one proposal")
        title = clean_thread_title(title)

        if term_id is not None:
            term = self.db.query(Term).filter(Term.id == term_id, Term.deleted_at.is_(None)).first()
            if not term:
                raise NotFoundError("Term", term_id)
        else:
            proposal = self.db.query(TermProposal).filter(TermProposal.id == proposal_id).first()
            if not proposal:
                raise NotFoundError("Proposal", proposal_id)

        thread = DiscussionThread(
            title=title,
            term_id=term_id,
            proposal_id=proposal_id,
            status=ThreadStatus.OPEN.value,
            created_by=created_by,
        )
        try:
            self.db.add(thread)
            self.db.commit()
            self.db.refresh(thread)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Opened thread '{title}'", extra={"thread_id": str(thread.id), "user_id": created_by})
        return thread

    def get_thread(self, thread_id: UUID) -> DiscussionThread:
        thread = self.db.query(DiscussionThread).filter(DiscussionThread.id == thread_id).first()
        if not thread:
            raise NotFoundError("Thread", thread_id)
        return thread

    def get_thread_with_comments(self, thread_id: UUID) -> Tuple[DiscussionThread, List[Comment]]:
        thread = self.get_thread(thread_id)
        return thread, self.list_comments(thread_id)

    def list_threads(
        self,
        status: Optional[str] = None,
        term_id: Optional[UUID] = None,
        proposal_id: Optional[UUID] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[DiscussionThread]:
        query = self.db.query(DiscussionThread)
        if status:
            try:
                status = ThreadStatus(getattr(status, "value", status)).value
            except ValueError:
                raise ValidationError(f'Invalid thread status "{status}". Must be one of: open, closed')
            query = query.filter(DiscussionThread.status == status)
        if term_id:
            query = query.filter(DiscussionThread.term_id == term_id)
        if proposal_id:
            query = query.filter(DiscussionThread.proposal_id == proposal_id)
        return query.order_by(DiscussionThread.updated_at.desc()).offset(offset).limit(limit).all()

    def update_thread(
        self,
        thread_id: UUID,
        title: Optional[str] = None,
        status: Optional[str] = None
    ) -> DiscussionThread:
        thread = self.get_thread(thread_id)
        if title is not None:
            thread.title = clean_thread_title(title)
        if status is not None:
            try:
                thread.status = ThreadStatus(getattr(status, "value", status)).value
            except ValueError:
                raise ValidationError(f'Invalid thread status "{status}". Must be one of: open, closed')

        try:
            self.db.commit()
            self.db.refresh(thread)
        except Exception:
            self.db.rollback()
            raise
        return thread

    def close_thread(self, thread_id: UUID) -> DiscussionThread:
        return self.update_thread(thread_id, status=ThreadStatus.CLOSED.value)

    def reopen_thread(self, thread_id: UUID) -> DiscussionThread:
        return self.update_thread(thread_id, status=ThreadStatus.OPEN.value)

    def delete_thread(self, thread_id: UUID) -> None:
        thread = self.get_thread(thread_id)
        try:
            self.db.delete(thread)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def add_comment(self, thread_id: UUID, content: str, posted_by: str) -> Comment:
        thread = self.get_thread(thread_id)
        if not thread.is_open:
            raise ValidationError("Cannot comment on a closed thread")
        if not content or not content.strip():
            raise ValidationError("Comment content cannot be empty")

        comment = Comment(thread_id=thread.id, content=content.strip(), posted_by=posted_by)
        # threads are listed by last activity
        thread.updated_at = utc_now()
        try:
            self.db.add(comment)
            self.db.commit()
            self.db.refresh(comment)
        except Exception:
            self.db.rollback()
            raise
        return comment

    def get_comment(self, comment_id: UUID) -> Comment:
        comment = self.db.query(Comment).filter(Comment.id == comment_id).first()
        if not comment:
            raise NotFoundError("Comment", comment_id)
        return comment

    def list_comments(self, thread_id: UUID) -> List[Comment]:
        return self.db.query(Comment).filter(
            Comment.thread_id == thread_id
        ).order_by(Comment.posted_at).all()

    def update_comment(self, comment_id: UUID, content: str, user_id: str) -> Comment:
        comment = self.get_comment(comment_id)
        if comment.posted_by != user_id:
            raise ForbiddenError("Only the author can edit this comment")
        if not content or not content.strip():
            raise ValidationError("Comment content cannot be empty")

        comment.content = content.strip()
        comment.updated_at = utc_now()
        try:
            self.db.commit()
            self.db.refresh(comment)
        except Exception:
            self.db.rollback()
            raise
        return comment

    def delete_comment(self, comment_id: UUID, user_id: str) -> None:
        comment = self.get_comment(comment_id)
        if comment.posted_by != user_id:
            raise ForbiddenError("Only the author can delete this comment")
        try:
            self.db.delete(comment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
