"""
Review service: periodic review scheduling and outcomes
"""
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from ubiquitous.core.config import get_settings
from ubiquitous.core.exceptions import NotFoundError, ValidationError
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.core.metrics import reviews_performed_total
from ubiquitous.models.discussion import (THREAD_TITLE_MAX_LENGTH, Comment,
                                         DiscussionThread, ThreadStatus)
from ubiquitous.models.review import Review, ReviewStatus
from ubiquitous.models.term import Term, TermStatus
from ubiquitous.services.term_service import TermService
from ubiquitous.utils.datetime_utils import days_from, utc_today

logger = LoggingConfig.get_logger(__name__)

DEFAULT_DISCUSSION_COMMENT = "This term was flagged for discussion during its review."
REVIEW_THREAD_PREFIX = "Review discussion: "


def review_thread_title(term_name: str) -> str:
    """Thread title for a review discussion, cut to fit the title column"""
    title = f"{REVIEW_THREAD_PREFIX}{term_name}"
    if len(title) > THREAD_TITLE_MAX_LENGTH:
        title = title[:THREAD_TITLE_MAX_LENGTH - 3].rstrip() + "..."
    return title


class ReviewService:
    """Service for scheduling and recording term reviews"""

    def __init__(self, db: Session):
        self.db = db

    def _get_term(self, term_id: UUID) -> Term:
        term = self.db.query(Term).filter(Term.id == term_id, Term.deleted_at.is_(None)).first()
        if not term:
            raise NotFoundError("Term", term_id)
        return term

    def schedule_review(self, term_id: UUID, interval_days: int) -> Term:
        """Review a term every ``interval_days``, starting that many days from today"""
        if interval_days is None or interval_days < 1:
            raise ValidationError("Review interval must be at least 1 day")
        term = self._get_term(term_id)
        term.review_cycle_days = interval_days
        term.next_review_date = days_from(utc_today(), interval_days)
        try:
            self.db.commit()
            self.db.refresh(term)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Scheduled review of '{term.name}' every {interval_days} days")
        return term

    def cancel_review_schedule(self, term_id: UUID) -> Term:
        term = self._get_term(term_id)
        term.review_cycle_days = None
        term.next_review_date = None
        try:
            self.db.commit()
            self.db.refresh(term)
        except Exception:
            self.db.rollback()
            raise
        return term

    def _review_counts(self, term_ids: List[UUID]) -> Dict[UUID, int]:
        if not term_ids:
            return {}
        rows = self.db.query(Review.term_id, func.count(Review.id)).filter(
            Review.term_id.in_(term_ids)
        ).group_by(Review.term_id).all()
        return {term_id: count for term_id, count in rows}

    def get_terms_due_for_review(self, as_of: Optional[date] = None) -> List[Dict[str, Any]]:
        """Active terms whose review date is on or before ``as_of``, oldest first"""
        as_of = as_of or utc_today()
        terms = self.db.query(Term).filter(
            Term.deleted_at.is_(None),
            Term.status == TermStatus.ACTIVE.value,
            Term.next_review_date.isnot(None),
            Term.next_review_date <= as_of
        ).order_by(Term.next_review_date, Term.name).all()

        counts = self._review_counts([term.id for term in terms])
        return [
            {
                "term_id": term.id,
                "name": term.name,
                "bounded_context_id": term.bounded_context_id,
                "next_review_date": term.next_review_date,
                "review_cycle_days": term.review_cycle_days,
                "review_count": counts.get(term.id, 0),
                "latest_review": term.reviews[0] if term.reviews else None,
            }
            for term in terms
        ]

    def perform_review(
        self,
        term_id: UUID,
        reviewed_by: str,
        status: Any,
        notes: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Record a review outcome

        confirmed keeps the term as is, needs_update moves it back to draft and
        needs_discussion opens a thread on it. Scheduled terms move their next
        review date forward by one cycle.
        """
        try:
            outcome = ReviewStatus(getattr(status, "value", status))
        except ValueError:
            allowed = ", ".join(s.value for s in ReviewStatus)
            raise ValidationError(f'Invalid review status "{status}". Must be one of: {allowed}')

        term = self._get_term(term_id)
        notes = (notes or "").strip() or None
        terms = TermService(self.db)
        review = Review(term_id=term.id, reviewed_by=reviewed_by, status=outcome.value, notes=notes)
        thread = None
        status_changed = False

        # The review and its consequences commit or roll back together
        try:
            self.db.add(review)
            if term.review_cycle_days:
                term.next_review_date = days_from(utc_today(), term.review_cycle_days)
            if outcome == ReviewStatus.NEEDS_UPDATE:
                status_changed = bool(terms.stage_update(
                    term,
                    {"status": TermStatus.DRAFT.value},
                    reviewed_by,
                    change_reason="Review found the definition needs an update"
                ))
            elif outcome == ReviewStatus.NEEDS_DISCUSSION:
                thread = DiscussionThread(
                    title=review_thread_title(term.name),
                    term_id=term.id,
                    status=ThreadStatus.OPEN.value,
                    created_by=reviewed_by,
                )
                thread.comments.append(
                    Comment(content=notes or DEFAULT_DISCUSSION_COMMENT, posted_by=reviewed_by)
                )
                self.db.add(thread)
            self.db.commit()
            self.db.refresh(review)
        except Exception:
            self.db.rollback()
            raise

        if status_changed:
            terms.sync_index(term)
        thread_id = thread.id if thread is not None else None

        reviews_performed_total.labels(status=outcome.value).inc()
        logger.info(
            f"Term '{term.name}' reviewed by {reviewed_by}: {outcome.value}",
            extra={"term_id": str(term.id), "review_id": str(review.id)}
        )
        return {
            "review": review,
            "next_review_date": term.next_review_date,
            "thread_id": thread_id,
        }

    def get_review_history(self, term_id: UUID) -> List[Review]:
        self._get_term(term_id)
        return self.db.query(Review).filter(
            Review.term_id == term_id
        ).order_by(Review.reviewed_at.desc()).all()

    def get_review(self, review_id: UUID) -> Review:
        review = self.db.query(Review).filter(Review.id == review_id).first()
        if not review:
            raise NotFoundError("Review", review_id)
        return review

    def send_review_notifications(self, as_of: Optional[date] = None) -> Dict[str, int]:
        """Log a reminder for each overdue term and each term due within the reminder window"""
        as_of = as_of or utc_today()
        window_end = days_from(as_of, get_settings().review_reminder_days)

        scheduled = self.db.query(Term).filter(
            Term.deleted_at.is_(None),
            Term.status == TermStatus.ACTIVE.value,
            Term.next_review_date.isnot(None),
            Term.next_review_date <= window_end
        ).order_by(Term.next_review_date).all()

        due = upcoming = 0
        for term in scheduled:
            if term.next_review_date <= as_of:
                due += 1
                logger.info(
                    f"Review reminder: '{term.name}' was due on {term.next_review_date.isoformat()}",
                    extra={"term_id": str(term.id)}
                )
            else:
                upcoming += 1
                logger.info(
                    f"Review reminder: '{term.name}' is due on {term.next_review_date.isoformat()}",
                    extra={"term_id": str(term.id)}
                )
        return {"due": due, "upcoming": upcoming, "notified": due + upcoming}
