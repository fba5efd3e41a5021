"""
Unit tests for ReviewService
"""
from datetime import timedelta
from uuid import uuid4

import pytest

from ubiquitous.core.exceptions import NotFoundError, ValidationError
from ubiquitous.models.discussion import (THREAD_TITLE_MAX_LENGTH,
                                         DiscussionThread)
from ubiquitous.models.review import Review
from ubiquitous.models.term import Term, TermStatus
from ubiquitous.services.review_service import (DEFAULT_DISCUSSION_COMMENT,
                                                ReviewService,
                                                review_thread_title)
from ubiquitous.services.term_service import TermService
from ubiquitous.utils.datetime_utils import utc_today


@pytest.fixture
def service(db):
    return ReviewService(db)


def _make_due(db, term, days_ago=1):
    term.next_review_date = utc_today() - timedelta(days=days_ago)
    db.commit()


def test_schedule_review(service, make_term):
    term = make_term("Order")
    scheduled = service.schedule_review(term.id, 30)
    assert scheduled.review_cycle_days == 30
    assert scheduled.next_review_date == utc_today() + timedelta(days=30)


def test_schedule_review_rejects_bad_interval(service, make_term):
    term = make_term("Order")
    with pytest.raises(ValidationError):
        service.schedule_review(term.id, 0)


def test_cancel_review_schedule(service, make_term):
    term = make_term("Order", review_cycle_days=10)
    cancelled = service.cancel_review_schedule(term.id)
    assert cancelled.review_cycle_days is None
    assert cancelled.next_review_date is None


def test_terms_due_for_review(db, service, make_term):
    late = make_term("Order", review_cycle_days=30)
    later = make_term("Invoice", review_cycle_days=30)
    make_term("Quote", review_cycle_days=30)
    make_term("Draft term", review_cycle_days=30, status=TermStatus.DRAFT)
    _make_due(db, late, days_ago=5)
    _make_due(db, later, days_ago=1)

    due = service.get_terms_due_for_review()
    assert [entry["name"] for entry in due] == ["Order", "Invoice"]
    assert due[0]["review_count"] == 0
    assert due[0]["latest_review"] is None


def test_confirmed_review_moves_schedule(db, service, make_term):
    term = make_term("Order", review_cycle_days=14)
    _make_due(db, term)

    result = service.perform_review(term.id, "bob", "confirmed", notes="Still right")

    assert result["review"].status == "confirmed"
    assert result["thread_id"] is None
    assert result["next_review_date"] == utc_today() + timedelta(days=14)
    assert service.get_terms_due_for_review() == []
    assert db.get(type(term), term.id).status == TermStatus.ACTIVE.value


def test_review_without_schedule_keeps_no_date(service, make_term):
    term = make_term("Order")
    result = service.perform_review(term.id, "bob", "confirmed")
    assert result["next_review_date"] is None


def test_needs_update_moves_term_to_draft(service, make_term):
    term = make_term("Order")
    service.perform_review(term.id, "bob", "needs_update")

    history = TermService(service.db).get_term_history(term.id)
    assert TermService(service.db).get_term(term.id).status == TermStatus.DRAFT.value
    assert history[0].changed_fields == ["status"]
    assert history[0].changed_by == "bob"


def test_needs_discussion_opens_thread(db, service, make_term):
    term = make_term("Order")
    result = service.perform_review(term.id, "bob", "needs_discussion", notes="Overlaps with Quote")

    thread = db.get(DiscussionThread, result["thread_id"])
    assert thread.term_id == term.id
    assert thread.created_by == "bob"
    assert [c.content for c in thread.comments] == ["Overlaps with Quote"]


def test_invalid_review_status(service, make_term):
    term = make_term("Order")
    with pytest.raises(ValidationError):
        service.perform_review(term.id, "bob", "approved")


def test_review_unknown_term(service):
    with pytest.raises(NotFoundError):
        service.perform_review(uuid4(), "bob", "confirmed")


def test_review_history(service, make_term):
    term = make_term("Order")
    service.perform_review(term.id, "bob", "confirmed")
    service.perform_review(term.id, "carol", "confirmed")

    history = service.get_review_history(term.id)
    assert len(history) == 2
    assert {r.reviewed_by for r in history} == {"bob", "carol"}
    assert service.get_review(history[0].id).term_id == term.id


def test_review_notifications(db, service, make_term):
    overdue = make_term("Order", review_cycle_days=30)
    make_term("Invoice", review_cycle_days=3)
    make_term("Quote", review_cycle_days=90)
    _make_due(db, overdue)

    assert service.send_review_notifications() == {"due": 1, "upcoming": 1, "notified": 2}


def test_blank_discussion_notes_use_default_comment(db, service, make_term):
    term = make_term("Order")
    result = service.perform_review(term.id, "bob", "needs_discussion", notes="   ")

    thread = db.get(DiscussionThread, result["thread_id"])
    assert [c.content for c in thread.comments] == [DEFAULT_DISCUSSION_COMMENT]
    assert result["review"].notes is None
    assert db.query(Review).count() == 1
    assert db.query(DiscussionThread).count() == 1


def test_review_thread_title_fits_column(db, service, make_term):
    term = make_term("Q" * 255)
    result = service.perform_review(term.id, "bob", "needs_discussion")

    title = db.get(DiscussionThread, result["thread_id"]).title
    assert len(title) == THREAD_TITLE_MAX_LENGTH
    assert title.startswith("Review discussion: QQQ")
    assert title.endswith("...")
    assert review_thread_title("Order") == "Review discussion: Order"


def test_failed_review_leaves_nothing_behind(db, service, make_term, monkeypatch):
    term = make_term("Order", review_cycle_days=14)
    _make_due(db, term, days_ago=3)
    due_date = term.next_review_date

    def fail(*args, **kwargs):
        raise ValidationError("Cannot move term to draft")

    monkeypatch.setattr(TermService, "stage_update", fail)
    with pytest.raises(ValidationError):
        service.perform_review(term.id, "bob", "needs_update")

    assert db.query(Review).count() == 0
    assert db.get(Term, term.id).next_review_date == due_date
    assert db.get(Term, term.id).status == TermStatus.ACTIVE.value
