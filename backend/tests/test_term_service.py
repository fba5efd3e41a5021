"""
Unit tests for TermService
"""
from unittest.mock import Mock
from uuid import uuid4

import pytest

from ubiquitous.core.exceptions import (ConflictError, NotFoundError,
                                        ValidationError)
from ubiquitous.models.term import Term, TermStatus
from ubiquitous.services.term_service import TermService, parse_term_status
from ubiquitous.utils.datetime_utils import days_from, utc_today


@pytest.fixture
def service(db):
    return TermService(db)


def test_create_term_records_initial_history(service, context):
    term = service.create_term(
        name=" Order ",
        definition="A customer's request to buy products",
        bounded_context_id=context.id,
        created_by="alice",
        examples=["Order #42 was placed today"],
    )

    assert term.name == "Order"
    assert term.status == TermStatus.ACTIVE.value
    assert term.examples == ["Order #42 was placed today"]
    assert term.context_name == "Sales"

    history = service.get_term_history(term.id)
    assert len(history) == 1
    assert history[0].version == 1
    assert history[0].changed_fields == []
    assert history[0].change_reason == "Initial creation"
    assert history[0].previous_definition is None


def test_create_term_sets_next_review_date(service, context):
    term = service.create_term("Quote", "Price offer", context.id, "alice", review_cycle_days=30)
    assert term.next_review_date == days_from(utc_today(), 30)


def test_create_term_requires_name_and_definition(service, context):
    with pytest.raises(ValidationError):
        service.create_term("   ", "Something", context.id, "alice")
    with pytest.raises(ValidationError):
        service.create_term("Order", "  ", context.id, "alice")


def test_create_term_unknown_context(service):
    with pytest.raises(NotFoundError):
        service.create_term("Order", "Definition", uuid4(), "alice")


def test_create_term_invalid_status(service, context):
    with pytest.raises(ValidationError):
        service.create_term("Order", "Definition", context.id, "alice", status="published")


def test_duplicate_name_in_same_context(service, context, make_term):
    make_term("Order")
    with pytest.raises(ConflictError):
        make_term("Order")


def test_same_name_in_other_context_is_allowed(service, context, other_context, make_term):
    make_term("Order")
    shipped = make_term("Order", context_id=other_context.id)
    assert shipped.bounded_context_id == other_context.id


def test_duplicate_of_archived_term_points_to_restore(service, make_term):
    order = make_term("Order")
    service.delete_term(order.id, "alice")

    with pytest.raises(ConflictError) as exc_info:
        make_term("Order")
    assert "restore it instead" in exc_info.value.message


def test_list_terms_filters(service, context, other_context, make_term):
    make_term("Order")
    make_term("Quote", status=TermStatus.DRAFT)
    make_term("Parcel", definition="A box being shipped", context_id=other_context.id)

    assert [t.name for t in service.list_terms()] == ["Order", "Parcel", "Quote"]
    assert [t.name for t in service.list_terms(context_id=other_context.id)] == ["Parcel"]
    assert [t.name for t in service.list_terms(status="draft")] == ["Quote"]
    assert [t.name for t in service.list_terms(search="box")] == ["Parcel"]
    assert [t.name for t in service.list_terms(limit=1, offset=1)] == ["Parcel"]


def test_update_term_records_changed_fields(service, make_term):
    term = make_term("Order", definition="Old definition")

    updated = service.update_term(
        term.id,
        {"definition": "New definition", "usage_notes": "Always capitalised"},
        "bob",
        change_reason="Clarified",
    )

    assert updated.definition == "New definition"
    assert updated.updated_by == "bob"
    latest = service.get_term_history(term.id)[0]
    assert latest.version == 2
    assert sorted(latest.changed_fields) == ["definition", "usage_notes"]
    assert latest.previous_definition == "Old definition"
    assert latest.new_definition == "New definition"
    assert latest.change_reason == "Clarified"


def test_update_term_without_changes_writes_no_history(service, make_term):
    term = make_term("Order", definition="Same")

    service.update_term(term.id, {"definition": "Same", "unknown": "ignored"}, "bob")

    assert len(service.get_term_history(term.id)) == 1


def test_update_term_rename_conflict(service, make_term):
    make_term("Order")
    quote = make_term("Quote")

    with pytest.raises(ConflictError):
        service.update_term(quote.id, {"name": "Order"}, "bob")


def test_update_term_review_cycle_recomputes_next_review(service, make_term):
    term = make_term("Order")

    updated = service.update_term(term.id, {"review_cycle_days": 7}, "bob")
    assert updated.next_review_date == days_from(utc_today(), 7)

    cleared = service.update_term(term.id, {"review_cycle_days": None}, "bob")
    assert cleared.next_review_date is None


def test_soft_delete_and_restore(service, make_term):
    term = make_term("Order")

    service.delete_term(term.id, "bob")
    with pytest.raises(NotFoundError):
        service.get_term(term.id)
    archived = service.get_term(term.id, include_deleted=True)
    assert archived.status == TermStatus.ARCHIVED.value
    assert archived.deleted_at is not None
    assert service.get_term_history(term.id)[0].change_reason == "Archived"

    restored = service.restore_term(term.id, "carol")
    assert restored.status == TermStatus.ACTIVE.value
    assert restored.deleted_at is None
    assert service.get_term_history(term.id)[0].change_reason == "Restored"


def test_restore_active_term_fails(service, make_term):
    term = make_term("Order")
    with pytest.raises(ValidationError):
        service.restore_term(term.id, "bob")


def test_permanent_delete(db, service, make_term):
    term = make_term("Order")
    service.delete_term(term.id, "bob", permanent=True)
    assert db.query(Term).filter(Term.id == term.id).first() is None


def test_add_term_to_other_context(service, other_context, make_term):
    term = make_term("Order")

    entry = service.add_term_to_context(term.id, other_context.id, "Something to deliver", "bob")

    assert entry.context_name == "Shipping"
    _, contexts = service.get_term_with_contexts(term.id)
    assert [c.definition for c in contexts] == ["Something to deliver"]
    assert service.get_term_history(term.id)[0].changed_fields == ["contexts"]


def test_add_term_to_primary_context_fails(service, context, make_term):
    term = make_term("Order")
    with pytest.raises(ValidationError):
        service.add_term_to_context(term.id, context.id, "Again", "bob")


def test_add_term_to_context_twice_fails(service, other_context, make_term):
    term = make_term("Order")
    service.add_term_to_context(term.id, other_context.id, "Something to deliver", "bob")
    with pytest.raises(ConflictError):
        service.add_term_to_context(term.id, other_context.id, "Again", "bob")


def test_update_and_remove_term_context(service, other_context, make_term):
    term = make_term("Order")
    service.add_term_to_context(term.id, other_context.id, "Something to deliver", "bob")

    entry = service.update_term_in_context(term.id, other_context.id, "bob", definition="A delivery")
    assert entry.definition == "A delivery"

    service.remove_term_from_context(term.id, other_context.id, "bob")
    _, contexts = service.get_term_with_contexts(term.id)
    assert contexts == []
    with pytest.raises(NotFoundError):
        service.remove_term_from_context(term.id, other_context.id, "bob")


def test_increment_view_count(service, make_term):
    term = make_term("Order")
    service.increment_view_count(term.id)
    assert service.increment_view_count(term.id) == 2


def test_search_index_failure_does_not_fail_write(db, context):
    search = Mock()
    search.index_term.side_effect = RuntimeError("index down")
    service = TermService(db, search_service=search)

    term = service.create_term("Order", "Definition", context.id, "alice")

    assert term.id is not None
    search.index_term.assert_called_once()


def test_parse_term_status():
    assert parse_term_status("draft") == TermStatus.DRAFT
    assert parse_term_status(TermStatus.ARCHIVED) == TermStatus.ARCHIVED
    with pytest.raises(ValidationError):
        parse_term_status("gone")


def test_list_terms_search_is_literal(service, make_term):
    make_term("Order")
    make_term("Rate_limit", definition="Calls allowed per minute")

    assert [t.name for t in service.list_terms(search="_")] == ["Rate_limit"]
    assert service.list_terms(search="%") == []
