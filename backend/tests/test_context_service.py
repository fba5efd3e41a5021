"""
Unit tests for ContextService
"""
from uuid import uuid4

import pytest

from ubiquitous.core.exceptions import ConflictError, NotFoundError
from ubiquitous.models.term import Term
from ubiquitous.services.context_service import ContextService


@pytest.fixture
def service(db):
    return ContextService(db)


def test_create_context(service):
    context = service.create_context("  Billing  ", "Invoices", created_by="bob")

    assert context.id is not None
    assert context.name == "Billing"
    assert context.description == "Invoices"
    assert context.created_by == "bob"


def test_create_context_duplicate_name(service, context):
    with pytest.raises(ConflictError):
        service.create_context("Sales")


def test_list_contexts_sorted_by_name(service, context, other_context):
    service.create_context("Accounting")

    names = [c.name for c in service.list_contexts()]
    assert names == ["Accounting", "Sales", "Shipping"]


def test_get_context_not_found(service):
    with pytest.raises(NotFoundError):
        service.get_context(uuid4())


def test_update_context(service, context):
    updated = service.update_context(context.id, name="Sales & Pricing", description="Quotes")

    assert updated.name == "Sales & Pricing"
    assert updated.description == "Quotes"


def test_update_context_name_taken(service, context, other_context):
    with pytest.raises(ConflictError):
        service.update_context(context.id, name="Shipping")


def test_update_context_same_name_is_allowed(service, context):
    updated = service.update_context(context.id, name="Sales", description="Changed")
    assert updated.description == "Changed"


def test_delete_context_removes_its_terms(db, service, context, make_term):
    make_term("Order")
    make_term("Quote")

    service.delete_context(context.id)

    assert db.query(Term).count() == 0
    with pytest.raises(NotFoundError):
        service.get_context(context.id)


def test_get_context_with_terms_hides_archived(db, service, context, make_term):
    from ubiquitous.services.term_service import TermService

    order = make_term("Order")
    quote = make_term("Quote")
    TermService(db).delete_term(quote.id, "alice")

    _, terms = service.get_context_with_terms(context.id)
    assert [t.id for t in terms] == [order.id]

    _, all_terms = service.get_context_with_terms(context.id, include_deleted=True)
    assert {t.id for t in all_terms} == {order.id, quote.id}
