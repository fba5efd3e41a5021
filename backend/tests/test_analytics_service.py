"""
Unit tests for AnalyticsService
"""
import csv
import io

import pytest

from ubiquitous.core.exceptions import ValidationError
from ubiquitous.services.analytics_service import AnalyticsService
from ubiquitous.services.discussion_service import DiscussionService
from ubiquitous.services.proposal_service import ProposalService
from ubiquitous.services.relationship_service import RelationshipService
from ubiquitous.services.review_service import ReviewService
from ubiquitous.services.term_service import TermService


@pytest.fixture
def service(db):
    return AnalyticsService(db)


@pytest.fixture
def populated(db, context, make_term):
    order = make_term("Order", essential_for_onboarding=True, examples=["Order #42"])
    product = make_term("Product")
    customer = make_term("Customer")
    gone = make_term("Legacy")

    terms = TermService(db)
    terms.delete_term(gone.id, "alice")
    for _ in range(3):
        terms.increment_view_count(order.id)
    terms.increment_view_count(product.id)

    RelationshipService(db).create_relationship(order.id, product.id, "association", "alice")
    ReviewService(db).perform_review(order.id, "bob", "confirmed")

    proposals = ProposalService(db)
    proposals.create_proposal("Invoice", "A bill", context.id, "dave")
    proposals.create_proposal("Refund", "Money back", context.id, "dave")
    proposals.create_proposal("Discount", "Price cut", context.id, "erin")

    discussions = DiscussionService(db)
    thread = discussions.create_thread("Order vs quote", "carol", term_id=order.id)
    discussions.add_comment(thread.id, "Same thing?", "carol")
    return {"order": order, "product": product, "customer": customer}


def test_track_user_activity(service):
    activity = service.track_user_activity("alice", "view_term", "term", "abc", details={"x": 1})
    assert activity.id is not None
    assert activity.details == {"x": 1}


def test_system_metrics(service, populated):
    metrics = service.get_system_metrics()

    assert metrics["terms"]["total"] == 3
    assert metrics["terms"]["deleted"] == 1
    assert metrics["contexts"] == 1
    assert metrics["proposals"]["total"] == 3
    assert metrics["proposals"]["pending"] == 3
    assert metrics["relationships"]["association"] == 1
    assert metrics["threads"]["open"] == 1
    assert metrics["comments"] == 1
    assert metrics["reviews"] == 1


def test_coverage_metrics(service, populated):
    coverage = service.get_coverage_metrics()

    assert coverage["total_terms"] == 3
    assert coverage["terms_with_relationships"] == 2
    assert coverage["terms_reviewed"] == 1
    assert coverage["essential_terms"] == 1
    assert coverage["terms_with_examples"] == 1
    assert coverage["average_contexts_per_term"] == 1.0
    assert coverage["coverage_rate"] == pytest.approx(33.33)


def test_coverage_on_empty_catalog(service):
    assert service.get_coverage_metrics()["coverage_rate"] == 0.0


def test_most_viewed_terms(service, populated):
    assert service.get_most_viewed_terms() == [
        {"id": populated["order"].id, "name": "Order", "count": 3},
        {"id": populated["product"].id, "name": "Product", "count": 1},
    ]


def test_top_users(service, populated):
    assert service.get_top_proposers() == [
        {"user_id": "dave", "count": 2},
        {"user_id": "erin", "count": 1},
    ]
    assert service.get_top_reviewers() == [{"user_id": "bob", "count": 1}]


def test_user_activity_metrics(service, populated):
    metrics = service.get_user_activity_metrics()
    assert metrics["unique_proposers"] == 2
    assert metrics["unique_reviewers"] == 1
    assert metrics["unique_commenters"] == 1
    assert metrics["active_users_last_7_days"] == 4


def test_dashboard_metrics(service, populated):
    metrics = service.get_metrics()
    assert metrics["total_terms"] == 3
    assert metrics["most_viewed_terms"][0]["name"] == "Order"


def test_export_metrics_csv(service, populated):
    output = service.export_metrics("csv")
    rows = list(csv.reader(io.StringIO(output)))

    assert rows[0] == ["Category", "Metric", "Value"]
    assert ["system", "terms.total", "3"] in rows
    assert ["most_viewed_terms", "Order", "3"] in rows
    assert ["top_proposers", "dave", "2"] in rows


def test_export_metrics_json(service, populated):
    metrics = service.export_metrics("JSON")
    assert set(metrics) >= {"generated_at", "system", "coverage", "top_reviewers"}


def test_export_metrics_unknown_format(service):
    with pytest.raises(ValidationError):
        service.export_metrics("xml")
