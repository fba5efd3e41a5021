"""
Tests for the server-rendered web pages
"""
import pytest

from ubiquitous.models.term import Term
from ubiquitous.services.discussion_service import DiscussionService


@pytest.fixture
def term(make_term):
    return make_term("Order", essential_for_onboarding=True)


def test_dashboard(client, term):
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "<h1>Dashboard</h1>" in response.text


def test_static_stylesheet(client):
    assert client.get("/static/css/app.css").status_code == 200


def test_terms_list_and_filter(client, term, make_term):
    make_term("Quote", definition="A price offer")

    page = client.get("/terms").text
    assert "Order" in page and "Quote" in page

    filtered = client.get("/terms", params={"q": "price"}).text
    assert "Quote" in filtered
    assert f"/terms/{term.id}" not in filtered


def test_create_term_from_form(client, db, context):
    response = client.post(
        "/terms/new",
        data={
            "name": "Invoice",
            "definition": "A bill",
            "bounded_context_id": str(context.id),
            "examples": "INV-1\n\nINV-2",
            "review_cycle_days": "30",
        },
        headers={"X-User-Id": "carol"},
        follow_redirects=False
    )
    assert response.status_code == 303

    term = db.query(Term).filter(Term.name == "Invoice").one()
    assert response.headers["location"] == f"/terms/{term.id}"
    assert term.examples == ["INV-1", "INV-2"]
    assert term.review_cycle_days == 30
    assert term.created_by == "carol"


def test_term_form_error_is_rendered(client, term, context):
    response = client.post(
        "/terms/new",
        data={"name": "Order", "definition": "Again", "bounded_context_id": str(context.id)},
        follow_redirects=False
    )
    assert response.status_code == 409
    assert "already exists" in response.text
    assert 'value="Order"' in response.text


def test_term_form_rejects_bad_cycle(client, context):
    response = client.post(
        "/terms/new",
        data={"name": "Invoice", "definition": "A bill", "bounded_context_id": str(context.id), "review_cycle_days": "soon"},
        follow_redirects=False
    )
    assert response.status_code == 400
    assert "whole number" in response.text


def test_term_detail_counts_view(client, db, term):
    response = client.get(f"/terms/{term.id}")
    assert response.status_code == 200
    assert "Definition of Order" in response.text
    db.refresh(term)
    assert term.view_count == 1


def test_edit_term(client, db, term):
    assert client.get(f"/terms/{term.id}/edit").status_code == 200

    response = client.post(
        f"/terms/{term.id}/edit",
        data={"name": "Order", "definition": "A purchase request", "status": "active", "change_reason": "Clearer"},
        follow_redirects=False
    )
    assert response.status_code == 303
    db.refresh(term)
    assert term.definition == "A purchase request"


def test_review_from_page_opens_discussion(client, term):
    response = client.post(
        f"/terms/{term.id}/review",
        data={"status": "needs_discussion", "notes": "Unclear"},
        follow_redirects=False
    )
    assert response.status_code == 303
    assert response.headers["location"].startswith("/discussions/")
    assert "Unclear" in client.get(response.headers["location"]).text


def test_delete_term_from_page(client, db, term):
    response = client.post(f"/terms/{term.id}/delete", follow_redirects=False)
    assert response.headers["location"] == "/terms"
    db.refresh(term)
    assert term.deleted_at is not None


def test_contexts_pages(client, context, term):
    assert "Sales" in client.get("/contexts").text
    assert "Order" in client.get(f"/contexts/{context.id}").text

    response = client.post("/contexts/new", data={"name": "Billing"}, follow_redirects=False)
    assert response.status_code == 303

    response = client.post("/contexts/new", data={"name": "Billing"}, follow_redirects=False)
    assert response.status_code == 409


def test_discussion_comment_on_closed_thread(client, db, term):
    thread = DiscussionService(db).create_thread("Scope", "alice", term_id=term.id)
    client.post(f"/discussions/{thread.id}/close", follow_redirects=False)

    response = client.post(f"/discussions/{thread.id}/comments", data={"content": "Late"}, follow_redirects=False)
    assert response.status_code == 400
    assert "closed" in response.text

    assert "Scope" in client.get("/discussions").text


def test_relationships_page(client, term, make_term):
    line = make_term("OrderLine")
    response = client.post(
        "/relationships",
        data={"source_term_id": str(term.id), "target_term_id": str(line.id), "relationship_type": "aggregation"},
        follow_redirects=False
    )
    assert response.status_code == 303

    page = client.get("/relationships").text
    assert "graph LR" in page
    assert "aggregation" in page


def test_relationship_form_error(client, term):
    response = client.post(
        "/relationships",
        data={"source_term_id": str(term.id), "target_term_id": "", "relationship_type": "aggregation"},
        follow_redirects=False
    )
    assert response.status_code == 400
    assert "Choose both a source and a target term" in response.text


def test_search_page(client, term):
    response = client.get("/search", params={"q": "order"})
    assert response.status_code == 200
    assert f"/terms/{term.id}" in response.text


def test_onboarding_uses_cookie_user(client, db, term):
    response = client.post("/user", data={"user_id": "carol"}, follow_redirects=False)
    assert response.status_code == 303

    client.post(f"/onboarding/learned/{term.id}", follow_redirects=False)
    page = client.get("/onboarding").text
    assert "<strong>carol</strong>" in page

    from ubiquitous.services.onboarding_service import OnboardingService
    assert [t.name for t in OnboardingService(db).get_learned_terms("carol")] == ["Order"]
