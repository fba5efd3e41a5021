"""
API tests for relationships, onboarding, search, analytics, export/import, code analysis and the assistant
"""
from unittest.mock import AsyncMock, Mock

import pytest

from ubiquitous.core.llm_client import LLMClient, LLMResponse

ALICE = {"X-User-Id": "alice"}


@pytest.fixture
def terms(make_term):
    return {
        "order": make_term("Order", essential_for_onboarding=True),
        "line": make_term("OrderLine", essential_for_onboarding=True),
        "product": make_term("Product"),
    }


def _link(client, source, target, relationship_type):
    return client.post(
        "/api/relationships",
        json={"source_term_id": str(source.id), "target_term_id": str(target.id), "relationship_type": relationship_type},
        headers=ALICE
    )


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/health/liveness").json()["status"] == "alive"


def test_detailed_health_without_optional_services(client):
    body = client.get("/health/detailed").json()
    assert body["status"] == "healthy"
    assert body["components"]["database"]["status"] == "healthy"
    assert body["components"]["search"]["backend"] == "database"
    assert body["components"]["llm"]["status"] == "not_configured"


def test_prometheus_metrics(client):
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_relationships_and_cycles(client, terms):
    response = _link(client, terms["order"], terms["line"], "aggregation")
    assert response.status_code == 201
    relationship = response.json()

    response = _link(client, terms["line"], terms["order"], "aggregation")
    assert response.status_code == 400
    assert response.json()["type"] == "ValidationError"

    assert _link(client, terms["line"], terms["order"], "association").status_code == 201

    views = client.get(f"/api/relationships/terms/{terms['order'].id}").json()
    assert {(v["direction"], v["related_term"]["name"]) for v in views} == {
        ("outgoing", "OrderLine"),
        ("incoming", "OrderLine"),
    }

    assert client.get("/api/relationships/validate").json() == {"valid": True, "cycles": []}
    assert client.get(f"/api/relationships/{relationship['id']}").json()["relationship_type"] == "aggregation"


def test_relationship_diagram_and_hierarchy(client, terms, context):
    _link(client, terms["order"], terms["line"], "aggregation")

    diagram = client.get(f"/api/relationships/contexts/{context.id}/diagram").json()
    assert {n["label"] for n in diagram["nodes"]} == {"Order", "OrderLine", "Product"}
    assert [e["type"] for e in diagram["edges"]] == ["aggregation"]

    hierarchy = client.get(f"/api/relationships/terms/{terms['order'].id}/hierarchy").json()
    assert hierarchy["name"] == "Order"
    assert [child["name"] for child in hierarchy["children"]] == ["OrderLine"]


def test_delete_relationships_between(client, terms):
    _link(client, terms["order"], terms["line"], "aggregation")
    _link(client, terms["line"], terms["order"], "association")

    response = client.delete(f"/api/relationships/between/{terms['line'].id}/{terms['order'].id}", headers=ALICE)
    assert response.json() == {"deleted": 2}


def test_onboarding_flow(client, terms):
    _link(client, terms["order"], terms["line"], "dependency")
    newbie = {"X-User-Id": "newbie"}

    path = client.get("/api/onboarding/learning-path", headers=newbie).json()
    assert [entry["term"]["name"] for entry in path] == ["OrderLine", "Order"]

    assert [t["name"] for t in client.get("/api/onboarding/next-terms", headers=newbie).json()] == ["OrderLine"]
    blocked = client.get(f"/api/onboarding/can-learn/{terms['order'].id}", headers=newbie).json()
    assert blocked["can_learn"] is False

    client.post(f"/api/onboarding/learned/{terms['line'].id}", headers=newbie)
    progress = client.get("/api/onboarding/progress", headers=newbie).json()
    assert progress["learned_essential"] == 1
    assert progress["progress_percent"] == 50


def test_essential_terms(client, terms):
    client.post(f"/api/onboarding/essential-terms/{terms['product'].id}", headers=ALICE)
    names = [t["name"] for t in client.get("/api/onboarding/essential-terms").json()]
    assert names == ["Order", "OrderLine", "Product"]


def test_search(client, terms):
    body = client.get("/api/search", params={"q": "order"}).json()
    assert body["backend"] == "database"
    assert [hit["name"] for hit in body["hits"]] == ["Order", "OrderLine"]

    suggestions = client.get("/api/search/suggestions", params={"q": "Pro"}).json()
    assert suggestions["suggestions"] == ["Product"]


def test_empty_search_is_rejected(client):
    assert client.get("/api/search", params={"q": " "}).status_code == 400


def test_rebuild_index_without_engine(client):
    response = client.post("/api/search/index/rebuild", headers=ALICE)
    assert response.status_code == 503
    assert response.json()["type"] == "ServiceUnavailableError"


def test_analytics(client, terms):
    client.get(f"/api/terms/{terms['order'].id}")

    metrics = client.get("/api/analytics/metrics").json()
    assert metrics["total_terms"] == 3
    assert metrics["most_viewed_terms"][0]["name"] == "Order"

    response = client.get("/api/analytics/export", params={"format": "csv"})
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.startswith("Category,Metric,Value")

    assert client.get("/api/analytics/export", params={"format": "xml"}).status_code == 400


def test_track_activity(client):
    response = client.post("/api/analytics/track", json={"action": "open_glossary"}, headers=ALICE)
    assert response.status_code == 201
    assert response.json()["action"] == "open_glossary"


def test_export_and_validate(client, terms):
    exported = client.get("/api/export/json")
    assert "attachment" in exported.headers["content-disposition"]
    data = exported.json()
    assert [t["name"] for t in data["terms"]] == ["Order", "OrderLine", "Product"]

    assert client.post("/api/import/validate", json=data).json() == {"valid": True, "errors": []}

    result = client.post("/api/import/json", params={"skip_existing": "true"}, json=data, headers=ALICE).json()
    assert result["success"] is True
    assert result["imported"]["terms"] == 0
    assert 'Term "Order" already exists - skipped' in result["warnings"]

    markdown = client.get("/api/export/markdown")
    assert markdown.headers["content-type"].startswith("text/markdown")
    assert "#### OrderLine" in markdown.text


def test_import_validation_errors(client):
    body = client.post("/api/import/validate", json={"terms": []}).json()
    assert body["valid"] is False
    assert "Missing version field" in body["errors"]


def test_code_analysis(client, terms):
    response = client.post(
        "/api/code-analysis",
        json={"file_name": "service.py", "code": "class OrderService:\n    pass\n"},
        headers=ALICE
    )
    assert response.status_code == 201
    report = response.json()
    assert report["matched_elements"] == 1
    assert report["match_rate"] == 100.0

    assert client.get(f"/api/code-analysis/{report['id']}/report").json()["file_name"] == "service.py"
    assert [a["file_name"] for a in client.get("/api/code-analysis").json()] == ["service.py"]


def test_code_upload(client, terms):
    response = client.post(
        "/api/code-analysis/upload",
        files={"file": ("repo.ts", b"export class ProductRepository {\n}\n", "text/plain")},
        headers=ALICE
    )
    assert response.status_code == 201
    assert response.json()["elements"][0]["matched_term"] == "Product"


def test_assistant_unavailable_without_llm(client):
    response = client.post("/api/ai/suggestions", json={"definition": "An order"})
    assert response.status_code == 503


def test_similar_terms_without_llm(client, terms):
    response = client.post("/api/ai/similar-terms", json={"name": "Orders"})
    assert response.status_code == 200
    assert response.json()[0]["name"] == "Order"


def test_assistant_answers_with_llm(client, terms, monkeypatch):
    llm = Mock(spec=LLMClient)
    llm.generate = AsyncMock(return_value=LLMResponse(model="llama3", response="Each Order has an OrderLine."))
    monkeypatch.setattr("ubiquitous.services.ai_service.get_llm_client", lambda: llm)

    body = client.post("/api/ai/ask", json={"question": "What is in an order?"}).json()
    assert body["answer"] == "Each Order has an OrderLine."
    assert body["referenced_terms"] == ["Order", "OrderLine"]
