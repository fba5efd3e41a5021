"""
Unit tests for code analysis
"""
from uuid import uuid4

import pytest

from ubiquitous.core.exceptions import NotFoundError, ValidationError
from ubiquitous.services.code_analysis_service import (CodeAnalysisService,
                                                       extract_code_elements,
                                                       similarity,
                                                       split_identifier)

PYTHON_SOURCE = """class OrderService:
    def place_order(self, customer_id):
        total_price = 0
        return total_price
"""

TYPESCRIPT_SOURCE = """export class OrderRepository {
  async findOrder(id) {
    if (id) {
      const ordr = 1;
    }
  }
}
"""


@pytest.fixture
def service(db):
    return CodeAnalysisService(db)


@pytest.mark.parametrize("identifier,words", [
    ("placeOrder", ["place", "order"]),
    ("OrderLine", ["order", "line"]),
    ("HTTPRequest", ["http", "request"]),
    ("order_line_item", ["order", "line", "item"]),
])
def test_split_identifier(identifier, words):
    assert split_identifier(identifier) == words


def test_similarity():
    assert similarity("", "") == 1.0
    assert similarity("order", "order") == 1.0
    assert similarity("ordr", "order") == pytest.approx(0.8)


def test_extract_python_elements():
    elements = extract_code_elements(PYTHON_SOURCE)
    assert elements == [
        {"type": "class", "name": "OrderService", "line": 1},
        {"type": "method", "name": "place_order", "line": 2},
        {"type": "variable", "name": "total_price", "line": 3},
    ]


def test_extract_brace_language_elements():
    elements = extract_code_elements(TYPESCRIPT_SOURCE)
    assert [(e["type"], e["name"]) for e in elements] == [
        ("class", "OrderRepository"),
        ("method", "findOrder"),
        ("variable", "ordr"),
    ]


def test_analyze_code(service, make_term):
    make_term("Order")
    make_term("Customer")

    analysis = service.analyze_code("order_service.py", PYTHON_SOURCE, "alice")

    assert analysis.match_rate == pytest.approx(66.67)
    matched = {e["name"]: e["matched_term"] for e in analysis.extracted_elements}
    assert matched == {"OrderService": "Order", "place_order": "Order", "total_price": None}


def test_unmatched_identifiers_get_suggestions(service, make_term):
    make_term("Order")

    analysis = service.analyze_code("repo.ts", TYPESCRIPT_SOURCE, "alice")
    report = service.get_report(analysis.id)

    assert report["total_elements"] == 3
    assert report["matched_elements"] == 2
    assert report["suggestions"] == [
        {"element": "variable", "current_name": "ordr", "suggested_names": ["Order"]}
    ]


def test_archived_terms_are_ignored(db, service, make_term):
    from ubiquitous.services.term_service import TermService

    term = make_term("Order")
    TermService(db).delete_term(term.id, "alice")

    analysis = service.analyze_code("order_service.py", PYTHON_SOURCE, "alice")
    assert analysis.match_rate == 0.0


def test_analyze_requires_code(service):
    with pytest.raises(ValidationError):
        service.analyze_code("empty.py", "   ", "alice")
    with pytest.raises(ValidationError):
        service.analyze_code(" ", "x = 1", "alice")


def test_list_and_get(service):
    analysis = service.analyze_code("a.py", "x = 1\n", "alice")
    assert [a.id for a in service.list_analyses()] == [analysis.id]
    with pytest.raises(NotFoundError):
        service.get_analysis(uuid4())
