"""
Tests for catalog export and import
"""
import pytest

from ubiquitous.core.database import Base, get_engine
from ubiquitous.models.term import Term
from ubiquitous.services.context_service import ContextService
from ubiquitous.services.export_service import ExportService, slugify
from ubiquitous.services.import_service import (VALIDATION_ONLY_WARNING,
                                                ImportService)
from ubiquitous.services.relationship_service import RelationshipService
from ubiquitous.services.review_service import ReviewService
from ubiquitous.services.term_service import TermService


@pytest.fixture
def catalog(db, context, other_context, make_term):
    order = make_term("Order", examples=["Order #42"], essential_for_onboarding=True)
    product = make_term("Product", usage_notes="Never say item")
    parcel = make_term("Parcel", context_id=other_context.id)
    archived = make_term("Legacy")

    terms = TermService(db)
    terms.add_term_to_context(order.id, other_context.id, "Something to ship", "alice")
    terms.delete_term(archived.id, "alice")
    RelationshipService(db).create_relationship(order.id, product.id, "aggregation", "alice", "Order lines")
    RelationshipService(db).create_relationship(parcel.id, order.id, "association", "alice")
    ReviewService(db).perform_review(order.id, "bob", "confirmed", notes="Looks right")
    return {"order": order, "product": product, "parcel": parcel}


def _fresh_database(db):
    db.close()
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def test_slugify():
    assert slugify("Order Management & Billing") == "order-management-billing"


def test_export_json_uses_names(db, catalog):
    data = ExportService(db).export_json()

    assert data["version"] == "1.0.0"
    assert [c["name"] for c in data["contexts"]] == ["Sales", "Shipping"]
    assert [t["name"] for t in data["terms"]] == ["Order", "Parcel", "Product"]

    order = data["terms"][0]
    assert order["contextName"] == "Sales"
    assert order["examples"] == ["Order #42"]
    assert order["essentialForOnboarding"] is True

    assert data["termContexts"] == [{
        "termName": "Order",
        "termContext": "Sales",
        "contextName": "Shipping",
        "definition": "Something to ship",
        "examples": [],
    }]
    assert {(r["sourceTerm"], r["targetTerm"], r["relationshipType"]) for r in data["relationships"]} == {
        ("Order", "Product", "aggregation"),
        ("Parcel", "Order", "association"),
    }
    assert data["reviews"][0]["termName"] == "Order"


def test_export_markdown(db, catalog):
    markdown = ExportService(db).export_markdown()

    assert markdown.startswith("# Ubiquitous Language Documentation")
    assert "- [Sales](#sales)" in markdown
    assert "#### Order" in markdown
    assert "- **aggregation:** Product" in markdown
    assert "Something to ship" in markdown
    assert "- Notes: Looks right" in markdown
    assert "Legacy" not in markdown


def test_export_markdown_empty_context(db, context):
    assert "*No terms defined in this context yet.*" in ExportService(db).export_markdown()


def test_round_trip_into_empty_database(db, catalog):
    data = ExportService(db).export_json()
    _fresh_database(db)

    result = ImportService(db).import_json(data, "importer")

    assert result["success"] is True
    assert result["errors"] == []
    assert result["imported"] == {"contexts": 2, "terms": 3, "termContexts": 1, "relationships": 2}

    order = db.query(Term).filter(Term.name == "Order").one()
    assert order.created_by == "importer"
    assert order.essential_for_onboarding is True
    rels = RelationshipService(db).get_relationships_for_term(order.id)
    assert {r["relationship"].relationship_type for r in rels} == {"aggregation", "association"}


def test_import_skips_existing(db, catalog):
    data = ExportService(db).export_json()

    result = ImportService(db).import_json(data, "importer", skip_existing=True)

    assert result["success"] is True
    assert result["imported"] == {"contexts": 0, "terms": 0, "termContexts": 0, "relationships": 0}
    assert 'Context "Sales" already exists - skipped' in result["warnings"]
    assert 'Term "Order" already exists - skipped' in result["warnings"]


def test_import_existing_without_skip_is_silent(db, catalog):
    data = ExportService(db).export_json()
    result = ImportService(db).import_json(data, "importer")
    assert result["warnings"] == []
    assert result["imported"]["terms"] == 0


def test_validate_only_imports_nothing(db):
    data = {
        "version": "1.0.0",
        "contexts": [{"name": "Billing"}],
        "terms": [{"name": "Invoice", "definition": "A bill", "contextName": "Billing"}],
    }
    result = ImportService(db).import_json(data, "importer", validate_only=True)

    assert result["success"] is True
    assert result["warnings"] == [VALIDATION_ONLY_WARNING]
    assert ContextService(db).list_contexts() == []


def test_structural_errors():
    errors = ImportService.validate_import_data({"contexts": [{}], "terms": [{"name": "X"}]})

    assert "Missing version field" in errors
    assert "Context at index 0 is missing required field: name" in errors
    assert "Term at index 0 is missing required field: definition" in errors
    assert ImportService.validate_import_data([]) == ["Invalid data format - expected JSON object"]


def test_invalid_document_imports_nothing(db):
    result = ImportService(db).import_json({"version": "1"}, "importer")
    assert result["success"] is False
    assert "Missing or invalid contexts array" in result["errors"]


def test_unknown_context_is_a_warning(db):
    data = {
        "version": "1.0.0",
        "contexts": [],
        "terms": [{"name": "Invoice", "definition": "A bill", "contextName": "Billing"}],
    }
    result = ImportService(db).import_json(data, "importer")
    assert result["success"] is True
    assert result["warnings"] == ['Context "Billing" not found for term "Invoice" - skipped']


def test_item_failures_are_collected(db, context):
    data = {
        "version": "1.0.0",
        "contexts": [],
        "terms": [
            {"name": "Invoice", "definition": "A bill", "contextName": "Sales", "status": "bogus"},
            {"name": "Refund", "definition": "Money back", "contextName": "Sales"},
        ],
        "relationships": [
            {"sourceTerm": "Refund", "targetTerm": "Refund", "relationshipType": "dependency"},
        ],
    }
    result = ImportService(db).import_json(data, "importer")

    assert result["success"] is False
    assert result["imported"]["terms"] == 1
    assert len(result["errors"]) == 2
    assert result["errors"][0].startswith('Failed to import term "Invoice"')
