"""
Unit tests for RelationshipService
"""
from uuid import uuid4

import pytest

from ubiquitous.core.exceptions import (ConflictError, NotFoundError,
                                        ValidationError)
from ubiquitous.models.term_relationship import (RelationshipType,
                                                 TermRelationship)
from ubiquitous.services.relationship_service import RelationshipService
from ubiquitous.services.term_service import TermService


@pytest.fixture
def service(db):
    return RelationshipService(db)


@pytest.fixture
def terms(make_term):
    return {name: make_term(name) for name in ("Order", "OrderLine", "Product", "Customer")}


def test_create_relationship(service, terms):
    rel = service.create_relationship(
        terms["Order"].id, terms["OrderLine"].id, "aggregation", "alice", description="An order has lines"
    )

    assert rel.relationship_type == RelationshipType.AGGREGATION.value
    assert rel.source_term.name == "Order"
    assert rel.target_term.name == "OrderLine"
    assert rel.description == "An order has lines"


def test_self_relationship_rejected(service, terms):
    with pytest.raises(ValidationError):
        service.create_relationship(terms["Order"].id, terms["Order"].id, "association", "alice")


def test_invalid_type_rejected(service, terms):
    with pytest.raises(ValidationError):
        service.create_relationship(terms["Order"].id, terms["Product"].id, "composition", "alice")


def test_unknown_term_rejected(service, terms):
    with pytest.raises(NotFoundError):
        service.create_relationship(terms["Order"].id, uuid4(), "association", "alice")


def test_archived_term_cannot_be_linked(db, service, terms):
    TermService(db).delete_term(terms["Product"].id, "alice")
    with pytest.raises(NotFoundError):
        service.create_relationship(terms["Order"].id, terms["Product"].id, "association", "alice")


def test_duplicate_relationship_rejected(service, terms):
    service.create_relationship(terms["Order"].id, terms["Product"].id, "association", "alice")
    with pytest.raises(ConflictError):
        service.create_relationship(terms["Order"].id, terms["Product"].id, "association", "alice")


def test_same_pair_with_different_type_is_allowed(service, terms):
    service.create_relationship(terms["Order"].id, terms["Product"].id, "association", "alice")
    rel = service.create_relationship(terms["Order"].id, terms["Product"].id, "dependency", "alice")
    assert rel.relationship_type == "dependency"


def test_direct_cycle_rejected(service, terms):
    service.create_relationship(terms["Order"].id, terms["Product"].id, "dependency", "alice")
    with pytest.raises(ValidationError) as exc_info:
        service.create_relationship(terms["Product"].id, terms["Order"].id, "dependency", "alice")
    assert "circular" in exc_info.value.message


def test_transitive_cycle_rejected(service, terms):
    service.create_relationship(terms["Order"].id, terms["OrderLine"].id, "inheritance", "alice")
    service.create_relationship(terms["OrderLine"].id, terms["Product"].id, "inheritance", "alice")

    assert service.would_create_cycle(terms["Product"].id, terms["Order"].id, "inheritance")
    with pytest.raises(ValidationError):
        service.create_relationship(terms["Product"].id, terms["Order"].id, "inheritance", "alice")


def test_cycles_are_checked_per_type(service, terms):
    service.create_relationship(terms["Order"].id, terms["Product"].id, "dependency", "alice")
    rel = service.create_relationship(terms["Product"].id, terms["Order"].id, "aggregation", "alice")
    assert rel.id is not None


def test_association_cycles_are_allowed(service, terms):
    service.create_relationship(terms["Order"].id, terms["Customer"].id, "association", "alice")
    rel = service.create_relationship(terms["Customer"].id, terms["Order"].id, "association", "alice")
    assert rel.id is not None
    assert not service.would_create_cycle(terms["Order"].id, terms["Customer"].id, "association")


def test_update_relationship_type_checks_cycles(service, terms):
    service.create_relationship(terms["Order"].id, terms["Product"].id, "dependency", "alice")
    back = service.create_relationship(terms["Product"].id, terms["Order"].id, "association", "alice")

    with pytest.raises(ValidationError):
        service.update_relationship(back.id, relationship_type="dependency")

    updated = service.update_relationship(back.id, relationship_type="aggregation", description="Bundles")
    assert updated.relationship_type == "aggregation"
    assert updated.description == "Bundles"


def test_update_relationship_type_to_existing_edge_conflicts(service, terms):
    service.create_relationship(terms["Order"].id, terms["Product"].id, "dependency", "alice")
    rel = service.create_relationship(terms["Order"].id, terms["Product"].id, "association", "alice")
    with pytest.raises(ConflictError):
        service.update_relationship(rel.id, relationship_type="dependency")


def test_validate_no_circular_dependency_reports_stored_cycles(db, service, terms):
    assert service.validate_no_circular_dependency() == []

    # Written directly to simulate data that predates the cycle check
    order, product = terms["Order"], terms["Product"]
    db.add(TermRelationship(source_term_id=order.id, target_term_id=product.id,
                            relationship_type="dependency", created_by="import"))
    db.add(TermRelationship(source_term_id=product.id, target_term_id=order.id,
                            relationship_type="dependency", created_by="import"))
    db.commit()

    cycles = service.validate_no_circular_dependency()
    assert len(cycles) == 1
    assert set(cycles[0]) == {str(order.id), str(product.id)}
    assert cycles[0][0] == cycles[0][-1]
    assert service.validate_no_circular_dependency("inheritance") == []


def test_delete_relationships_between(service, terms):
    service.create_relationship(terms["Order"].id, terms["Product"].id, "association", "alice")
    service.create_relationship(terms["Product"].id, terms["Order"].id, "dependency", "alice")
    service.create_relationship(terms["Order"].id, terms["Customer"].id, "association", "alice")

    assert service.delete_relationships_between(terms["Product"].id, terms["Order"].id) == 2
    assert len(service.get_relationships_for_term(terms["Order"].id)) == 1


def test_delete_relationship(service, terms):
    rel = service.create_relationship(terms["Order"].id, terms["Product"].id, "association", "alice")
    service.delete_relationship(rel.id)
    with pytest.raises(NotFoundError):
        service.get_relationship(rel.id)


def test_relationships_for_term_have_direction(service, terms):
    service.create_relationship(terms["Order"].id, terms["Product"].id, "association", "alice")
    service.create_relationship(terms["Customer"].id, terms["Order"].id, "dependency", "alice")

    views = service.get_relationships_for_term(terms["Order"].id)
    by_direction = {v["direction"]: v["related_term"].name for v in views}
    assert by_direction == {"outgoing": "Product", "incoming": "Customer"}

    deps = service.get_related_terms_by_type(terms["Order"].id, "dependency")
    assert [v["related_term"].name for v in deps] == ["Customer"]


def test_term_hierarchy(service, terms):
    service.create_relationship(terms["Order"].id, terms["OrderLine"].id, "aggregation", "alice")
    service.create_relationship(terms["OrderLine"].id, terms["Product"].id, "inheritance", "alice")
    service.create_relationship(terms["Order"].id, terms["Customer"].id, "association", "alice")

    tree = service.get_term_hierarchy(terms["Order"].id)

    assert tree["name"] == "Order"
    assert tree["relationship_type"] is None
    assert [child["name"] for child in tree["children"]] == ["OrderLine"]
    grandchild = tree["children"][0]["children"][0]
    assert grandchild["name"] == "Product"
    assert grandchild["relationship_type"] == "inheritance"

    shallow = service.get_term_hierarchy(terms["Order"].id, max_depth=1)
    assert shallow["children"][0]["children"] == []


def test_diagram_data(service, terms, other_context, make_term):
    parcel = make_term("Parcel", context_id=other_context.id)
    service.create_relationship(terms["Order"].id, terms["Product"].id, "association", "alice")
    service.create_relationship(terms["Order"].id, parcel.id, "dependency", "alice")

    everything = service.get_diagram_data()
    assert len(everything["nodes"]) == 5
    assert len(everything["edges"]) == 2

    sales = service.get_diagram_data(terms["Order"].bounded_context_id)
    assert {n["label"] for n in sales["nodes"]} == {"Order", "OrderLine", "Product", "Customer"}
    assert [(e["label"]) for e in sales["edges"]] == ["association"]


def test_diagram_data_unknown_context(service):
    with pytest.raises(NotFoundError):
        service.get_diagram_data(uuid4())
