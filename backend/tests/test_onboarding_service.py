"""
Unit tests for OnboardingService
"""
import pytest

from ubiquitous.services.onboarding_service import OnboardingService
from ubiquitous.services.relationship_service import RelationshipService


@pytest.fixture
def service(db):
    return OnboardingService(db)


@pytest.fixture
def vocabulary(db, make_term):
    """Essential terms where Account depends on Zone and Zone inherits from Area"""
    terms = {
        "Account": make_term("Account", essential_for_onboarding=True),
        "Area": make_term("Area", essential_for_onboarding=True),
        "Zone": make_term("Zone", essential_for_onboarding=True),
        "Widget": make_term("Widget"),
    }
    relationships = RelationshipService(db)
    relationships.create_relationship(terms["Account"].id, terms["Zone"].id, "dependency", "alice")
    relationships.create_relationship(terms["Zone"].id, terms["Area"].id, "inheritance", "alice")
    relationships.create_relationship(terms["Account"].id, terms["Widget"].id, "dependency", "alice")
    return terms


def test_essential_terms(service, vocabulary):
    assert [t.name for t in service.get_essential_terms()] == ["Account", "Area", "Zone"]


def test_mark_and_unmark_essential(service, vocabulary):
    service.mark_as_essential(vocabulary["Widget"].id)
    assert "Widget" in [t.name for t in service.get_essential_terms()]

    service.unmark_as_essential(vocabulary["Widget"].id)
    assert "Widget" not in [t.name for t in service.get_essential_terms()]


def test_learning_path_puts_prerequisites_first(service, vocabulary):
    path = service.get_learning_path()

    assert [entry["term"].name for entry in path] == ["Area", "Zone", "Account"]
    assert [entry["order"] for entry in path] == [1, 2, 3]
    assert path[2]["prerequisites"] == [vocabulary["Zone"].id]
    assert not any(entry["learned"] for entry in path)


def test_learning_path_survives_cycles(db, service, make_term):
    a = make_term("Alpha", essential_for_onboarding=True)
    b = make_term("Beta", essential_for_onboarding=True)
    relationships = RelationshipService(db)
    relationships.create_relationship(a.id, b.id, "dependency", "alice")
    relationships.create_relationship(b.id, a.id, "inheritance", "alice")

    assert [entry["term"].name for entry in service.get_learning_path()] == ["Beta", "Alpha"]


def test_mark_as_learned_is_idempotent(service, vocabulary):
    first = service.mark_as_learned("newbie", vocabulary["Area"].id)
    second = service.mark_as_learned("newbie", vocabulary["Area"].id)
    assert first.id == second.id
    assert [t.name for t in service.get_learned_terms("newbie")] == ["Area"]


def test_unmark_as_learned(service, vocabulary):
    service.mark_as_learned("newbie", vocabulary["Area"].id)
    assert service.unmark_as_learned("newbie", vocabulary["Area"].id) is True
    assert service.unmark_as_learned("newbie", vocabulary["Area"].id) is False


def test_user_progress(service, vocabulary):
    service.mark_as_learned("newbie", vocabulary["Area"].id)
    service.mark_as_learned("newbie", vocabulary["Widget"].id)

    progress = service.get_user_progress("newbie")
    assert progress["total_essential"] == 3
    assert progress["learned_essential"] == 1
    assert progress["progress_percent"] == 33
    assert [t.name for t in progress["remaining_terms"]] == ["Account", "Zone"]


def test_progress_without_essential_terms(service):
    assert service.get_user_progress("newbie")["progress_percent"] == 0


def test_next_terms_follow_prerequisites(service, vocabulary):
    assert [t.name for t in service.get_next_terms_to_learn("newbie")] == ["Area"]

    service.mark_as_learned("newbie", vocabulary["Area"].id)
    assert [t.name for t in service.get_next_terms_to_learn("newbie")] == ["Zone"]

    service.mark_as_learned("newbie", vocabulary["Zone"].id)
    assert [t.name for t in service.get_next_terms_to_learn("newbie")] == ["Account"]


def test_can_learn(service, vocabulary):
    blocked = service.can_learn("newbie", vocabulary["Account"].id)
    assert blocked["can_learn"] is False
    assert blocked["missing_prerequisites"] == [vocabulary["Zone"].id]

    service.mark_as_learned("newbie", vocabulary["Zone"].id)
    assert service.can_learn("newbie", vocabulary["Account"].id)["can_learn"] is True
