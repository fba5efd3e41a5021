"""
Pytest configuration and fixtures
"""
import os

# Settings are cached on first use, so the test environment must be set before any import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["DEFAULT_USER_ID"] = "tester"
os.environ.pop("MEILISEARCH_HOST", None)
os.environ.pop("OLLAMA_URL", None)

import pytest
from sqlalchemy.orm import Session

import ubiquitous.models  # noqa: F401
from ubiquitous.core.database import Base, get_engine, get_session_local
from ubiquitous.services.context_service import ContextService
from ubiquitous.services.term_service import TermService


@pytest.fixture(scope="function")
def db() -> Session:
    """Create a database session on a fresh schema"""
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = get_session_local()()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db: Session):
    """Create test client with database dependency override"""
    from fastapi.testclient import TestClient

    from main import app
    from ubiquitous.core.database import get_db

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def context(db: Session):
    return ContextService(db).create_context("Sales", "Order taking and pricing", created_by="alice")


@pytest.fixture
def other_context(db: Session):
    return ContextService(db).create_context("Shipping", "Delivery of orders", created_by="alice")


@pytest.fixture
def make_term(db: Session, context):
    """Factory creating terms in the Sales context unless told otherwise"""
    service = TermService(db)

    def _make(name: str, definition: str = None, context_id=None, **kwargs):
        return service.create_term(
            name=name,
            definition=definition or f"Definition of {name}",
            bounded_context_id=context_id or context.id,
            created_by=kwargs.pop("created_by", "alice"),
            **kwargs
        )

    return _make


def pytest_collection_modifyitems(config, items):
    """Skip real-LLM tests unless RUN_REAL_LLM_TESTS=1 is set in env."""
    if os.environ.get("RUN_REAL_LLM_TESTS", "0") == "1":
        return
    skip_marker = pytest.mark.skip(reason="Real LLM tests disabled. Set RUN_REAL_LLM_TESTS=1 to enable.")
    for item in items:
        if "real_llm" in getattr(item, "keywords", {}):
            item.add_marker(skip_marker)
