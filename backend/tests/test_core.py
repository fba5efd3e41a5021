"""
Tests for configuration, errors, request middleware and acting-user resolution
"""
from datetime import datetime

from ubiquitous.core.config import Settings, get_settings
from ubiquitous.core.exceptions import ConflictError, NotFoundError
from ubiquitous.core.middleware_metrics import normalize_endpoint
from ubiquitous.core.templates import templates


def test_settings_treat_blank_urls_as_unset():
    settings = Settings(ollama_url="  ", meilisearch_host=" http://meili:7700/ ")
    assert settings.llm_enabled is False
    assert settings.meilisearch_enabled is True
    assert settings.meilisearch_host == "http://meili:7700"


def test_database_url_from_environment():
    assert get_settings().database_url == "sqlite://"


def test_allowed_origins_list():
    settings = Settings(allowed_origins="http://a, http://b,")
    assert settings.allowed_origins_list == ["http://a", "http://b"]


def test_error_messages():
    assert NotFoundError("Term", "42").message == 'Term with ID "42" not found'
    assert NotFoundError("Term", "42").status_code == 404
    error = ConflictError("Term", "Order", scope='context "Sales"')
    assert error.message == 'Term with "Order" already exists in context "Sales"'
    assert error.status_code == 409


def test_normalize_endpoint():
    path = "/api/terms/0b7c8a52-3f9e-4d7b-9a51-2f6c1e0d9a11/history"
    assert normalize_endpoint(path) == "/api/terms/{id}/history"
    assert normalize_endpoint("/api/terms") == "/api/terms"


def test_template_filters():
    status_badge = templates.env.filters["status_badge"]
    assert status_badge("active") == "badge-green"
    assert status_badge("unknown") == "badge-grey"
    assert templates.env.filters["datetime"](datetime(2024, 5, 1, 9, 30)) == "2024-05-01 09:30"
    assert templates.env.filters["datetime"](None) == ""


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_header_user_wins_over_cookie(client, db):
    client.cookies.set("user_id", "cookie-user")
    response = client.post("/api/contexts", json={"name": "Sales"}, headers={"X-User-Id": "header-user"})
    assert response.json()["created_by"] == "header-user"

    response = client.post("/api/contexts", json={"name": "Billing"})
    assert response.json()["created_by"] == "cookie-user"


def test_anonymous_writes_can_be_refused(client, monkeypatch):
    strict = Settings(require_user_header=True)
    monkeypatch.setattr("ubiquitous.core.auth.get_settings", lambda: strict)

    response = client.post("/api/contexts", json={"name": "Sales"})
    assert response.status_code == 401
    assert response.json()["type"] == "UnauthorizedError"

    assert client.get("/api/contexts").status_code == 200


def test_request_context_carries_response_info(client, monkeypatch):
    from ubiquitous.core import middleware
    from ubiquitous.core.logging_config import LoggingConfig

    contexts = []
    log_info = middleware.logger.info

    def capture(msg, *args, **kwargs):
        if msg == "Request completed":
            contexts.append(LoggingConfig.get_context())
        return log_info(msg, *args, **kwargs)

    monkeypatch.setattr(middleware.logger, "info", capture)
    client.get("/health", headers={"X-Request-ID": "req-456"})

    assert contexts[0]["request_id"] == "req-456"
    assert contexts[0]["status_code"] == 200
    assert contexts[0]["duration_ms"] >= 0
