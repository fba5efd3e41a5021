"""
Minimal MeiliSearch REST client for the term index
"""
from typing import Any, Dict, List, Optional

import httpx

from ubiquitous.core.config import get_settings
from ubiquitous.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

# Index settings applied when the index is (re)built
TERM_INDEX_SETTINGS = {
    "searchableAttributes": ["name", "definition", "usage_notes", "examples", "context_name"],
    "filterableAttributes": ["bounded_context_id", "status"],
    "sortableAttributes": ["name", "view_count", "search_count"],
}


class SearchEngineError(Exception):
    """Raised when MeiliSearch returns an error or is unreachable"""
    pass


class MeiliSearchClient:
    """Synchronous wrapper over the MeiliSearch HTTP API"""

    def __init__(
        self,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        index: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        settings = get_settings()
        host = host or settings.meilisearch_host
        if not host:
            raise SearchEngineError("No MeiliSearch host configured (set MEILISEARCH_HOST)")
        self.host = host.rstrip("/")
        self.index = index or settings.meilisearch_index
        headers = {"Content-Type": "application/json"}
        key = api_key or settings.meilisearch_api_key
        if key:
            headers["Authorization"] = f"Bearer {key}"
        self._client = httpx.Client(
            base_url=self.host,
            headers=headers,
            timeout=settings.search_timeout_seconds,
            transport=transport,
        )

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SearchEngineError(
                f"MeiliSearch {method} {path} failed: {e.response.status_code} - {e.response.text}"
            )
        except httpx.HTTPError as e:
            raise SearchEngineError(f"MeiliSearch {method} {path} failed: {e}")
        if not response.content:
            return {}
        return response.json()

    def health(self) -> bool:
        try:
            return self._request("GET", "/health").get("status") == "available"
        except SearchEngineError as e:
            logger.warning(f"MeiliSearch health check failed: {e}")
            return False

    def configure_index(self):
        self._request("POST", "/indexes", json={"uid": self.index, "primaryKey": "id"})
        self._request("PATCH", f"/indexes/{self.index}/settings", json=TERM_INDEX_SETTINGS)

    def add_documents(self, documents: List[Dict[str, Any]]):
        if documents:
            self._request("POST", f"/indexes/{self.index}/documents", json=documents)

    def delete_document(self, document_id: str):
        self._request("DELETE", f"/indexes/{self.index}/documents/{document_id}")

    def delete_all_documents(self):
        self._request("DELETE", f"/indexes/{self.index}/documents")

    def search(
        self,
        query: str,
        filters: Optional[List[str]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "q": query,
            "limit": limit,
            "offset": offset,
            "showRankingScore": True,
        }
        if filters:
            body["filter"] = " AND ".join(filters)
        return self._request("POST", f"/indexes/{self.index}/search", json=body)

    def stats(self) -> Dict[str, Any]:
        return self._request("GET", f"/indexes/{self.index}/stats")

    def close(self):
        self._client.close()


_search_client: Optional[MeiliSearchClient] = None


def get_search_client() -> Optional[MeiliSearchClient]:
    """Shared client, or None when no MeiliSearch host is configured"""
    global _search_client
    if _search_client is None and get_settings().meilisearch_enabled:
        _search_client = MeiliSearchClient()
    return _search_client
