"""
Term search over MeiliSearch when configured, otherwise over the database
"""
import time
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import (ExternalServiceError,
                                        ServiceUnavailableError,
                                        ValidationError)
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.core.metrics import (search_index_errors_total,
                                     search_queries_total)
from ubiquitous.core.search_client import (MeiliSearchClient,
                                           SearchEngineError,
                                           get_search_client)
from ubiquitous.models.term import Term

logger = LoggingConfig.get_logger(__name__)

# Database ranking weights
SCORE_EXACT = 100
SCORE_PREFIX = 75
SCORE_SUBSTRING = 50
SCORE_TEXT = 20

REBUILD_BATCH_SIZE = 500

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally"""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def score_term(term: Term, query: str) -> int:
    """Rank a term against a query: exact name, name prefix, name substring, then body text"""
    q = query.lower()
    name = term.name.lower()
    if name == q:
        return SCORE_EXACT
    if name.startswith(q):
        return SCORE_PREFIX
    if q in name:
        return SCORE_SUBSTRING
    return SCORE_TEXT


class SearchService:
    """Service for searching terms and keeping the search index in sync"""

    def __init__(self, db: Session, client: Optional[MeiliSearchClient] = None):
        self.db = db
        self._client = client

    @property
    def engine(self) -> Optional[MeiliSearchClient]:
        if self._client is None:
            self._client = get_search_client()
        return self._client

    @property
    def backend(self) -> str:
        return "meilisearch" if self.engine else "database"

    @staticmethod
    def _document(term: Term) -> Dict[str, Any]:
        return {
            "id": str(term.id),
            "name": term.name,
            "definition": term.definition,
            "usage_notes": term.usage_notes,
            "examples": list(term.examples or []),
            "bounded_context_id": str(term.bounded_context_id),
            "context_name": term.context_name,
            "status": term.status,
            "view_count": term.view_count or 0,
            "search_count": term.search_count or 0,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(
        self,
        q: str,
        context_id: Optional[UUID] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Dict[str, Any]:
        """
        Search terms by name, definition and usage notes

        Every returned term has its search counter incremented.
        """
        query = (q or "").strip()
        if not query:
            raise ValidationError("Search query cannot be empty")

        start_time = time.time()
        backend = self.backend
        hits: List[Dict[str, Any]] = []
        total = 0

        if backend == "meilisearch":
            try:
                hits, total = self._search_engine(query, context_id, status, limit, offset)
            except SearchEngineError as e:
                logger.warning(f"MeiliSearch query failed, falling back to database: {e}")
                search_index_errors_total.labels(operation="search").inc()
                backend = "database"

        if backend == "database":
            hits, total = self._search_database(query, context_id, status, limit, offset)

        self._increment_search_counts([hit["id"] for hit in hits])
        search_queries_total.labels(backend=backend).inc()

        return {
            "hits": hits,
            "query": query,
            "limit": limit,
            "offset": offset,
            "estimated_total_hits": total,
            "processing_time_ms": int((time.time() - start_time) * 1000),
            "backend": backend,
        }

    def _search_database(
        self,
        query: str,
        context_id: Optional[UUID],
        status: Optional[str],
        limit: int,
        offset: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        pattern = f"%{escape_like(query)}%"
        db_query = self.db.query(Term).filter(
            Term.deleted_at.is_(None),
            or_(
                Term.name.ilike(pattern, escape=LIKE_ESCAPE),
                Term.definition.ilike(pattern, escape=LIKE_ESCAPE),
                Term.usage_notes.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
        if context_id:
            db_query = db_query.filter(Term.bounded_context_id == context_id)
        if status:
            db_query = db_query.filter(Term.status == status)

        ranked = sorted(
            ((score_term(term, query), term) for term in db_query.all()),
            key=lambda item: (-item[0], item[1].name.lower())
        )
        page = ranked[offset:offset + limit]
        hits = [
            {
                "id": term.id,
                "name": term.name,
                "definition": term.definition,
                "bounded_context_id": term.bounded_context_id,
                "context_name": term.context_name,
                "status": term.status,
                "score": float(score),
            }
            for score, term in page
        ]
        return hits, len(ranked)

    def _search_engine(
        self,
        query: str,
        context_id: Optional[UUID],
        status: Optional[str],
        limit: int,
        offset: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        filters = []
        if context_id:
            filters.append(f'bounded_context_id = "{context_id}"')
        if status:
            filters.append(f'status = "{status}"')

        result = self.engine.search(query, filters=filters, limit=limit, offset=offset)
        hits = [
            {
                "id": UUID(doc["id"]),
                "name": doc["name"],
                "definition": doc["definition"],
                "bounded_context_id": UUID(doc["bounded_context_id"]),
                "context_name": doc.get("context_name"),
                "status": doc.get("status", "active"),
                "score": float(doc.get("_rankingScore", 0.0)),
            }
            for doc in result.get("hits", [])
        ]
        return hits, result.get("estimatedTotalHits", len(hits))

    def _increment_search_counts(self, term_ids: List[UUID]) -> None:
        if not term_ids:
            return
        try:
            self.db.query(Term).filter(Term.id.in_(term_ids)).update(
                {Term.search_count: Term.search_count + 1},
                synchronize_session=False
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def suggest(self, q: str, limit: int = 5) -> List[str]:
        """Term names starting with the query, for autocomplete"""
        query = (q or "").strip()
        if not query:
            return []
        rows = self.db.query(Term.name).filter(
            Term.deleted_at.is_(None),
            Term.name.ilike(f"{escape_like(query)}%", escape=LIKE_ESCAPE)
        ).distinct().order_by(Term.name).limit(limit).all()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Index maintenance
    # ------------------------------------------------------------------

    def index_term(self, term: Term) -> bool:
        """Add or replace a term in the index; False when no engine is configured"""
        if not self.engine:
            return False
        try:
            self.engine.add_documents([self._document(term)])
        except SearchEngineError as e:
            search_index_errors_total.labels(operation="index").inc()
            raise ExternalServiceError(f"Failed to index term {term.id}: {e}")
        return True

    def remove_term(self, term_id: UUID) -> bool:
        if not self.engine:
            return False
        try:
            self.engine.delete_document(str(term_id))
        except SearchEngineError as e:
            search_index_errors_total.labels(operation="delete").inc()
            raise ExternalServiceError(f"Failed to remove term {term_id} from the index: {e}")
        return True

    def rebuild_index(self) -> Dict[str, Any]:
        """Recreate the index from every non-deleted term"""
        if not self.engine:
            raise ServiceUnavailableError("Search engine is not configured (set MEILISEARCH_HOST)")

        terms = self.db.query(Term).filter(Term.deleted_at.is_(None)).order_by(Term.name).all()
        try:
            self.engine.configure_index()
            self.engine.delete_all_documents()
            for i in range(0, len(terms), REBUILD_BATCH_SIZE):
                batch = terms[i:i + REBUILD_BATCH_SIZE]
                self.engine.add_documents([self._document(term) for term in batch])
        except SearchEngineError as e:
            search_index_errors_total.labels(operation="rebuild").inc()
            logger.error(f"Search index rebuild failed: {e}", exc_info=True)
            raise ExternalServiceError(f"Search index rebuild failed: {e}")

        logger.info(f"Rebuilt search index with {len(terms)} terms")
        return {"backend": self.backend, "indexed": len(terms)}

    def get_index_stats(self) -> Dict[str, Any]:
        if not self.engine:
            count = self.db.query(func.count(Term.id)).filter(Term.deleted_at.is_(None)).scalar() or 0
            return {"backend": "database", "numberOfDocuments": count}
        try:
            stats = self.engine.stats()
        except SearchEngineError as e:
            raise ExternalServiceError(f"Failed to read search index stats: {e}")
        return {"backend": "meilisearch", **stats}

    def health(self) -> Dict[str, Any]:
        if not self.engine:
            return {"backend": "database", "status": "healthy"}
        healthy = self.engine.health()
        return {
            "backend": "meilisearch",
            "status": "healthy" if healthy else "unavailable",
            "host": self.engine.host,
        }
