"""
Prometheus metrics configuration
"""
import os

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, Info, generate_latest)
from prometheus_client.multiprocess import MultiProcessCollector
from prometheus_client.registry import REGISTRY

from ubiquitous import __version__
from ubiquitous.core.config import get_settings

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

http_errors_total = Counter(
    'http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# Database Metrics
# ============================================================================

db_queries_total = Counter(
    'db_queries_total',
    'Total number of database queries',
    ['operation', 'table']  # operation: 'select', 'insert', 'update', 'delete'
)

db_query_duration_seconds = Histogram(
    'db_query_duration_seconds',
    'Database query duration in seconds',
    ['operation', 'table'],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
)

db_connection_pool_checked_out = Gauge(
    'db_connection_pool_checked_out',
    'Database connections currently checked out of the pool'
)

# ============================================================================
# LLM Assistant Metrics
# ============================================================================

llm_requests_total = Counter(
    'llm_requests_total',
    'Total number of LLM requests',
    ['model', 'analysis_type', 'status']  # status: 'success', 'error', 'cached'
)

llm_request_duration_seconds = Histogram(
    'llm_request_duration_seconds',
    'LLM request duration in seconds',
    ['model', 'analysis_type'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0)
)

llm_errors_total = Counter(
    'llm_errors_total',
    'Total number of LLM errors',
    ['model', 'error_type']
)

# ============================================================================
# Domain Metrics
# ============================================================================

terms_created_total = Counter(
    'terms_created_total',
    'Total number of terms created',
    ['source']  # source: 'api', 'proposal', 'import'
)

proposals_decided_total = Counter(
    'proposals_decided_total',
    'Total number of proposal decisions',
    ['status']  # status: 'approved', 'rejected', 'on_hold'
)

reviews_performed_total = Counter(
    'reviews_performed_total',
    'Total number of term reviews performed',
    ['status']
)

search_queries_total = Counter(
    'search_queries_total',
    'Total number of search queries',
    ['backend']  # backend: 'database', 'meilisearch'
)

search_index_errors_total = Counter(
    'search_index_errors_total',
    'Search index synchronization failures',
    ['operation']
)

# ============================================================================
# System Info
# ============================================================================

app_info = Info(
    'app_info',
    'Application information'
)

_settings = get_settings()
app_info.info({
    'app_name': _settings.app_name,
    'app_env': _settings.app_env,
    'version': __version__,
})


def _metrics_registry():
    """Registry to expose; aggregates worker files in multiprocess mode"""
    if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
        registry = CollectorRegistry()
        MultiProcessCollector(registry)
        return registry
    return REGISTRY


def get_metrics() -> bytes:
    """
    Get Prometheus metrics in text format

    Returns:
        bytes: Metrics in Prometheus text format
    """
    return generate_latest(_metrics_registry())


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
