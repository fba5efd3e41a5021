"""
Database configuration and session management
"""
import logging
import re
import time
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ubiquitous.core.config import get_settings
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.core.metrics import (db_connection_pool_checked_out,
                                     db_queries_total,
                                     db_query_duration_seconds)

# Lazy initialization - don't create engine at module level
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None

# Base class for models (can be created immediately)
Base = declarative_base()

_TABLE_PATTERNS = {
    'select': re.compile(r'\bFROM\s+"?(\w+)"?', re.IGNORECASE),
    'insert': re.compile(r'\bINTO\s+"?(\w+)"?', re.IGNORECASE),
    'update': re.compile(r'^\s*UPDATE\s+"?(\w+)"?', re.IGNORECASE),
    'delete': re.compile(r'\bFROM\s+"?(\w+)"?', re.IGNORECASE),
}


def _statement_labels(statement: str):
    """Extract (operation, table) labels from a SQL statement"""
    stripped = statement.strip()
    operation = stripped.split(None, 1)[0].lower() if stripped else "unknown"
    table = "unknown"
    pattern = _TABLE_PATTERNS.get(operation)
    if pattern:
        match = pattern.search(stripped)
        if match:
            table = match.group(1).lower()
    return operation, table


def _setup_db_metrics(engine: Engine):
    """Setup SQLAlchemy event listeners for database metrics"""

    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault('query_start_time', []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if not conn.info.get('query_start_time'):
            return
        duration = time.time() - conn.info['query_start_time'].pop()
        operation, table = _statement_labels(statement)
        db_queries_total.labels(operation=operation, table=table).inc()
        db_query_duration_seconds.labels(operation=operation, table=table).observe(duration)

    @event.listens_for(engine, "checkout")
    def receive_checkout(dbapi_conn, connection_record, connection_proxy):
        db_connection_pool_checked_out.inc()

    @event.listens_for(engine, "checkin")
    def receive_checkin(dbapi_conn, connection_record):
        db_connection_pool_checked_out.dec()


def _enable_sqlite_foreign_keys(engine: Engine):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection"""

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _engine_options(database_url: str, settings) -> dict:
    options = {
        "pool_pre_ping": True,
        "echo": settings.log_sqlalchemy,
    }
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection keeps the in-memory database alive
            options["poolclass"] = StaticPool
    else:
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
        if database_url.startswith("postgresql"):
            options["connect_args"] = {
                "connect_timeout": 5,
                "options": "-c statement_timeout=5000",
            }
    return options


def get_engine() -> Engine:
    """Get or create database engine (lazy initialization)"""
    global _engine
    if _engine is None:
        settings = get_settings()
        LoggingConfig.configure()

        database_url = settings.database_url
        _engine = create_engine(database_url, **_engine_options(database_url, settings))

        if not settings.log_sqlalchemy:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

        if _engine.dialect.name == "sqlite":
            _enable_sqlite_foreign_keys(_engine)
        _setup_db_metrics(_engine)

    return _engine


def get_session_local() -> sessionmaker:
    """Get or create session factory (lazy initialization)"""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def __getattr__(name):
    """Expose engine and SessionLocal as lazily created module attributes"""
    if name == 'engine':
        return get_engine()
    elif name == 'SessionLocal':
        return get_session_local()
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
