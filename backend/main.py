"""
Main FastAPI application entry point
"""
import warnings

# Suppress Pydantic protected namespace warnings
warnings.filterwarnings('ignore', message='.*has conflict with protected namespace.*', category=UserWarning)

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ubiquitous import __version__
from ubiquitous.api.routes import (ai, analytics, code_analysis, contexts,
                                   contexts_pages, dashboard_pages,
                                   discussions, discussions_pages,
                                   export_import, health, metrics, onboarding,
                                   proposals, relationships,
                                   relationships_pages, reviews, search,
                                   search_pages, terms, terms_pages)
from ubiquitous.core.config import get_settings
from ubiquitous.core.exceptions import UbiquitousError
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.core.middleware import LoggingContextMiddleware
from ubiquitous.core.middleware_metrics import MetricsMiddleware
from ubiquitous.core.templates import STATIC_DIR

# Configure logging first
LoggingConfig.configure()

logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode...")
    logger.info(
        "Optional services",
        extra={
            "search_backend": "meilisearch" if settings.meilisearch_enabled else "database",
            "llm_enabled": settings.llm_enabled,
        }
    )

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    from ubiquitous.core.search_client import get_search_client
    search_client = get_search_client()
    if search_client is not None:
        search_client.close()


_settings = get_settings()
app = FastAPI(
    title=_settings.app_name,
    description="Shared glossary of domain terms for DDD teams",
    version=__version__,
    lifespan=lifespan,
)

# Add logging context middleware (before CORS to capture all requests)
app.add_middleware(LoggingContextMiddleware)
app.add_middleware(MetricsMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(UbiquitousError)
async def ubiquitous_exception_handler(request: Request, exc: UbiquitousError):
    """Map service errors to their HTTP status"""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        exc.message,
        extra={
            "error_type": type(exc).__name__,
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "type": type(exc).__name__}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    # Don't handle HTTPException - let FastAPI handle it
    if isinstance(exc, FastAPIHTTPException):
        raise exc

    logger.error(
        "Unhandled exception",
        exc_info=True,
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if STATIC_DIR.exists():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# API
app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(contexts.router)
app.include_router(terms.router)
app.include_router(relationships.router)
app.include_router(proposals.router)
app.include_router(discussions.router)
app.include_router(reviews.router)
app.include_router(onboarding.router)
app.include_router(search.router)
app.include_router(analytics.router)
app.include_router(export_import.router)
app.include_router(code_analysis.router)
app.include_router(ai.router)

# Web pages
app.include_router(dashboard_pages.router)
app.include_router(terms_pages.router)
app.include_router(contexts_pages.router)
app.include_router(discussions_pages.router)
app.include_router(relationships_pages.router)
app.include_router(search_pages.router)


@app.get("/api")
async def root():
    """Root API endpoint"""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": __version__,
        "status": "running",
        "environment": settings.app_env,
    }


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development",
    )
