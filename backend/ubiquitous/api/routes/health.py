"""
Health check endpoints
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ubiquitous import __version__
from ubiquitous.core.config import get_settings
from ubiquitous.core.database import get_db
from ubiquitous.core.llm_client import get_llm_client
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.services.search_service import SearchService
from ubiquitous.utils.datetime_utils import utc_now_iso

logger = LoggingConfig.get_logger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "timestamp": utc_now_iso(),
        "service": get_settings().app_name,
    }


@router.get("/health/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """
    Detailed health check with component status

    The database is required; search and the LLM assistant are optional and
    only degrade the overall status when configured but unreachable.
    """
    settings = get_settings()
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": utc_now_iso(),
        "service": settings.app_name,
        "version": __version__,
        "environment": settings.app_env,
        "components": {}
    }
    components = health_status["components"]
    overall = "healthy"

    # Database
    try:
        db.execute(text("SELECT 1"))
        components["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        overall = "unhealthy"
        components["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}",
            "error": type(e).__name__
        }

    # Search backend
    search = SearchService(db).health()
    components["search"] = search
    if search["status"] != "healthy" and overall == "healthy":
        overall = "degraded"

    # LLM assistant
    llm = get_llm_client()
    if llm is None:
        components["llm"] = {"status": "not_configured", "message": "OLLAMA_URL is not set"}
    else:
        reachable = await llm.health_check()
        components["llm"] = {
            "status": "healthy" if reachable else "unavailable",
            "url": llm.base_url,
            "model": llm.model,
            "reachable": reachable,
        }
        if not reachable and overall == "healthy":
            overall = "degraded"

    health_status["status"] = overall
    return health_status


@router.get("/health/liveness")
async def liveness_check():
    """Process is up; no dependency checks"""
    return {"status": "alive", "timestamp": utc_now_iso()}
