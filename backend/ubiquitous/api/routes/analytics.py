"""
API routes for analytics and activity tracking
"""
from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ubiquitous.core.auth import require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.schemas.insight import (DashboardMetrics, TrackActivityRequest,
                                        UserCount)
from ubiquitous.services.analytics_service import AnalyticsService
from ubiquitous.utils.datetime_utils import utc_today

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/metrics", response_model=DashboardMetrics)
async def get_dashboard_metrics(db: Session = Depends(get_db)):
    """Dashboard summary"""
    return AnalyticsService(db).get_metrics()


@router.get("/system")
async def get_system_metrics(db: Session = Depends(get_db)):
    return AnalyticsService(db).get_system_metrics()


@router.get("/user-activity")
async def get_user_activity_metrics(db: Session = Depends(get_db)):
    return AnalyticsService(db).get_user_activity_metrics()


@router.get("/coverage")
async def get_coverage_metrics(db: Session = Depends(get_db)):
    return AnalyticsService(db).get_coverage_metrics()


@router.get("/all")
async def get_all_metrics(db: Session = Depends(get_db)):
    return AnalyticsService(db).get_all_metrics()


@router.get("/top-proposers", response_model=List[UserCount])
async def get_top_proposers(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return AnalyticsService(db).get_top_proposers(limit)


@router.get("/top-reviewers", response_model=List[UserCount])
async def get_top_reviewers(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return AnalyticsService(db).get_top_reviewers(limit)


@router.get("/export")
async def export_metrics(format: str = "json", db: Session = Depends(get_db)):
    """All metrics as JSON, or as a CSV download with ``format=csv``"""
    exported = AnalyticsService(db).export_metrics(format)
    if isinstance(exported, str):
        return Response(
            content=exported,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="metrics-{utc_today().isoformat()}.csv"'}
        )
    return exported


@router.post("/track", status_code=status.HTTP_201_CREATED)
async def track_activity(
    request: TrackActivityRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    activity = AnalyticsService(db).track_user_activity(
        user_id,
        request.action,
        resource_type=request.resource_type,
        resource_id=request.resource_id,
        details=request.details
    )
    return {"id": activity.id, "action": activity.action, "created_at": activity.created_at}
