"""
API routes for exporting and importing the catalog
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session

from ubiquitous.core.auth import require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.schemas.insight import ImportResult, ImportValidationResponse
from ubiquitous.services.export_service import ExportService
from ubiquitous.services.import_service import ImportService
from ubiquitous.utils.datetime_utils import utc_today

router = APIRouter(prefix="/api", tags=["export-import"])


@router.get("/export/json")
async def export_json(db: Session = Depends(get_db)):
    """Whole catalog as a JSON document that /api/import/json accepts"""
    data = ExportService(db).export_json()
    return JSONResponse(
        content=data,
        headers={"Content-Disposition": f'attachment; filename="ubiquitous-language-{utc_today().isoformat()}.json"'}
    )


@router.get("/export/markdown", response_class=PlainTextResponse)
async def export_markdown(db: Session = Depends(get_db)):
    """Glossary as Markdown, grouped by bounded context"""
    return PlainTextResponse(
        content=ExportService(db).export_markdown(),
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="ubiquitous-language-{utc_today().isoformat()}.md"'}
    )


@router.post("/import/json", response_model=ImportResult)
async def import_json(
    data: Dict[str, Any] = Body(...),
    skip_existing: bool = False,
    validate_only: bool = False,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Import an export document; existing items are left untouched"""
    return ImportService(db).import_json(
        data,
        user_id,
        skip_existing=skip_existing,
        validate_only=validate_only
    )


@router.post("/import/validate", response_model=ImportValidationResponse)
async def validate_import(data: Dict[str, Any] = Body(...)):
    errors = ImportService.validate_import_data(data)
    return ImportValidationResponse(valid=not errors, errors=errors)
