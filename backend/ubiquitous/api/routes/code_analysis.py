"""
API routes for terminology analysis of source code
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from ubiquitous.core.auth import require_user_id
from ubiquitous.core.database import get_db
from ubiquitous.core.exceptions import ValidationError
from ubiquitous.schemas.insight import (CodeAnalysisReport,
                                        CodeAnalysisRequest,
                                        CodeAnalysisSummary)
from ubiquitous.services.code_analysis_service import CodeAnalysisService

router = APIRouter(prefix="/api/code-analysis", tags=["code-analysis"])

MAX_UPLOAD_BYTES = 1024 * 1024


@router.post("/upload", response_model=CodeAnalysisReport, status_code=status.HTTP_201_CREATED)
async def upload_code(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    """Analyze an uploaded source file"""
    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise ValidationError(f"File is too large (limit is {MAX_UPLOAD_BYTES // 1024} KB)")
    try:
        code = content.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("File must be UTF-8 encoded text")

    service = CodeAnalysisService(db)
    analysis = service.analyze_code(file.filename or "upload", code, user_id)
    return service.get_report(analysis.id)


@router.post("", response_model=CodeAnalysisReport, status_code=status.HTTP_201_CREATED)
async def analyze_code(
    request: CodeAnalysisRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id)
):
    service = CodeAnalysisService(db)
    analysis = service.analyze_code(request.file_name, request.code, user_id)
    return service.get_report(analysis.id)


@router.get("", response_model=List[CodeAnalysisSummary])
async def list_analyses(limit: int = Query(50, ge=1, le=200), db: Session = Depends(get_db)):
    return CodeAnalysisService(db).list_analyses(limit)


@router.get("/{analysis_id}/report", response_model=CodeAnalysisReport)
async def get_report(analysis_id: UUID, db: Session = Depends(get_db)):
    return CodeAnalysisService(db).get_report(analysis_id)
