"""
Credit Ingest - Reports API Router

Turns an uploaded document into a canonical report using the mappings for
its source type. All endpoints require authentication.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import ReportDB, UploadedDocumentDB, UserDB
from ..services.errors import DocumentNotFoundError, NoMappingsError
from ..services.ingest import ingest_document
from ..auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


# =============================================================================
# PYDANTIC MODELS FOR API
# =============================================================================

class IngestRequest(BaseModel):
    uploadedDocumentId: str


class IngestResponse(BaseModel):
    reportId: str
    canonicalData: Dict[str, Any]


class ReportResponse(BaseModel):
    reportId: str
    uploadedDocumentId: str
    sourceType: str
    canonicalData: Dict[str, Any]
    createdAt: str


class ReportListResponse(BaseModel):
    reports: List[ReportResponse]


def to_response(report: ReportDB) -> ReportResponse:
    return ReportResponse(
        reportId=report.id,
        uploadedDocumentId=report.uploaded_document_id,
        sourceType=report.source_type,
        canonicalData=report.canonical_data or {},
        createdAt=report.created_at.isoformat() if report.created_at else "",
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/ingest", response_model=IngestResponse)
async def ingest_report(
    request: IngestRequest,
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Canonicalize an uploaded document into a new report."""
    owned = db.query(UploadedDocumentDB.id).filter(
        UploadedDocumentDB.id == request.uploadedDocumentId,
        UploadedDocumentDB.user_id == current_user.id
    ).first()
    if not owned:
        raise HTTPException(status_code=404, detail="Document not found")

    try:
        report, canonical_data = ingest_document(db, request.uploadedDocumentId)
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Document not found")
    except NoMappingsError:
        raise HTTPException(status_code=422, detail="No mappings defined for sourceType")
    except Exception as e:
        logger.error(f"Error ingesting document {request.uploadedDocumentId}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to ingest report: {e}")

    return IngestResponse(reportId=report.id, canonicalData=canonical_data)


@router.get("", response_model=ReportListResponse)
async def list_reports(
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    reports = db.query(ReportDB).join(UploadedDocumentDB).filter(
        UploadedDocumentDB.user_id == current_user.id
    ).order_by(ReportDB.created_at.desc()).all()
    return ReportListResponse(reports=[to_response(r) for r in reports])


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a canonical report. Only returns if its document is owned by the current user."""
    report = db.query(ReportDB).join(UploadedDocumentDB).filter(
        ReportDB.id == report_id,
        UploadedDocumentDB.user_id == current_user.id
    ).first()
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return to_response(report)
