"""
Credit Ingest - Uploaded Documents API Router

Stores documents the upstream parser has already turned into JSON, fingerprints
them on the way in, and answers "has a newer copy of this report been uploaded?"
"""
from __future__ import annotations
import json
import logging
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import UploadedDocumentDB, UserDB
from ..models.ssot import ParsedDocument
from ..services.ingest import register_document
from ..services.upload_gating import find_duplicates, find_newer_upload
from ..auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploaded-documents", tags=["uploaded-documents"])


# =============================================================================
# PYDANTIC MODELS FOR API
# =============================================================================

class UploadRequest(BaseModel):
    filename: str
    sourceType: str = "ManualUpload"
    mimeType: str = "application/json"
    parsedData: Any = None


class ReportRef(BaseModel):
    id: str
    createdAt: str
    sourceType: str


class DocumentResponse(BaseModel):
    id: str
    filename: str
    mimeType: Optional[str] = None
    fileSize: int = 0
    uploadedAt: str
    sourceType: str
    reportFingerprint: Optional[str] = None
    parsedData: Any = None
    reports: List[ReportRef] = []


class DocumentRef(BaseModel):
    id: str
    filename: str
    uploadedAt: str


class DocumentListResponse(BaseModel):
    items: List[DocumentResponse]


class NewerUploadResponse(BaseModel):
    hasNewer: bool
    newerDocument: Optional[DocumentRef] = None


class DuplicatesResponse(BaseModel):
    fingerprint: str
    duplicates: List[DocumentRef]


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


def to_response(doc: UploadedDocumentDB) -> DocumentResponse:
    return DocumentResponse(
        id=doc.id,
        filename=doc.filename,
        mimeType=doc.mime_type,
        fileSize=doc.file_size or 0,
        uploadedAt=_iso(doc.uploaded_at),
        sourceType=doc.source_type,
        reportFingerprint=doc.report_fingerprint,
        parsedData=doc.parsed_data,
        reports=[
            ReportRef(id=r.id, createdAt=_iso(r.created_at), sourceType=r.source_type)
            for r in doc.reports
        ],
    )


def to_ref(doc: UploadedDocumentDB) -> DocumentRef:
    return DocumentRef(id=doc.id, filename=doc.filename, uploadedAt=_iso(doc.uploaded_at))


def get_owned_document(db: Session, document_id: str, user: UserDB) -> UploadedDocumentDB:
    document = db.query(UploadedDocumentDB).filter(
        UploadedDocumentDB.id == document_id,
        UploadedDocumentDB.user_id == user.id
    ).first()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.get("", response_model=DocumentListResponse)
async def list_documents(
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Latest 50 uploads of the authenticated user."""
    docs = db.query(UploadedDocumentDB).filter(
        UploadedDocumentDB.user_id == current_user.id
    ).order_by(UploadedDocumentDB.uploaded_at.desc()).limit(50).all()
    return DocumentListResponse(items=[to_response(d) for d in docs])


@router.post("", response_model=DocumentResponse)
async def upload_document(
    request: UploadRequest,
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Store a parsed document for the authenticated user.
    The report fingerprint is computed from `parsedData`.
    """
    parsed_data = request.parsedData
    if parsed_data is None:
        parsed_data = {"note": "No parsedData provided"}

    document = ParsedDocument(
        parsed_data=parsed_data,
        source_type=request.sourceType,
        user_id=current_user.id,
    )
    try:
        row = register_document(
            db,
            document,
            filename=request.filename,
            mime_type=request.mimeType,
            file_size=len(json.dumps(parsed_data).encode("utf-8")),
        )
    except Exception as e:
        logger.error(f"Error storing document: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to upload document: {e}")

    return to_response(row)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return to_response(get_owned_document(db, document_id, current_user))


@router.get("/{document_id}/newer", response_model=NewerUploadResponse)
async def check_newer_upload(
    document_id: str,
    fingerprint: Optional[str] = Query(None),
    userEmail: Optional[str] = Query(None),
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Is there a later upload of the same report? Used to gate dispute rounds
    on stale data. `fingerprint` defaults to the document's own; `userEmail`
    scopes the search to another user, otherwise the document's owner.
    """
    document = get_owned_document(db, document_id, current_user)

    user_id = None
    if userEmail:
        user = db.query(UserDB).filter(UserDB.email == userEmail).first()
        if user:
            user_id = user.id

    newer = find_newer_upload(db, document, fingerprint=fingerprint, user_id=user_id)
    return NewerUploadResponse(hasNewer=newer is not None, newerDocument=to_ref(newer) if newer else None)


@router.get("/{document_id}/duplicates", response_model=DuplicatesResponse)
async def list_duplicate_uploads(
    document_id: str,
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    document = get_owned_document(db, document_id, current_user)
    duplicates = find_duplicates(db, document)
    return DuplicatesResponse(
        fingerprint=document.report_fingerprint or "",
        duplicates=[to_ref(d) for d in duplicates],
    )
