"""
Credit Ingest - Upload Gating

Uses report fingerprints to tell whether a document has been superseded by a
newer upload of the same report, so a dispute round is not started on stale
data. An empty fingerprint never matches anything.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.db_models import UploadedDocumentDB

logger = logging.getLogger(__name__)


def find_newer_upload(
    db: Session,
    document: UploadedDocumentDB,
    fingerprint: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Optional[UploadedDocumentDB]:
    """
    Earliest upload after `document` that shares its fingerprint.

    `fingerprint` defaults to the document's own. The search is scoped to
    `user_id` when given, otherwise to the document's owner if it has one.
    """
    fingerprint = fingerprint if fingerprint is not None else document.report_fingerprint
    if not fingerprint:
        return None

    query = db.query(UploadedDocumentDB).filter(
        UploadedDocumentDB.report_fingerprint == fingerprint,
        UploadedDocumentDB.uploaded_at > document.uploaded_at,
        UploadedDocumentDB.id != document.id,
    )
    owner = user_id or document.user_id
    if owner:
        query = query.filter(UploadedDocumentDB.user_id == owner)

    newer = query.order_by(UploadedDocumentDB.uploaded_at.asc()).first()
    if newer:
        logger.info(f"Document {document.id} superseded by {newer.id}")
    return newer


def find_duplicates(db: Session, document: UploadedDocumentDB) -> List[UploadedDocumentDB]:
    """Other uploads by the same owner with the same non-empty fingerprint, oldest first."""
    if not document.report_fingerprint:
        return []

    query = db.query(UploadedDocumentDB).filter(
        UploadedDocumentDB.report_fingerprint == document.report_fingerprint,
        UploadedDocumentDB.id != document.id,
    )
    if document.user_id:
        query = query.filter(UploadedDocumentDB.user_id == document.user_id)
    return query.order_by(UploadedDocumentDB.uploaded_at.asc()).all()
