"""
Credit Ingest - Document Registration and Report Ingestion

register_document: persist an upstream-parsed document with its fingerprint.
ingest_document: canonicalize a stored document into a new report.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from ..models.db_models import ReportDB, UploadedDocumentDB
from ..models.ssot import ParsedDocument
from .canonical import canonicalize, serialize_record
from .errors import DocumentNotFoundError, NoMappingsError
from .fingerprint import compute_report_fingerprint
from .mapping_registry import MappingRegistry

logger = logging.getLogger(__name__)


def register_document(
    db: Session,
    document: ParsedDocument,
    filename: str,
    mime_type: str = "application/json",
    file_size: int = 0,
) -> UploadedDocumentDB:
    """Store a parsed document. The fingerprint is computed here if not supplied."""
    fingerprint = document.report_fingerprint
    if fingerprint is None:
        fingerprint = compute_report_fingerprint(document.parsed_data)

    row = UploadedDocumentDB(
        id=str(uuid4()),
        user_id=document.user_id,
        filename=filename,
        mime_type=mime_type,
        file_size=file_size,
        source_type=document.source_type,
        parsed_data=document.parsed_data,
        report_fingerprint=fingerprint,
        uploaded_at=document.uploaded_at,
    )
    db.add(row)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)

    logger.info(
        f"Registered document {row.id} ({row.source_type}) "
        f"fingerprint={row.report_fingerprint or '<none>'}"
    )
    return row


def ingest_document(
    db: Session,
    uploaded_document_id: str,
    registry: Optional[MappingRegistry] = None,
) -> Tuple[ReportDB, Dict[str, Any]]:
    """
    Canonicalize an uploaded document with its source type's mappings and
    persist the result as a report.

    Returns the report row and the serialized canonical record.
    """
    document = db.query(UploadedDocumentDB).filter(UploadedDocumentDB.id == uploaded_document_id).first()
    if document is None:
        raise DocumentNotFoundError(f"Document {uploaded_document_id} not found")

    registry = registry or MappingRegistry(db)
    mappings = registry.get_mappings(document.source_type)
    if not mappings:
        raise NoMappingsError(f"No mappings defined for sourceType {document.source_type}")

    canonical_data = serialize_record(canonicalize(document.parsed_data, mappings))

    report = ReportDB(
        id=str(uuid4()),
        uploaded_document_id=document.id,
        source_type=document.source_type,
        canonical_data=canonical_data,
        raw_payload=document.parsed_data,
    )
    db.add(report)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Ingested document {document.id} into report {report.id}: "
        f"{len(canonical_data)}/{len(mappings)} fields mapped"
    )
    return report, canonical_data
