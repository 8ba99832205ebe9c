"""
Credit Ingest - Field Mappings API Router

Batch upsert of source -> canonical field mappings. A batch is validated in
full before the store is touched: malformed payloads get 400, unknown target
fields get 422 with every unknown name listed.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import UserDB
from ..services.errors import InvalidMappingPayloadError, UnknownCanonicalFieldError
from ..services.mapping_registry import MappingRegistry, parse_mapping_batch
from ..auth import get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/field-mappings", tags=["field-mappings"])


# =============================================================================
# PYDANTIC MODELS FOR API
# =============================================================================

class FieldMappingResponse(BaseModel):
    sourceType: str
    sourceField: str
    targetField: str
    dataType: str
    canonicalFieldId: int


class FieldMappingListResponse(BaseModel):
    sourceType: str
    mappings: List[FieldMappingResponse]


class SourceTypesResponse(BaseModel):
    sourceTypes: List[str]


class UpsertResponse(BaseModel):
    saved: int


class DeleteResponse(BaseModel):
    status: str
    mapping_id: int


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.get("", response_model=FieldMappingListResponse)
async def list_field_mappings(
    sourceType: str = Query(..., min_length=1),
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mappings applied to documents of `sourceType`, in application order."""
    mappings = MappingRegistry(db).get_mappings(sourceType)
    return FieldMappingListResponse(
        sourceType=sourceType,
        mappings=[
            FieldMappingResponse(
                sourceType=sourceType,
                sourceField=m.source_field,
                targetField=m.canonical_field.name,
                dataType=m.canonical_field.data_type,
                canonicalFieldId=m.canonical_field.id,
            )
            for m in mappings
        ],
    )


@router.get("/source-types", response_model=SourceTypesResponse)
async def list_source_types(
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return SourceTypesResponse(sourceTypes=MappingRegistry(db).list_source_types())


@router.post("", response_model=UpsertResponse)
async def upsert_field_mappings(
    payload: Dict[str, Any] = Body(...),
    admin: UserDB = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Upsert a batch: {"sourceType": str, "mappings": [{"sourceField": str, "targetField": str}]}.
    All or nothing.
    """
    try:
        source_type, mappings = parse_mapping_batch(payload)
        saved = MappingRegistry(db).upsert_mappings(source_type, mappings)
    except InvalidMappingPayloadError as e:
        raise HTTPException(status_code=400, detail=f"Invalid payload: {e}")
    except UnknownCanonicalFieldError as e:
        return JSONResponse(
            status_code=422,
            content={"detail": str(e), "unknownFields": e.unknown_names},
        )
    except Exception as e:
        logger.error(f"Error saving field mappings: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to save mappings: {e}")

    return UpsertResponse(saved=len(saved))


@router.delete("/{mapping_id}", response_model=DeleteResponse)
async def delete_field_mapping(
    mapping_id: int,
    admin: UserDB = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if not MappingRegistry(db).delete_mapping(mapping_id):
        raise HTTPException(status_code=404, detail="Mapping not found")
    logger.info(f"Field mapping {mapping_id} deleted by {admin.email}")
    return DeleteResponse(status="deleted", mapping_id=mapping_id)
