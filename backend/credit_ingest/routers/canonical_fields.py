"""
Credit Ingest - Canonical Fields API Router

Lists the canonical vocabulary; admins create and retype fields.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import CanonicalFieldDB, UserDB
from ..services.errors import InvalidMappingPayloadError
from ..services.mapping_registry import MappingRegistry
from ..auth import get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/canonical-fields", tags=["canonical-fields"])


# =============================================================================
# PYDANTIC MODELS FOR API
# =============================================================================

class CanonicalFieldResponse(BaseModel):
    id: int
    name: str
    dataType: str
    description: Optional[str] = None


class CanonicalFieldListResponse(BaseModel):
    fields: List[CanonicalFieldResponse]


class CanonicalFieldRequest(BaseModel):
    name: str
    dataType: str = "string"
    description: Optional[str] = None


def to_response(field: CanonicalFieldDB) -> CanonicalFieldResponse:
    return CanonicalFieldResponse(
        id=field.id,
        name=field.name,
        dataType=field.data_type,
        description=field.description,
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.get("", response_model=CanonicalFieldListResponse)
async def list_canonical_fields(
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List canonical fields ordered by name."""
    fields = MappingRegistry(db).list_canonical_fields()
    return CanonicalFieldListResponse(fields=[to_response(f) for f in fields])


@router.post("", response_model=CanonicalFieldResponse)
async def upsert_canonical_field(
    request: CanonicalFieldRequest,
    admin: UserDB = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a canonical field, or update the type and description of an existing one."""
    try:
        field = MappingRegistry(db).upsert_canonical_field(
            request.name, request.dataType, request.description
        )
    except InvalidMappingPayloadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Canonical field {field.name} ({field.data_type}) saved by {admin.email}")
    return to_response(field)
