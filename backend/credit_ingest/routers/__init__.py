"""Credit Ingest - API Routers"""
from .auth import router as auth_router
from .canonical_fields import router as canonical_fields_router
from .field_mappings import router as field_mappings_router
from .uploaded_documents import router as uploaded_documents_router
from .reports import router as reports_router

__all__ = [
    "auth_router",
    "canonical_fields_router",
    "field_mappings_router",
    "uploaded_documents_router",
    "reports_router",
]
