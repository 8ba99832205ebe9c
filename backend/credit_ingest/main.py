"""
Credit Ingest - FastAPI Application

Main entry point for the Credit Ingest backend.

Architecture:
- Upstream parser → parsedData (JSON) → UploadedDocument + report fingerprint
- UploadedDocument + FieldMappings(sourceType) → Canonicalization → Report
- Report fingerprint → upload gating (newer / duplicate uploads)
"""
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .routers import (
    auth_router,
    canonical_fields_router,
    field_mappings_router,
    uploaded_documents_router,
    reports_router,
)
from .database import init_db

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

logging.getLogger("credit_ingest").setLevel(LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Credit Ingest",
    description="""
    Credit Ingest - Canonical Report Ingestion

    Translates provider-specific credit report data into a stable canonical
    schema and detects duplicate or superseded uploads.

    ## Pipeline
    1. **Upload**: parsedData (already JSON) → UploadedDocument + fingerprint
    2. **Mappings**: admins map source paths onto canonical fields per source type
    3. **Ingest**: UploadedDocument → canonical Report
    4. **Gating**: fingerprint → newer/duplicate upload checks

    ## Key Principles
    - Missing or unconvertible fields are skipped, never fatal
    - Mapping batches are all-or-nothing
    - Fingerprints are similarity keys, not security hashes
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(canonical_fields_router)
app.include_router(field_mappings_router)
app.include_router(uploaded_documents_router)
app.include_router(reports_router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Credit Ingest",
        "version": __version__,
        "description": "Canonical report ingestion and upload fingerprinting",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# For running with: python -m credit_ingest.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
