"""
Credit Ingest - SQLAlchemy ORM Models
Persistent storage for canonical fields, field mappings, uploaded documents and reports
"""
from sqlalchemy import Column, String, Integer, DateTime, Text, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base
from .ssot import utcnow


class UserDB(Base):
    """User account. Admins manage canonical fields and mappings."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # UUID
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")  # "user" or "admin"
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    documents = relationship("UploadedDocumentDB", back_populates="user")


# =============================================================================
# MAPPING STORE
# =============================================================================

class CanonicalFieldDB(Base):
    """A named, typed slot in the canonical schema."""
    __tablename__ = "canonical_fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    # Free text, matched by family: string, int, float/decimal, bool, date/datetime
    data_type = Column(String(50), nullable=False, default="string")
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    # Relationships
    mappings = relationship("FieldMappingDB", back_populates="canonical_field")


class FieldMappingDB(Base):
    """Source-specific path expression mapped onto a canonical field."""
    __tablename__ = "field_mappings"
    __table_args__ = (
        UniqueConstraint(
            "source_type", "source_field", "target_field",
            name="uq_field_mapping_source_target",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_type = Column(String(100), nullable=False, index=True)
    source_field = Column(String(500), nullable=False)  # Path expression, e.g. CREDIT_LIABILITY[*].Balance
    target_field = Column(String(100), nullable=False)  # Canonical field name
    canonical_field_id = Column(
        Integer, ForeignKey("canonical_fields.id", ondelete="SET NULL"), nullable=True, index=True
    )

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    canonical_field = relationship("CanonicalFieldDB", back_populates="mappings")


# =============================================================================
# DOCUMENT + REPORT STORES
# =============================================================================

class UploadedDocumentDB(Base):
    """Uploaded report after upstream parsing into a nested JSON value."""
    __tablename__ = "uploaded_documents"

    id = Column(String(36), primary_key=True)  # UUID
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    filename = Column(String(500), nullable=False)
    mime_type = Column(String(100), default="application/json")
    file_size = Column(Integer, default=0)
    source_type = Column(String(100), nullable=False, default="ManualUpload")

    parsed_data = Column(JSON)
    # Similarity key over identity + account signals; "" when there is not enough signal
    report_fingerprint = Column(String(32), nullable=True, index=True)

    uploaded_at = Column(DateTime, default=utcnow, index=True)

    # Relationships
    user = relationship("UserDB", back_populates="documents")
    reports = relationship("ReportDB", back_populates="uploaded_document", cascade="all, delete-orphan")


class ReportDB(Base):
    """Canonical record produced from one uploaded document."""
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True)  # UUID
    uploaded_document_id = Column(
        String(36), ForeignKey("uploaded_documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    source_type = Column(String(100), nullable=False)

    # Flat canonical field name -> scalar (dates stored as ISO-8601 strings)
    canonical_data = Column(JSON)
    raw_payload = Column(JSON)

    created_at = Column(DateTime, default=utcnow)

    # Relationships
    uploaded_document = relationship("UploadedDocumentDB", back_populates="reports")
