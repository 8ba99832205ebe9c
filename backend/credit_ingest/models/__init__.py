"""Credit Ingest - Data Models"""
from .ssot import (
    # Enums
    DataTypeFamily,
    # Type aliases
    JSONValue, CanonicalValue, CanonicalRecord,
    # Mapping shapes
    CanonicalFieldDef, ResolvedMapping, MappingInput,
    # Document shape
    ParsedDocument,
)

__all__ = [
    "DataTypeFamily",
    "JSONValue", "CanonicalValue", "CanonicalRecord",
    "CanonicalFieldDef", "ResolvedMapping", "MappingInput",
    "ParsedDocument",
]
