"""
Credit Ingest - Single Source of Truth Models

In-memory shapes passed between the mapping registry and the core engines.
The core never sees ORM rows; the registry converts them into these.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# Any value the upstream parser can emit
JSONValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]

# Values a canonical record may hold
CanonicalValue = Union[str, int, float, bool, datetime]

CanonicalRecord = Dict[str, CanonicalValue]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the convention for stored timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# ENUMS
# =============================================================================

class DataTypeFamily(str, Enum):
    """Families a declared canonical data type is matched into."""
    BOOLEAN = "boolean"
    DATE = "date"
    NUMBER = "number"
    STRING = "string"

    @classmethod
    def from_declared(cls, declared_type: Optional[str]) -> "DataTypeFamily":
        """
        Match a free-text data type by case-insensitive substring.

        Order matters: "datetime" must land in DATE, and a type like
        "bool_int" is a BOOLEAN because bool is checked first.
        """
        declared = (declared_type or "").lower()
        if "bool" in declared:
            return cls.BOOLEAN
        if "date" in declared or "time" in declared:
            return cls.DATE
        if any(token in declared for token in ("int", "float", "number", "decimal")):
            return cls.NUMBER
        return cls.STRING


# =============================================================================
# MAPPING SHAPES
# =============================================================================

@dataclass(frozen=True)
class CanonicalFieldDef:
    """Canonical field definition as consumed by the canonicalization engine."""
    name: str
    data_type: str = "string"
    id: Optional[int] = None
    description: Optional[str] = None

    @property
    def family(self) -> DataTypeFamily:
        return DataTypeFamily.from_declared(self.data_type)


@dataclass(frozen=True)
class ResolvedMapping:
    """A source path joined with the canonical field it feeds."""
    source_field: str
    canonical_field: CanonicalFieldDef
    source_type: Optional[str] = None


@dataclass(frozen=True)
class MappingInput:
    """One (sourceField, targetField) pair of an upsert batch."""
    source_field: str
    target_field: str


# =============================================================================
# DOCUMENT SHAPE
# =============================================================================

@dataclass
class ParsedDocument:
    """One uploaded report, already reduced to nested JSON by the upstream parser."""
    parsed_data: JSONValue
    source_type: str
    uploaded_at: datetime = field(default_factory=utcnow)
    user_id: Optional[str] = None
    report_fingerprint: Optional[str] = None
