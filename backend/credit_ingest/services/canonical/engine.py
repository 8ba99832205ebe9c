"""
Credit Ingest - Canonicalization Engine

Applies an ordered list of source -> canonical field mappings to parsed report
data and produces a flat canonical record.

Missing paths and values that fail coercion are skipped, so one bad field
never aborts the record. When two mappings target the same canonical field
the later one in the list wins.
"""
from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, Iterable

from ...models.ssot import CanonicalRecord, ResolvedMapping
from .coercion import coerce
from .path_resolver import is_present, resolve

logger = logging.getLogger(__name__)


def canonicalize(parsed_data: Any, mappings: Iterable[ResolvedMapping]) -> CanonicalRecord:
    """Build a canonical record from `parsed_data`. `parsed_data` is not modified."""
    record: CanonicalRecord = {}
    skipped = 0

    for mapping in mappings:
        raw_value = resolve(parsed_data, mapping.source_field)
        if not is_present(raw_value):
            skipped += 1
            continue

        coerced = coerce(raw_value, mapping.canonical_field.data_type)
        if coerced is None:
            skipped += 1
            continue

        record[mapping.canonical_field.name] = coerced

    logger.debug(f"Canonicalized {len(record)} fields, skipped {skipped} mappings")
    return record


def serialize_record(record: CanonicalRecord) -> Dict[str, Any]:
    """Convert a canonical record to its JSON form (datetimes as ISO-8601)."""
    def convert(value):
        if isinstance(value, datetime):
            return value.isoformat()
        return value
    return {name: convert(value) for name, value in record.items()}
