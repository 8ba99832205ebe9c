"""Credit Ingest - Canonicalization Layer

Translates provider-specific parsed data into the canonical schema.
Pure functions only: no I/O, safe to call concurrently.
"""
from .path_resolver import MISSING, resolve, is_present
from .coercion import coerce
from .engine import canonicalize, serialize_record

__all__ = ["MISSING", "resolve", "is_present", "coerce", "canonicalize", "serialize_record"]
