"""
Credit Ingest - Service Errors

Raised only for structurally invalid configuration or missing records.
Per-field problems (unresolved paths, failed coercion) are never errors.
"""
from typing import Iterable, List


class InvalidMappingPayloadError(Exception):
    """Raised when a mapping batch is structurally malformed."""
    pass


class UnknownCanonicalFieldError(Exception):
    """Raised when a mapping batch targets canonical fields that do not exist."""

    def __init__(self, unknown_names: Iterable[str]):
        self.unknown_names: List[str] = list(dict.fromkeys(unknown_names))
        super().__init__(f"Unknown canonical fields: {', '.join(self.unknown_names)}")


class DocumentNotFoundError(Exception):
    """Raised when an uploaded document id does not exist."""
    pass


class NoMappingsError(Exception):
    """Raised when a source type has no usable field mappings."""
    pass
