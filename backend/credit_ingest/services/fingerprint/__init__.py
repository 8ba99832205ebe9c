"""Credit Ingest - Report Fingerprinting"""
from .engine import (
    compute_report_fingerprint,
    build_fingerprint_content,
    normalize_string,
    rolling_hash,
    FINGERPRINT_PREFIX,
)

__all__ = [
    "compute_report_fingerprint",
    "build_fingerprint_content",
    "normalize_string",
    "rolling_hash",
    "FINGERPRINT_PREFIX",
]
