"""
Credit Ingest - Report Fingerprint

Computes a short similarity key for a parsed credit report from stable
identity and account signals. Two uploads describing the same consumer and
accounts produce the same key regardless of casing, whitespace or account
order. Used to correlate and order uploads, not for security.

Format: "fp_" + base-36 of a 32-bit rolling hash, or "" when the report
carries no usable signal. The hash matches previously stored fingerprints
bit for bit, so it must not change.
"""
from __future__ import annotations
import logging
import re
from typing import Any, List

from ..canonical.path_resolver import resolve

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

FINGERPRINT_PREFIX = "fp_"

# Identity paths, in the order their parts are emitted
IDENTITY_PATHS = [
    # MISMO-style borrower block
    "BORROWER.BORROWER_DETAIL.Name.FirstName",
    "BORROWER.BORROWER_DETAIL.Name.LastName",
    "BORROWER.BORROWER_DETAIL.CONTACT_DETAIL.CONTACT_POINT.ContactPointTelephoneValue",
    "BORROWER.SSN.SSNIdentifier",
    # Flat keys used by simpler sources
    "firstName",
    "lastName",
    "ssn",
    "ssnLast4",
]

LIABILITY_PATH = "CREDIT_LIABILITY"

ACCOUNT_PATHS = [
    "CreditLiabilityAccountIdentifier",
    "CreditLiabilityCreditorName",
    "CreditLiabilityAccountType",
]

MAX_ACCOUNTS = 20

_WHITESPACE_RE = re.compile(r"\s+")
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def normalize_string(value: Any) -> str:
    """Trim, lowercase and collapse whitespace runs; non-strings become ""."""
    if not isinstance(value, str):
        return ""
    return _WHITESPACE_RE.sub(" ", value.strip().lower())


def _signal(value: Any) -> str:
    """Normalized string for a resolved value, "" when it is not a non-blank string."""
    if isinstance(value, str) and value.strip():
        return normalize_string(value)
    return ""


def extract_identity_parts(parsed_data: Any) -> List[str]:
    parts = []
    for path in IDENTITY_PATHS:
        normalized = _signal(resolve(parsed_data, path))
        if normalized:
            parts.append(f"{path}={normalized}")
    return parts


def extract_account_keys(parsed_data: Any) -> List[str]:
    """
    One "id|creditor|type" key per liability (first MAX_ACCOUNTS only), sorted
    so account order in the source does not matter.
    """
    liabilities = resolve(parsed_data, LIABILITY_PATH)
    if not isinstance(liabilities, list):
        return []

    keys = []
    for liability in liabilities[:MAX_ACCOUNTS]:
        fields = [_signal(resolve(liability, path)) for path in ACCOUNT_PATHS]
        fields = [f for f in fields if f]
        if fields:
            keys.append("|".join(fields))
    return sorted(keys)


def rolling_hash(content: str) -> int:
    """
    hash = hash * 31 + code_unit, wrapped to a signed 32-bit integer.

    Iterates UTF-16 code units so non-BMP characters hash the same way
    stored fingerprints were produced.
    """
    encoded = content.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return h


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


# =============================================================================
# PUBLIC API
# =============================================================================

def build_fingerprint_content(parsed_data: Any) -> str:
    """The normalized signal string the fingerprint is hashed from."""
    parts = extract_identity_parts(parsed_data)
    accounts = extract_account_keys(parsed_data)
    if accounts:
        parts.append(f"accounts={','.join(accounts)}")
    return ";".join(parts)


def compute_report_fingerprint(parsed_data: Any) -> str:
    """
    Fingerprint a parsed report.

    Returns "" when no identity or account signal is present; callers must
    treat an empty fingerprint as never matching anything.
    """
    content = build_fingerprint_content(parsed_data)
    if not content:
        return ""
    return f"{FINGERPRINT_PREFIX}{to_base36(abs(rolling_hash(content)))}"
