"""
Credit Ingest - Type Coercion

Converts raw extracted values into canonical values for a declared data type.
Coercion never raises: a value that cannot be converted yields None and the
caller skips the field.
"""
from __future__ import annotations
import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

from ...models.ssot import CanonicalValue, DataTypeFamily

logger = logging.getLogger(__name__)


TRUE_TOKENS = {"true", "1", "yes", "y"}
FALSE_TOKENS = {"false", "0", "no", "n"}

EPOCH = datetime(1970, 1, 1)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never counts as a number here
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# =============================================================================
# FAMILY COERCERS
# =============================================================================

def coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        token = value.strip().lower()
        if token in TRUE_TOKENS:
            return True
        if token in FALSE_TOKENS:
            return False
    return None


def _to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted and made naive."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def coerce_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a date or timestamp into a naive UTC datetime.

    Numbers are epoch milliseconds. Strings try ISO-8601 first and then fall
    back to dateutil's parser for formats like "03/15/2021". Parts missing from
    a partial date ("March", "15") come from 1970-01-01, never from today.
    """
    if isinstance(value, datetime):
        return _to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if _is_number(value):
        if not math.isfinite(value):
            return None
        try:
            return EPOCH + timedelta(milliseconds=value)
        except OverflowError:
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return _to_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            pass
        try:
            return _to_utc(date_parser.parse(text, default=EPOCH))
        except (ValueError, OverflowError):
            return None
    return None


def coerce_number(value: Any) -> Optional[float]:
    """
    Parse a number, stripping thousands separators from strings.

    Integral results come back as int so "1,200" canonicalizes to 1200.
    Underscore grouping and non-ASCII digits are rejected.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        if not cleaned or "_" in cleaned or not cleaned.isascii():
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    if number.is_integer():
        return int(number)
    return number


def coerce_string(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return _number_text(value)
    return None


_COERCERS = {
    DataTypeFamily.BOOLEAN: coerce_bool,
    DataTypeFamily.DATE: coerce_datetime,
    DataTypeFamily.NUMBER: coerce_number,
    DataTypeFamily.STRING: coerce_string,
}


def coerce(value: Any, declared_type: Optional[str]) -> Optional[CanonicalValue]:
    """Coerce `value` to the family of `declared_type`; None means no usable value."""
    family = DataTypeFamily.from_declared(declared_type)
    result = _COERCERS[family](value)
    if result is None and value is not None:
        logger.debug(f"Could not coerce {type(value).__name__} to {family.value}")
    return result
