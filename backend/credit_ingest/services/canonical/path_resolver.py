"""
Credit Ingest - Path Resolver

Evaluates dotted path expressions against parsed report data.

Syntax:
    BORROWER.Name.FirstName          plain keys
    CREDIT_LIABILITY[*].Balance      first element that yields a value
    CREDIT_LIABILITY[2].Balance      explicit index
    scores.1                         list index, or the key "1" on an object

Parsed reports often wrap scalar-ish fields in one-element arrays, so a plain
key whose value is a list is transparently replaced by its first element when
more path follows.
"""
from __future__ import annotations
import re
from typing import Any, List, Optional, Tuple

WILDCARD = "[*]"

_INDEX_RE = re.compile(r"^(.*)\[(\d+)\]$")


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def split_path(path: str) -> List[str]:
    """Split a path expression into its non-empty segments."""
    return [segment for segment in path.split(".") if segment]


def _parse_index(segment: str) -> Tuple[str, Optional[int]]:
    """Split "key[3]" into ("key", 3); a bare "3" is ("", 3) and may still be an object key."""
    if segment.isdigit():
        return "", int(segment)
    match = _INDEX_RE.match(segment)
    if match:
        return match.group(1), int(match.group(2))
    return segment, None


def _lookup(node: Any, key: str) -> Any:
    if not isinstance(node, dict) or key not in node:
        return MISSING
    return node[key]


def _addresses_list(segment: str) -> bool:
    """True for segments that index the current list themselves ("0", "[*]", "[2]")."""
    if segment == WILDCARD:
        return True
    key, index = _parse_index(segment)
    return index is not None and not key


def is_present(value: Any) -> bool:
    """True when a resolved value counts as present (not MISSING, not null)."""
    return value is not MISSING and value is not None


def resolve(root: Any, path: str) -> Any:
    """
    Resolve `path` against `root`.

    Returns the matched value (which may be None for a JSON null), or MISSING.
    `root` is never modified.
    """
    if not path:
        return root
    return _resolve_segments(root, split_path(path))


def _resolve_segments(root: Any, segments: List[str]) -> Any:
    current = root
    for position, segment in enumerate(segments):
        remaining = segments[position + 1:]

        if segment.endswith(WILDCARD):
            key = segment[: -len(WILDCARD)]
            collection = _lookup(current, key) if key else current
            if not isinstance(collection, list):
                return MISSING
            for element in collection:
                found = _resolve_segments(element, remaining) if remaining else element
                if is_present(found):
                    return found
            return MISSING

        key, index = _parse_index(segment)
        # A bare number indexes lists only; on objects it is an ordinary key
        if index is not None and (key or isinstance(current, list)):
            container = _lookup(current, key) if key else current
            if not isinstance(container, list) or index >= len(container):
                return MISSING
            current = container[index]
            continue

        current = _lookup(current, segment)
        if current is MISSING:
            return MISSING
        if isinstance(current, list) and remaining and not _addresses_list(remaining[0]):
            # Implicit descent only ever takes the first element
            if not current:
                return MISSING
            current = current[0]

    return current
