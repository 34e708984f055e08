"""
Document model for the Cosmos DB query engine.

Documents are plain JSON values as produced by ``json.loads``: ``dict``,
``list``, ``str``, ``int``/``float``, ``bool`` and ``None``. This module
adds the pieces the query engine needs on top of them:

- ``MISSING``: sentinel for "field or parameter not present", distinct
  from an explicit JSON null (``None``)
- permissive coercion helpers that return ``None`` instead of raising
- case-insensitive key lookup
- ``compare_values``: the generic ordering used by ORDER BY and by the
  comparison operators when values are not numeric

Author: LocalCosmos Team
"""

import json
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


class _MissingType:
    """Singleton type of the MISSING sentinel."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING = _MissingType()

# Full-string decimal number: sign, digits, optional fraction, optional exponent
_NUMBER_RE = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?\s*$")

# ISO 8601 date or date-time (YYYY-MM-DD[THH:MM[:SS[.fff]]][Z|+HH:MM])
_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?"
    r"(?:Z|[+-]\d{2}:?\d{2})?$"
)


def is_missing(value: Any) -> bool:
    """Check whether value is the MISSING sentinel."""
    return value is MISSING


def is_null_or_missing(value: Any) -> bool:
    """Check whether value is JSON null or MISSING."""
    return value is None or value is MISSING


def is_number(value: Any) -> bool:
    """
    Check if value is a native JSON number.

    Booleans are excluded even though ``bool`` subclasses ``int``.
    """
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a value to float using the shared numeric rule.

    A value is numeric if it is a native number, or a string that fully
    parses as a decimal number.

    Returns:
        Float value, or None if the value is not numeric
    """
    if is_number(value):
        try:
            return float(value)
        except OverflowError:
            # int beyond float range
            return math.inf if value > 0 else -math.inf
    if isinstance(value, str) and _NUMBER_RE.match(value):
        return float(value)
    return None


def to_boolean(value: Any) -> Optional[bool]:
    """
    Coerce a value to bool.

    Returns:
        The bool itself, the parsed value of a 'true'/'false' string
        (case-insensitive), or None
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def to_text(value: Any) -> Optional[str]:
    """
    Render a value as text, the way it would appear in JSON output.

    Strings are returned unquoted; objects and arrays as compact JSON.

    Returns:
        Text form, or None for null/missing
    """
    if is_null_or_missing(value):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 date/date-time string.

    Naive values are interpreted as UTC so that every parsed timestamp is
    comparable with every other.

    Returns:
        Timezone-aware datetime, or None if value is not date-like
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and _TIMESTAMP_RE.match(value.strip()):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def lookup_key(obj: Dict[str, Any], key: str) -> Any:
    """
    Look up a key with exact match first, then case-insensitive fallback.

    Args:
        obj: JSON object
        key: Key to find

    Returns:
        Value of the first matching key, or MISSING
    """
    if key in obj:
        return obj[key]

    lowered = key.lower()
    for candidate, value in obj.items():
        if isinstance(candidate, str) and candidate.lower() == lowered:
            return value

    return MISSING


def get_document_id(document: Dict[str, Any]) -> Optional[str]:
    """
    Get a document's identifier from ``id``, falling back to ``Id``.

    Returns:
        Identifier as text, or None if the document has neither
    """
    for key in ("id", "Id"):
        value = document.get(key)
        if value is not None:
            return to_text(value)
    return None


def compare_values(left: Any, right: Any) -> int:
    """
    Generic three-way comparison used for ordering.

    Rules, in order:
    - null and MISSING sort before everything else and equal each other
    - two numeric values compare by value
    - two values of the same comparable type (str, bool, datetime) compare natively
    - anything else compares by text form (ordinal)

    Returns:
        Negative, zero or positive like ``cmp``
    """
    left_null = is_null_or_missing(left)
    right_null = is_null_or_missing(right)
    if left_null and right_null:
        return 0
    if left_null:
        return -1
    if right_null:
        return 1

    if is_number(left) and is_number(right):
        # int/float comparison is exact in Python, no conversion needed
        return _cmp(left, right)

    for native in (str, bool, datetime):
        if isinstance(left, native) and isinstance(right, native):
            if native is not bool or (type(left) is bool and type(right) is bool):
                return _cmp(left, right)

    return _cmp(to_text(left), to_text(right))


def _cmp(left: Any, right: Any) -> int:
    if left < right:
        return -1
    if left > right:
        return 1
    return 0
