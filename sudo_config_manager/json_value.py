"""Typed accessors for parsed JSON values.

Parsed JSON arrives as plain dicts, lists, strings, numbers, booleans and
None. These helpers read a single field and return it only when it has the
expected JSON type, otherwise None. They never raise. opt_millis is the one
lenient reader, for timestamps that may arrive as numeric strings.

Note that bool is a subclass of int in Python, so `true` is never accepted
where an integer is expected.
"""

import math
from typing import Any, Dict, Optional


def is_object(value: Any) -> bool:
    """Return True if value is a JSON object."""
    return isinstance(value, dict)


def is_int(value: Any) -> bool:
    """Return True if value is a JSON integer (booleans excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value: Any) -> bool:
    """Return True if value is a JSON number (booleans excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def opt_object(container: Any, key: str) -> Optional[Dict[str, Any]]:
    """Return container[key] if it is a JSON object."""
    if not is_object(container):
        return None
    value = container.get(key)
    return value if is_object(value) else None


def opt_int(container: Any, key: str) -> Optional[int]:
    """Return container[key] if it is a JSON integer."""
    if not is_object(container):
        return None
    value = container.get(key)
    return value if is_int(value) else None


def opt_str(container: Any, key: str) -> Optional[str]:
    """Return container[key] if it is a JSON string."""
    if not is_object(container):
        return None
    value = container.get(key)
    return value if isinstance(value, str) else None


def opt_millis(container: Any, key: str) -> Optional[int]:
    """
    Return container[key] as whole epoch milliseconds, or None.

    Unlike the other accessors this one is lenient: numeric strings such as
    "1700000000000" are accepted. Anything else, including non-finite
    values, reads as absent.
    """
    if not is_object(container):
        return None
    value = container.get(key)
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not is_number(value):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)
