"""
Field value validation for the preview/fill-in mode.

validate_field_value() returns a short message for the first failed
check, or None when the value is acceptable.
"""

import logging
import re
from typing import Any, Optional

from surveydoc.model import Field
from surveydoc.visibility import as_number, value_to_string


logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

NUMERIC_TYPES = frozenset({"number", "slider"})


def is_empty_value(value: Any) -> bool:
    """None, "" and empty lists count as "no answer"."""
    return value is None or value == "" or (isinstance(value, (list, tuple)) and len(value) == 0)


def validate_field_value(field: Field, value: Any) -> Optional[str]:
    """
    Check a value against the field's constraints.

    Checks, in order:
        - required: value must not be empty
        - number/slider: min and max bounds (non-numeric input is not
          range-checked)
        - pattern: regex search on the string form of a non-empty
          value; an invalid pattern is ignored
        - email: simple "a@b.c" shape

    Returns:
        Message string, or None if valid
    """
    if field.required and is_empty_value(value):
        return "Required"

    if field.type in NUMERIC_TYPES and not is_empty_value(value):
        num = as_number(value)
        if num is not None:
            if field.min is not None and num < field.min:
                return f"Must be >= {_fmt(field.min)}"
            if field.max is not None and num > field.max:
                return f"Must be <= {_fmt(field.max)}"

    if field.pattern and not is_empty_value(value):
        try:
            matched = re.search(field.pattern, value_to_string(value))
        except re.error:
            logger.debug("Ignoring invalid pattern %r on field %r", field.pattern, field.name)
        else:
            if not matched:
                return "Invalid format"

    if field.type == "email":
        s = value_to_string(value)
        if s and not _EMAIL_RE.match(s):
            return "Invalid email address"

    return None


def _fmt(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)
