"""
Exhibition floor plan service — shared utilities.

Pure functions used across the whole package. No imports from other
expo_floor modules except ``core``.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from expo_floor.core.constants import DURATION_UNITS
from expo_floor.core.errors import ValidationError

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_NUMERIC_SUFFIX_RE = re.compile(r"\d+")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id(prefix: str) -> str:
    """Return a collision-resistant shape id like ``booth-3f2a…``."""
    return f"{prefix}-{uuid.uuid4().hex}"


def parse_duration(value: Union[int, float, str, None]) -> int:
    """Return a duration in whole seconds.

    Accepts a number of seconds or a string with an optional unit suffix
    (``"90"``, ``"30m"``, ``"24h"``, ``"7d"``, ``"2w"``).
    """
    if value is None:
        raise ValidationError("Duration is required")
    if isinstance(value, bool):
        raise ValidationError("Duration must be a number of seconds or a string like '24h'")
    if isinstance(value, (int, float)):
        return int(value)
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValidationError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * DURATION_UNITS[(unit or "s").lower()]


def booth_number_suffix(booth_number: Optional[str]) -> int:
    """Numeric part of a booth number (``"B12"`` -> 12, ``"Hall-A"`` -> 0)."""
    if not booth_number:
        return 0
    digits = "".join(_NUMERIC_SUFFIX_RE.findall(booth_number))
    return int(digits) if digits else 0
