"""Lenient coercion of untrusted JSON values."""

import math
from typing import Any, Optional


def as_string(value: Any) -> Optional[str]:
    """Trimmed string, or None for non-strings and blank strings."""
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def as_int(value: Any) -> Optional[int]:
    """Floor a number or numeric string; None when not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return math.floor(number)


def clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def truncate(value: str, max_chars: int) -> str:
    return value if len(value) <= max_chars else value[:max_chars]
