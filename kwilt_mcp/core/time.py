"""Time helpers.

Timestamps are stored as naive UTC datetimes so SQLite and Postgres
round-trip them identically.
"""

from datetime import UTC, datetime
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp as an ISO-8601 UTC string."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat() + "Z"
