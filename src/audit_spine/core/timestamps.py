"""
UTC timestamp utilities (stdlib-only).

Audit records are ordered by timestamp, so every timestamp the engine
writes must be timezone-aware UTC and round-trip through ISO 8601 without
loss.

STDLIB ONLY - NO PYDANTIC.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO 8601 string."""
    if dt is None:
        return None
    return dt.isoformat()


def from_iso8601(s: str | None) -> datetime | None:
    """Parse ISO 8601 string to datetime."""
    if s is None:
        return None
    return datetime.fromisoformat(s)
