"""Timestamp helpers shared by domain objects and storage."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime using the recommended approach."""
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    """Serialize a datetime as ISO-8601, assuming UTC for naive values."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def from_iso(value: str) -> datetime:
    """Parse an ISO-8601 string produced by :func:`to_iso`."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
