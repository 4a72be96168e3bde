"""Shared utilities for price tracking."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the convention used for every stored timestamp)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_timestamp(ts: float | None) -> datetime:
    """Convert optional Unix timestamp (seconds) to naive UTC datetime; fallback to utcnow."""
    if ts is None:
        return utcnow()
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


def parse_iso_timestamp(value: str | None) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into naive UTC; fallback to utcnow."""
    if not value:
        return utcnow()
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return utcnow()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
