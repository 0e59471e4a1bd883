"""Timestamp and identifier helpers shared by the services."""

from datetime import datetime, timezone

from ulid import ULID


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string (timestamptz friendly)."""
    return datetime.now(timezone.utc).isoformat()


def generate_id() -> str:
    """Generate a text-based record ID (ULID format)."""
    return str(ULID())
