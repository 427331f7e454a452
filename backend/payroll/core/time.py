"""Time helpers shared across models and services."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return a naive UTC timestamp suitable for database columns."""
    return datetime.now(UTC).replace(tzinfo=None)
