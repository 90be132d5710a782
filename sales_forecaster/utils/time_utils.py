"""Time helpers shared by the pipeline and reporting layers."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def run_stamp(ts: datetime | None = None) -> str:
    """Compact filesystem-safe timestamp, e.g. ``20261019T153000Z``."""
    return (ts or utcnow()).strftime("%Y%m%dT%H%M%SZ")
