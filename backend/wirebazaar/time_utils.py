"""
Timestamps are stored UTC-naive and leave the API as ISO-8601 strings with
a trailing "Z" (second precision), matching what the storefront client
writes into the local order slot.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_from_now(days: int) -> datetime:
    return utcnow() + timedelta(days=days)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2025-10-14T09:30:00Z", "...+05:30" or a naive string -> UTC-naive
    datetime. Empty input -> None. Raises ValueError on garbage.
    """
    if not value or not value.strip():
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Naive values are taken as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
