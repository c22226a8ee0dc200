"""Miscellaneous helper functions."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional


def new_id() -> str:
    """Return a server-generated opaque identifier."""
    return str(uuid.uuid4())


def utcnow() -> dt.datetime:
    """Current UTC time as a naive datetime (the form stored in the database)."""
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: dt.datetime) -> dt.datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: str | None) -> Optional[dt.datetime]:
    """Parse an ISO8601 datetime string into a :class:`datetime` object.

    Some clients send timestamps ending with a lowercase ``z`` instead of
    the canonical ``Z``.  This function normalises that case and returns
    ``None`` if the value cannot be parsed.
    """
    if not value:
        return None
    try:
        if value[-1:] in ("z", "Z"):
            value = value[:-1] + "+00:00"
        return dt.datetime.fromisoformat(value)
    except ValueError:
        return None
