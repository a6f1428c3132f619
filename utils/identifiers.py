"""Identifier and timestamp helpers shared by the DAL classes."""

from datetime import datetime, timezone
from uuid import uuid4


def new_id() -> str:
    """Return a new primary key."""
    return uuid4().hex


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string with microseconds.

    Strings produced here sort lexically in chronological order.
    """
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
