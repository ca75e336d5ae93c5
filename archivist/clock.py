"""UTC clock helpers for column defaults and run durations."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return the current time as an aware UTC datetime."""
    return dt.datetime.now(dt.UTC)


def elapsed_since(started_at: dt.datetime) -> dt.timedelta:
    """Return the time elapsed since the aware ``started_at``."""
    return utcnow() - started_at
