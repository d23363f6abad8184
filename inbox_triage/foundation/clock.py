"""Clock helpers for received times, event times and the triage "now".

Engines import ``utc_now`` by name, so tests patch it at the engine module
(e.g. ``inbox_triage.core.calendar_proximity.utc_now``).
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
