from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Gibt aktuelle UTC-Zeit (timezone-aware) zurück."""
    return datetime.now(timezone.utc)


def as_utc(ts: datetime | None) -> datetime | None:
    # SQLite liefert naive Zeitstempel zurück
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)
