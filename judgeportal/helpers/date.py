from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the DB columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(raw) -> Optional[datetime]:
    """
    Accepts ISO-8601 strings ("2026-03-15T09:00:00", "...Z", "...+02:00").
    Aware values are converted to naive UTC. Returns None for empty input.
    Raises ValueError for anything unparseable.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        dt = raw
    else:
        text = str(raw).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt
