from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 rendering of a stored UTC datetime, ``None`` passes through."""
    if value is None:
        return None
    return value.isoformat() + "Z"
