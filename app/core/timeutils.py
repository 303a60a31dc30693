from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as an aware UTC datetime; every stored timestamp uses this."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive input (e.g. a query string without offset) is taken to be UTC
    if value is None or value.utcoffset() is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
