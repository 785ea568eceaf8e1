"""
Time helpers.

Columns are declared ``DateTime(timezone=True)``; PostgreSQL hands back aware
values but SQLite returns naive ones, so everything read from the store goes
through ``as_utc`` before comparison.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
