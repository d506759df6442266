"""UTC helpers.

Datetime columns hold naive UTC. Anything compared against a clock goes
through ``as_utc`` first, so naive and aware values can be mixed safely.
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Aware UTC view of ``value``; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC, the form every datetime column holds."""
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)
