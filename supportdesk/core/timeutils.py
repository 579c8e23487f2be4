"""Timestamp helpers.

All persisted timestamps are naive UTC datetimes.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_midnight_utc() -> datetime:
    """Start of the current local day, expressed as naive UTC."""
    midnight = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)
