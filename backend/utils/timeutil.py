"""
Timestamp helpers.

Columns store naive UTC datetimes, so everything written goes through utcnow().
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
