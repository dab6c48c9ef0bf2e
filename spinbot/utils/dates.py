# spinbot/utils/dates.py
from __future__ import annotations

from datetime import datetime, timezone


def utc_now_naive() -> datetime:
    # stored in DB as naive UTC (timezone=False columns)
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_remaining(ms: int) -> str:
    """14h 03m / 12m 05s / 40s"""
    total = max(0, int(ms) // 1000)
    hours, rem = divmod(total, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    if minutes:
        return f"{minutes}m {seconds:02d}s"
    return f"{seconds}s"


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
