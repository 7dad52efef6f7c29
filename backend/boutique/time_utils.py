"""
Timestamps are stored UTC-naive and rendered with a trailing "Z".

Report windows and expense dates work on calendar days, so the day helpers
below build the inclusive [00:00, 23:59:59.999999] bounds for a date.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _strip_tz(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2026-10-19T09:30", "2026-10-19T09:30:00Z" or "...+07:00" -> UTC-naive.

    Blank input gives None; offsets are folded into UTC. Raises ValueError on
    anything fromisoformat rejects.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    return _strip_tz(datetime.fromisoformat(text))


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """"YYYY-MM-DD" or a full timestamp -> date."""
    text = (value or "").strip()
    if not text:
        return None
    if "T" in text or " " in text:
        return parse_iso_datetime(text).date()
    return date.fromisoformat(text)


def to_utc_z(moment: Optional[datetime]) -> Optional[str]:
    if moment is None:
        return None
    stamp = _strip_tz(moment).replace(microsecond=0)
    return f"{stamp.isoformat()}Z"


def day_key(value: datetime | date) -> str:
    """Bucket key used by daily reports ("YYYY-MM-DD")."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)


def iter_days(first: date, last: date) -> Iterator[date]:
    day = first
    while day <= last:
        yield day
        day += timedelta(days=1)
