"""
Forgetting-curve review schedule.

Every note gets three review dates at creation: 1, 3 and 7 calendar days
after it was written. A note is due once a review date has passed and the
note has not been reviewed since. Timestamps are epoch milliseconds.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from models import StudyNote

FORGETTING_CURVE_INTERVALS = (1, 3, 7)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_ms() -> int:
    return int(time.time() * 1000)


def resolve_timezone(name: str) -> Optional[tzinfo]:
    """Map a config value to a tzinfo; empty means server local time."""
    if not name:
        return None
    return ZoneInfo(name)


def _to_datetime(ms: int, tz: Optional[tzinfo]) -> datetime:
    # Whole seconds first so milliseconds survive without float rounding
    dt = datetime.fromtimestamp(ms // 1000, tz)
    return dt.replace(microsecond=(ms % 1000) * 1000)


def _to_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.astimezone()  # naive means server local time
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def compute_review_dates(created_at: int, tz: Optional[tzinfo] = None) -> list[int]:
    """Advance the creation time by 1, 3 and 7 calendar days.

    The day component is incremented on the local calendar, so the time of
    day is kept across daylight-saving changes (a review may be 23 or 25
    hours after the previous day's slot). With ``tz=None`` the server's
    local zone is used.
    """
    start = _to_datetime(created_at, tz)
    return [_to_ms(start + timedelta(days=days)) for days in FORGETTING_CURVE_INTERVALS]


def is_due(note: StudyNote, now: int) -> bool:
    """True if some review date has passed without a later review."""
    baseline = note.last_reviewed or 0
    return any(d <= now and d > baseline for d in note.review_dates)


def next_review_date(note: StudyNote) -> Optional[int]:
    """First scheduled review after the last review (or after creation)."""
    baseline = note.last_reviewed or note.created_at
    for d in note.review_dates:
        if d > baseline:
            return d
    return None


def split_due(notes: Iterable[StudyNote], now: int) -> tuple[list[StudyNote], list[StudyNote]]:
    """Partition notes into (due, others), keeping their stored order."""
    due: list[StudyNote] = []
    others: list[StudyNote] = []
    for note in notes:
        (due if is_due(note, now) else others).append(note)
    return due, others


def format_date(ms: Optional[int], tz: Optional[tzinfo] = None) -> str:
    if ms is None:
        return ""
    return _to_datetime(ms, tz).strftime("%Y-%m-%d")
