# src/tasklog/cli/timeparse.py

"""
Human due-time parsing for the command line.

Accepted forms (local time):
- "today", "tomorrow", "yesterday": end of that day
- "tomorrow 5PM", "today 14:30": that day at the given time
- "+3d", "+2h", "+1w", "+30m": relative to now
- anything python-dateutil understands ("2026-11-02", "Nov 2 9am", ...);
  missing fields default to today at midnight
"""

from __future__ import annotations

import re
from datetime import datetime

from dateutil import parser as date_parser
from dateutil import tz
from dateutil.relativedelta import relativedelta

from ..items.occurrence import end_of_day

_RELATIVE_RE = re.compile(r"^\+(\d+)\s*([mhdw])$", re.IGNORECASE)
_DAY_WORDS = {"yesterday": -1, "today": 0, "tomorrow": 1}


def _local_now(now: int | None) -> datetime:
    if now is None:
        return datetime.now(tz=tz.tzlocal())
    return datetime.fromtimestamp(int(now), tz=tz.tzlocal())


def parse_due(raw: str, *, now: int | None = None) -> int:
    """Parse a due-time expression into epoch seconds; raises ValueError."""
    text = (raw or "").strip()
    if not text:
        raise ValueError("empty time expression")

    base = _local_now(now)
    midnight = base.replace(hour=0, minute=0, second=0, microsecond=0)

    m = _RELATIVE_RE.match(text)
    if m:
        n, unit = int(m.group(1)), m.group(2).lower()
        delta = {
            "m": relativedelta(minutes=n),
            "h": relativedelta(hours=n),
            "d": relativedelta(days=n),
            "w": relativedelta(weeks=n),
        }[unit]
        return int((base + delta).timestamp())

    head, _, rest = text.partition(" ")
    offset = _DAY_WORDS.get(head.lower())
    if offset is not None:
        day = midnight + relativedelta(days=offset)
        if not rest.strip():
            return end_of_day(int(day.timestamp()))
        text, midnight = rest.strip(), day

    try:
        parsed = date_parser.parse(text, default=midnight)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Cannot parse time {raw!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz.tzlocal())
    return int(parsed.timestamp())


def days_from_now(days: int, *, now: int | None = None) -> int:
    """Cutoff `days` whole days after now."""
    return int((_local_now(now) + relativedelta(days=int(days))).timestamp())


def days_before_now(days: int, *, now: int | None = None) -> int:
    return int((_local_now(now) - relativedelta(days=int(days))).timestamp())


def format_ts(ts: int | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(int(ts), tz=tz.tzlocal()).strftime("%Y-%m-%d %H:%M")
