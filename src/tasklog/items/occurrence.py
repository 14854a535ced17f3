# src/tasklog/items/occurrence.py

"""
Occurrence oracle over cron schedules.

Schedules are standard 5-field cron expressions evaluated in the local time
zone. Timestamps in and out are integer epoch seconds.
"""

from __future__ import annotations

import logging
from datetime import datetime

from croniter import croniter
from dateutil import tz

from .errors import ScheduleError

logger = logging.getLogger(__name__)


def _local(ts: int) -> datetime:
    return datetime.fromtimestamp(int(ts), tz=tz.tzlocal())


def end_of_day(ts: int) -> int:
    """Last second of the local calendar day containing `ts`."""
    return int(_local(ts).replace(hour=23, minute=59, second=59, microsecond=0).timestamp())


def _iter(schedule: str, start: datetime) -> croniter:
    expr = (schedule or "").strip()
    if not expr:
        raise ScheduleError(schedule, "empty schedule")
    try:
        return croniter(expr, start)
    except (ValueError, KeyError) as e:
        raise ScheduleError(schedule, str(e)) from e


def validate_schedule(schedule: str) -> str:
    """Return the normalized expression or raise ScheduleError."""
    expr = (schedule or "").strip()
    if not expr or not croniter.is_valid(expr):
        raise ScheduleError(schedule, "expected a 5-field cron expression")
    return expr


class CronOracle:
    """Last/next occurrence of a cron schedule relative to `now`."""

    def last_occurrence(self, schedule: str, now: int) -> int:
        """Latest occurrence at or before `now`."""
        # croniter's get_prev is strict, so start one second later to include `now`.
        it = _iter(schedule, _local(int(now) + 1))
        ts = int(it.get_prev(datetime).timestamp())
        logger.debug("last_occurrence schedule=%r now=%s -> %s", schedule, now, ts)
        return ts

    def next_occurrence(self, schedule: str, now: int) -> int:
        """Earliest occurrence strictly after `now`."""
        it = _iter(schedule, _local(now))
        ts = int(it.get_next(datetime).timestamp())
        logger.debug("next_occurrence schedule=%r now=%s -> %s", schedule, now, ts)
        return ts
