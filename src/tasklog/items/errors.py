# src/tasklog/items/errors.py

"""
Error hierarchy for the item subsystem.

Every error carries a user-facing message; the command layer prints it as is.
"""

from __future__ import annotations


class TasklogError(Exception):
    """Base class for all user-facing tasklog errors."""


class ConfigurationError(TasklogError):
    """A query was built with a value outside a static allow-list (fatal)."""


class StoreError(TasklogError):
    """The underlying SQLite storage failed."""


class NotFoundError(TasklogError):
    """A position, id or back-reference does not resolve to an item."""


class StateConflictError(TasklogError):
    """The requested mutation conflicts with the item's current state."""


class CacheInvalidError(TasklogError):
    """No list operation has populated the display cache since it was cleared."""

    def __init__(self, message: str = "Cache is not valid, consider running list command first") -> None:
        super().__init__(message)


class NoNextPageError(TasklogError):
    def __init__(self, message: str = "No next page available") -> None:
        super().__init__(message)


class ScheduleError(TasklogError):
    """A cron schedule could not be parsed."""

    def __init__(self, schedule: str, reason: str = "") -> None:
        self.schedule = schedule
        msg = f"Cannot parse schedule {schedule!r}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
