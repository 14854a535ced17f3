# src/tasklog/items/item_models.py

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import ClassVar, TypeAlias


def _now() -> int:
    return int(time.time())


class ItemKind(StrEnum):
    """Discriminator stored in the `kind` column of the items table."""

    TASK = "task"
    RECORD = "record"
    RECURRING_TASK = "recurring_task"
    RECURRING_TASK_RECORD = "recurring_task_record"


class ItemStatus(IntEnum):
    ONGOING = 0
    DONE = 1
    CANCELLED = 2
    DUPLICATE = 3
    SUSPENDED = 4
    REMOVED = 5
    PENDING = 6

    @classmethod
    def from_db(cls, raw: int | None) -> ItemStatus:
        if raw is None:
            return cls.ONGOING
        try:
            return cls(int(raw))
        except ValueError:
            return cls.ONGOING


class StatusGroup(StrEnum):
    """Aggregate status selectors accepted by list operations."""

    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


OPEN_STATUSES: tuple[ItemStatus, ...] = (
    ItemStatus.ONGOING,
    ItemStatus.PENDING,
    ItemStatus.SUSPENDED,
)
CLOSED_STATUSES: tuple[ItemStatus, ...] = (
    ItemStatus.DONE,
    ItemStatus.CANCELLED,
    ItemStatus.DUPLICATE,
    ItemStatus.REMOVED,
)

_STATUS_ALIASES: dict[str, ItemStatus | StatusGroup] = {
    "ongoing": ItemStatus.ONGOING,
    "done": ItemStatus.DONE,
    "complete": ItemStatus.DONE,
    "completed": ItemStatus.DONE,
    "cancelled": ItemStatus.CANCELLED,
    "canceled": ItemStatus.CANCELLED,
    "cancel": ItemStatus.CANCELLED,
    "duplicate": ItemStatus.DUPLICATE,
    "suspended": ItemStatus.SUSPENDED,
    "deferred": ItemStatus.SUSPENDED,
    "shelved": ItemStatus.SUSPENDED,
    "removed": ItemStatus.REMOVED,
    "remove": ItemStatus.REMOVED,
    "unneeded": ItemStatus.REMOVED,
    "pending": ItemStatus.PENDING,
    "open": StatusGroup.OPEN,
    "closed": StatusGroup.CLOSED,
    "all": StatusGroup.ALL,
}


def parse_status(raw: str) -> ItemStatus | StatusGroup:
    """Map a user-supplied status word to a literal status or a status group."""
    key = (raw or "").strip().lower()
    try:
        return _STATUS_ALIASES[key]
    except KeyError:
        raise ValueError(f"Unknown status {raw!r}") from None


def expand_status(selector: ItemStatus | StatusGroup) -> list[ItemStatus] | None:
    """
    Expand a selector into the literal status set the query compiler understands.

    None means "no status filter".
    """
    if selector == StatusGroup.ALL:
        return None
    if selector == StatusGroup.OPEN:
        return list(OPEN_STATUSES)
    if selector == StatusGroup.CLOSED:
        return list(CLOSED_STATUSES)
    return [ItemStatus(selector)]


@dataclass(slots=True, kw_only=True)
class ItemBase:
    """
    Fields shared by every item kind.

    `id` is None until the item has been inserted.
    """

    kind: ClassVar[ItemKind]

    category: str
    content: str
    id: int | None = None
    create_time: int = field(default_factory=_now)
    modify_time: int | None = None

    reminder_days: int | None = None
    project: str | None = None
    priority: int | None = None
    estimate_minutes: int | None = None

    owner_id: int | None = None
    assignee_id: int | None = None
    namespace_id: int | None = None
    issue_ref: str | None = None

    @property
    def title(self) -> str:
        lines = self.content.splitlines()
        return lines[0] if lines else ""

    @property
    def is_record(self) -> bool:
        return self.kind in (ItemKind.RECORD, ItemKind.RECURRING_TASK_RECORD)


@dataclass(slots=True, kw_only=True)
class Task(ItemBase):
    kind: ClassVar[ItemKind] = ItemKind.TASK

    target_time: int
    status: ItemStatus = ItemStatus.ONGOING


@dataclass(slots=True, kw_only=True)
class Record(ItemBase):
    kind: ClassVar[ItemKind] = ItemKind.RECORD


@dataclass(slots=True, kw_only=True)
class RecurringTask(ItemBase):
    kind: ClassVar[ItemKind] = ItemKind.RECURRING_TASK

    cron_schedule: str
    human_schedule: str | None = None
    status: ItemStatus = ItemStatus.ONGOING

    # Computed per list call from completion records; never persisted.
    interval_complete: bool = field(default=False, compare=False)


@dataclass(slots=True, kw_only=True)
class RecurringTaskRecord(ItemBase):
    kind: ClassVar[ItemKind] = ItemKind.RECURRING_TASK_RECORD

    recurring_task_id: int
    good_until: int


Item: TypeAlias = "Task | Record | RecurringTask | RecurringTaskRecord"
