# src/tasklog/items/completion.py

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..core.ports import ItemRepo, OccurrenceOracle
from .errors import StateConflictError
from .item_models import ItemKind, RecurringTask, RecurringTaskRecord
from .item_query import ItemQuery

logger = logging.getLogger(__name__)

ALREADY_COMPLETED_MSG = "This recurring task has already been completed for this iteration"


def _completion_query(task: RecurringTask, last_occurrence: int) -> ItemQuery:
    if task.id is None:
        raise ValueError("recurring task has no id")
    return (
        ItemQuery()
        .with_kind(ItemKind.RECURRING_TASK_RECORD)
        .with_recurring_task_id(task.id)
        .with_good_until_range(last_occurrence, None)
        .with_limit(1)
    )


def is_interval_complete(
    repo: ItemRepo,
    oracle: OccurrenceOracle,
    task: RecurringTask,
    now: int,
) -> bool:
    """
    True iff a completion record covers the current interval.

    The interval starts at the last occurrence at or before `now`; a record
    covers it when its good_until lies strictly after that instant.
    """
    last = oracle.last_occurrence(task.cron_schedule, now)
    return bool(repo.scan(_completion_query(task, last)))


def mark_completion(
    repo: ItemRepo,
    oracle: OccurrenceOracle,
    tasks: Iterable[RecurringTask],
    now: int,
) -> list[RecurringTask]:
    """Set `interval_complete` on each task in place and return them as a list."""
    out = list(tasks)
    for task in out:
        task.interval_complete = is_interval_complete(repo, oracle, task, now)
    return out


def complete_recurring(
    repo: ItemRepo,
    oracle: OccurrenceOracle,
    task: RecurringTask,
    now: int,
    comment: str | None = None,
) -> RecurringTaskRecord:
    """
    Record completion of the current interval of `task`.

    The record stays valid until the next occurrence after `now`.
    Raises StateConflictError if the interval is already covered.
    """
    if is_interval_complete(repo, oracle, task, now):
        raise StateConflictError(ALREADY_COMPLETED_MSG)

    content = f"Completed Recurring Task: {task.content}"
    if comment:
        content = f"{content}\n{comment}"

    record = RecurringTaskRecord(
        category=task.category,
        content=content,
        create_time=int(now),
        recurring_task_id=int(task.id),  # type: ignore[arg-type]
        good_until=oracle.next_occurrence(task.cron_schedule, now),
        owner_id=task.owner_id,
        namespace_id=task.namespace_id,
    )
    record.id = repo.insert(record)
    task.interval_complete = True
    logger.info(
        "Recurring task completed id=%s good_until=%s record_id=%s",
        task.id,
        record.good_until,
        record.id,
    )
    return record
