# src/tasklog/items/item_api.py

"""
Item operations used by the command layer.

Add operations create items directly. Every single-item operation addresses
its target by a 1-based position from the last list (display cache): the
cache must be valid and the position must exist.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from ..core.state import AppState
from .annotations import TaskLink, TaskNote
from .completion import complete_recurring
from .errors import CacheInvalidError, NotFoundError, StateConflictError
from .item_models import (
    Item,
    ItemStatus,
    Record,
    RecurringTask,
    RecurringTaskRecord,
    Task,
)
from .occurrence import end_of_day, validate_schedule

logger = logging.getLogger(__name__)


def _now(now: int | None) -> int:
    return int(time.time()) if now is None else int(now)


def _require_category(category: str) -> str:
    cat = (category or "").strip()
    if not cat:
        raise ValueError("category is required")
    return cat


def _require_content(content: str) -> str:
    text = (content or "").strip()
    if not text:
        raise ValueError("content is required")
    return text


def _stored_id(item: Item) -> int:
    if item.id is None:
        raise NotFoundError(f"{item.kind} has not been stored")
    return item.id


# ---- additions ----


def add_task(
    state: AppState,
    *,
    category: str,
    content: str,
    target_time: int | None = None,
    reminder_days: int | None = None,
    priority: int | None = None,
    estimate_minutes: int | None = None,
    project: str | None = None,
    now: int | None = None,
) -> Task:
    """Add a task; without a target time it is due at the end of today (local time)."""
    ts = _now(now)
    task = Task(
        category=_require_category(category),
        content=_require_content(content),
        create_time=ts,
        target_time=end_of_day(ts) if target_time is None else int(target_time),
        reminder_days=reminder_days,
        priority=priority,
        estimate_minutes=estimate_minutes,
        project=project,
        owner_id=state.user_id,
    )
    task.id = state.items.insert(task)
    logger.info("Task added id=%s category=%s due=%s", task.id, task.category, task.target_time)
    return task


def add_record(state: AppState, *, category: str, content: str, now: int | None = None) -> Record:
    record = Record(
        category=_require_category(category),
        content=_require_content(content),
        create_time=_now(now),
        owner_id=state.user_id,
    )
    record.id = state.items.insert(record)
    logger.info("Record added id=%s category=%s", record.id, record.category)
    return record


def add_recurring_task(
    state: AppState,
    *,
    category: str,
    content: str,
    schedule: str,
    human_schedule: str | None = None,
    now: int | None = None,
) -> RecurringTask:
    task = RecurringTask(
        category=_require_category(category),
        content=_require_content(content),
        create_time=_now(now),
        cron_schedule=validate_schedule(schedule),
        human_schedule=human_schedule,
        owner_id=state.user_id,
    )
    task.id = state.items.insert(task)
    logger.info("Recurring task added id=%s schedule=%r", task.id, task.cron_schedule)
    return task


# ---- position resolution ----


def resolve_position(state: AppState, position: int) -> Item:
    if not state.display_cache.validate():
        raise CacheInvalidError()
    item_id = state.display_cache.read(int(position))
    if item_id is None:
        raise NotFoundError(f"index {position} does not exist")
    return state.items.get(item_id)


# ---- single-item operations ----


@dataclass(slots=True)
class Completion:
    item: Task | RecurringTask
    record: Record | RecurringTaskRecord


def complete_item(
    state: AppState,
    position: int,
    *,
    comment: str | None = None,
    status: ItemStatus = ItemStatus.DONE,
    now: int | None = None,
) -> Completion:
    """
    Complete the task at `position`.

    A task gets its status set and a "Completed Task" record is appended.
    A recurring task gets a completion record valid until its next occurrence.
    """
    ts = _now(now)
    item = resolve_position(state, position)

    if isinstance(item, RecurringTask):
        rec = complete_recurring(state.items, state.oracle, item, ts, comment)
        return Completion(item=item, record=rec)

    if not isinstance(item, Task):
        raise StateConflictError("Cannot complete a record")

    if comment:
        item.content = f"{item.content}\n{comment}"

    record = Record(
        category=item.category,
        content=f"Completed Task: {item.content}",
        create_time=ts,
        owner_id=state.user_id,
        namespace_id=item.namespace_id,
    )
    item.status = ItemStatus(status)
    with state.items.transaction() as conn:
        record.id = state.items.insert(record, conn=conn)
        state.items.update(item, conn=conn)
    logger.info("Task completed id=%s status=%s record_id=%s", item.id, item.status.name, record.id)
    return Completion(item=item, record=record)


def delete_item(state: AppState, position: int) -> Item:
    item = resolve_position(state, position)
    item_id = _stored_id(item)
    with state.items.transaction() as conn:
        state.items.delete(item_id, conn=conn)
        notes = state.notes.delete_for_item(item_id, conn=conn)
        links = state.links.delete_for_item(item_id, conn=conn)
    logger.info("Item deleted id=%s kind=%s notes=%s links=%s", item_id, item.kind, notes, links)
    return item


@dataclass(frozen=True, slots=True)
class ItemUpdate:
    content: str | None = None
    add_content: str | None = None
    category: str | None = None
    target_time: int | None = None
    schedule: str | None = None
    human_schedule: str | None = None
    status: ItemStatus | None = None
    reminder_days: int | None = None


def update_item(state: AppState, position: int, changes: ItemUpdate) -> Item:
    item = resolve_position(state, position)

    if isinstance(item, RecurringTask):
        if changes.status is not None:
            raise StateConflictError("Cannot update status for recurring tasks")
        if changes.add_content is not None:
            raise StateConflictError("Cannot use add_content for recurring tasks, use content instead")
        if changes.target_time is not None:
            raise StateConflictError("Recurring tasks have no due time, use a schedule instead")
        if changes.schedule is not None:
            item.cron_schedule = validate_schedule(changes.schedule)
            item.human_schedule = changes.human_schedule or changes.schedule
    else:
        if changes.schedule is not None:
            raise StateConflictError("Only recurring tasks have a schedule")
        if changes.target_time is not None:
            if not isinstance(item, Task):
                raise StateConflictError("Records have no due time")
            item.target_time = int(changes.target_time)
        if changes.add_content is not None:
            item.content = f"{item.content}\n{changes.add_content}"
        if changes.status is not None:
            if not isinstance(item, Task):
                raise StateConflictError("Records have no status")
            item.status = ItemStatus(changes.status)
        if changes.reminder_days is not None:
            item.reminder_days = int(changes.reminder_days)

    if changes.category is not None:
        item.category = _require_category(changes.category)
    if changes.content is not None:
        item.content = _require_content(changes.content)

    state.items.update(item)
    logger.info("Item updated id=%s kind=%s", item.id, item.kind)
    return item


def add_note(state: AppState, position: int, content: str) -> tuple[Item, int]:
    item = resolve_position(state, position)
    if item.is_record:
        raise StateConflictError("Cannot add notes to records")
    note_id = state.notes.add(_stored_id(item), content, created_by=state.user_id)
    return item, note_id


def add_link(
    state: AppState,
    position: int,
    link_type: str,
    reference: str,
    *,
    title: str | None = None,
) -> tuple[Item, int]:
    item = resolve_position(state, position)
    if item.is_record:
        raise StateConflictError("Cannot add links to records")
    link_id = state.links.add(_stored_id(item), link_type, reference, title=title, created_by=state.user_id)
    return item, link_id


def claim_item(state: AppState, position: int) -> Item:
    item = resolve_position(state, position)
    if item.is_record:
        raise StateConflictError("Cannot claim a record")
    if state.user_id is None:
        raise StateConflictError("No current user id configured; set TASKLOG_USER_ID")

    if item.assignee_id is not None:
        if item.assignee_id == state.user_id:
            raise StateConflictError("You are already assigned to this task")
        raise StateConflictError("Task is already assigned. Use update command to reassign.")

    item.assignee_id = state.user_id
    state.items.update(item)
    logger.info("Item claimed id=%s assignee=%s", item.id, state.user_id)
    return item


@dataclass(slots=True)
class ItemDetails:
    position: int
    item: Item
    notes: list[TaskNote] = field(default_factory=list)
    links: list[TaskLink] = field(default_factory=list)


def show_item(state: AppState, position: int) -> ItemDetails:
    item = resolve_position(state, position)
    item_id = _stored_id(item)
    return ItemDetails(
        position=int(position),
        item=item,
        notes=state.notes.for_item(item_id),
        links=state.links.for_item(item_id),
    )
