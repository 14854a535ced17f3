# src/tasklog/cli/render.py

"""Plain-text rendering of items for command replies."""

from __future__ import annotations

from ..items.item_api import ItemDetails
from ..items.item_models import Item, ItemKind, RecurringTask, RecurringTaskRecord, Task
from .timeparse import format_ts

_KIND_LABELS = {
    ItemKind.TASK: "Task",
    ItemKind.RECORD: "Record",
    ItemKind.RECURRING_TASK: "Recurring Task",
    ItemKind.RECURRING_TASK_RECORD: "Recurring Task Record",
}


def kind_label(item: Item) -> str:
    return _KIND_LABELS.get(item.kind, str(item.kind))


def _due_label(item: Item, now: int) -> str:
    if isinstance(item, RecurringTask):
        mark = "x" if item.interval_complete else " "
        return f"[{mark}] {item.human_schedule or item.cron_schedule}"
    if isinstance(item, Task):
        days = (int(item.target_time) - int(now)) // 86400
        when = format_ts(item.target_time)
        if item.target_time < now:
            return f"{when} (overdue)"
        if days == 0:
            return f"{when} (today)"
        return f"{when} ({days}d)"
    return format_ts(item.create_time)


def format_row(position: int, item: Item, now: int) -> str:
    return f"{position:>3}. [{item.category}] {item.title}  | {_due_label(item, now)}"


def format_list(title: str, items: list[Item], *, has_next: bool, now: int) -> str:
    if not items:
        lines = [f"No {title.lower()} found"]
    else:
        lines = [f"{title} List:"]
        lines.extend(format_row(i, it, now) for i, it in enumerate(items, start=1))
    if has_next:
        lines.append("(more available: list --next)")
    return "\n".join(lines)


def format_details(details: ItemDetails, *, now: int) -> str:
    item = details.item
    lines = [f"{kind_label(item)} #{details.position}: {item.title}", "-" * 50]

    if isinstance(item, (Task, RecurringTask)):
        lines.append(f"  Status:     {item.status.name.lower()}")
    lines.append(f"  Category:   {item.category}")
    if item.priority is not None:
        lines.append(f"  Priority:   {item.priority}")
    if not item.is_record:
        lines.append(f"  Assignee:   {item.assignee_id if item.assignee_id is not None else 'unassigned'}")
    if item.project:
        lines.append(f"  Project:    {item.project}")

    if isinstance(item, RecurringTask):
        lines.append(f"  Schedule:   {item.human_schedule or item.cron_schedule}")
        if item.human_schedule and item.human_schedule != item.cron_schedule:
            lines.append(f"  Cron:       {item.cron_schedule}")
    elif isinstance(item, Task):
        lines.append(f"  Due:        {_due_label(item, now)}")
    elif isinstance(item, RecurringTaskRecord):
        lines.append(f"  Valid until: {format_ts(item.good_until)}")

    if item.estimate_minutes is not None:
        lines.append(f"  Estimate:   {item.estimate_minutes}m")
    if item.reminder_days is not None:
        lines.append(f"  Reminder:   {item.reminder_days} days before")
    lines.append(f"  Created:    {format_ts(item.create_time)}")
    if item.modify_time is not None and item.modify_time != item.create_time:
        lines.append(f"  Modified:   {format_ts(item.modify_time)}")

    content_lines = item.content.splitlines()
    if len(content_lines) > 1:
        lines.append("")
        lines.append("Content:")
        lines.extend(f"  {ln}" for ln in content_lines)

    if details.notes:
        lines.append("")
        lines.append("Notes:")
        for note in details.notes:
            lines.append(f"  [{format_ts(note.created_at)}] {note.content}")

    if details.links:
        lines.append("")
        lines.append("Links:")
        lines.extend(f"  {link.display()}" for link in details.links)

    return "\n".join(lines)
