# src/tasklog/cli/commands.py

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import click

from ..core.state import AppState
from ..items.errors import TasklogError
from ..items.item_api import (
    ItemUpdate,
    add_link,
    add_note,
    add_record,
    add_recurring_task,
    add_task,
    claim_item,
    complete_item,
    delete_item,
    show_item,
    update_item,
)
from ..items.item_models import ItemStatus, StatusGroup, parse_status
from ..items.listing import RecordListRequest, TaskListRequest, list_records, list_tasks
from .render import format_details, format_list, format_row, kind_label
from .timeparse import days_before_now, days_from_now, parse_due

logger = logging.getLogger(__name__)

_LIST_TARGETS = ("tasks", "task", "t", "records", "record", "r")


@dataclass(frozen=True, slots=True)
class CommandReply:
    text: str
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRegistry:
    """
    Registry of named click commands (task, list, done, ...).

    Each command receives the AppState as its context object and returns the
    reply text. Aliases resolve to the same command.
    """

    def __init__(self) -> None:
        self._commands: dict[str, click.Command] = {}
        self._help: dict[str, str] = {}

    def register(self, command: click.Command, aliases: list[str] | None = None) -> click.Command:
        name = (command.name or "").lower()
        if not name:
            raise ValueError("command needs a name")
        self._commands[name] = command
        self._help[name] = command.get_short_help_str(limit=120)
        for alias in aliases or []:
            self._commands[alias.lower()] = command
        return command

    def get(self, name: str) -> click.Command | None:
        return self._commands.get(name.lower())

    def command(
        self,
        name: str,
        *,
        aliases: list[str] | None = None,
        **attrs,
    ) -> Callable[[Callable[..., str]], click.Command]:
        """Decorator: build a click command from `f` and register it."""

        def decorator(f: Callable[..., str]) -> click.Command:
            return self.register(click.command(name, **attrs)(f), aliases=aliases)

        return decorator

    def handle(self, state: AppState, argv: list[str]) -> CommandReply:
        """
        Dispatch `argv` (command name first).

        Usage errors exit with 2; domain errors and bad values with 1.
        """
        if not argv:
            return CommandReply(self.build_help(), exit_code=2)

        name = argv[0].lower()
        command = self.get(name)
        if command is None:
            return CommandReply(f"Unknown command: {name}. Use 'help' to list available commands.", exit_code=2)

        args = list(argv[1:])
        if "--help" in args:
            return CommandReply(self.command_help(command))

        try:
            with command.make_context(name, args, obj=state) as ctx:
                text = command.invoke(ctx)
        except click.UsageError as e:
            logger.debug("Command %s usage error: %s", name, e)
            usage = e.ctx.get_usage() if e.ctx is not None else ""
            return CommandReply(f"{usage}\nError: {e.format_message()}".strip(), exit_code=e.exit_code)
        except click.ClickException as e:
            logger.debug("Command %s failed: %s", name, e)
            return CommandReply(e.format_message(), exit_code=e.exit_code)
        except (TasklogError, ValueError) as e:
            logger.debug("Command %s failed: %s", name, e)
            return CommandReply(str(e), exit_code=1)
        return CommandReply(str(text))

    def command_help(self, command: click.Command) -> str:
        return command.get_help(click.Context(command, info_name=command.name))

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  {name} - {help_text}")
        lines.append("Use '<command> --help' for options.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- value helpers ----


def _due(raw: str | None, now: int) -> int | None:
    return parse_due(raw, now=now) if raw else None


def _literal_status(raw: str | None) -> ItemStatus | None:
    if not raw:
        return None
    sel = parse_status(raw)
    if isinstance(sel, StatusGroup):
        raise ValueError(f"Status {raw!r} is a group; use a single status")
    return sel


def _limit(state: AppState, limit: int | None) -> int:
    if limit is not None:
        return limit
    return int(getattr(state.settings, "page_size", 100))


# ---- commands ----


@registry.command("help", aliases=["h"], short_help="Show available commands.")
@click.argument("topic", required=False)
@click.pass_obj
def cmd_help(state: AppState, topic: str | None) -> str:
    if topic:
        command = registry.get(topic)
        if command is None:
            raise click.BadParameter(f"no command named {topic!r}", param_hint="TOPIC")
        return registry.command_help(command)
    return registry.build_help()


@registry.command("task", aliases=["t"], short_help="Add a task: task <category> <content> [--due TIME].")
@click.argument("category")
@click.argument("content", nargs=-1, required=True)
@click.option("--due", help="Due time: today, tomorrow 5PM, +2h, 2026-11-02 ... (default: end of today).")
@click.option("--reminder", type=click.IntRange(min=0), help="Remind this many days before the due time.")
@click.option("--priority", type=int)
@click.option("--estimate", type=click.IntRange(min=0), help="Estimated effort in minutes.")
@click.option("--project")
@click.pass_obj
def cmd_task(
    state: AppState,
    category: str,
    content: tuple[str, ...],
    due: str | None,
    reminder: int | None,
    priority: int | None,
    estimate: int | None,
    project: str | None,
) -> str:
    """Add a task in CATEGORY with the words of CONTENT."""
    now = int(time.time())
    task = add_task(
        state,
        category=category,
        content=" ".join(content),
        target_time=_due(due, now),
        reminder_days=reminder,
        priority=priority,
        estimate_minutes=estimate,
        project=project,
        now=now,
    )
    return f"Added Task:\n{format_row(1, task, now)}"


@registry.command("record", aliases=["r"], short_help="Add a record: record <category> <content>.")
@click.argument("category")
@click.argument("content", nargs=-1, required=True)
@click.pass_obj
def cmd_record(state: AppState, category: str, content: tuple[str, ...]) -> str:
    now = int(time.time())
    record = add_record(state, category=category, content=" ".join(content), now=now)
    return f"Added Record:\n{format_row(1, record, now)}"


@registry.command("recur", short_help='Add a recurring task: recur <category> <content> --cron "0 9 * * *".')
@click.argument("category")
@click.argument("content", nargs=-1, required=True)
@click.option("--cron", "schedule", required=True, metavar="EXPR", help='5-field cron expression, e.g. "0 9 * * 1-5".')
@click.option("--label", help='Human-readable schedule shown in listings, e.g. "Weekdays 9AM".')
@click.pass_obj
def cmd_recur(state: AppState, category: str, content: tuple[str, ...], schedule: str, label: str | None) -> str:
    now = int(time.time())
    task = add_recurring_task(
        state,
        category=category,
        content=" ".join(content),
        schedule=schedule,
        human_schedule=label,
        now=now,
    )
    return f"Added Recurring Task:\n{format_row(1, task, now)}"


@registry.command(
    "list",
    aliases=["ls", "l"],
    short_help="List tasks or records: list [tasks|records] [--next] [--status S] [--category C] ...",
)
@click.argument("what", required=False, default="tasks", type=click.Choice(_LIST_TARGETS, case_sensitive=False))
@click.option("--category")
@click.option("--search", help="Case-sensitive substring of the content.")
@click.option("--due", help="Tasks: only those due before this time.")
@click.option("--days", type=click.IntRange(min=0), help="Tasks due in the next N days / records from the last N days.")
@click.option("--status", default="open", show_default=True, help="A status or one of open, closed, all.")
@click.option("--overdue", is_flag=True, help="Include tasks whose due time has passed.")
@click.option("--mine", is_flag=True, help="Only tasks assigned to you.")
@click.option("--after", help="Records: created after this time.")
@click.option("--before", help="Records: created at or before this time.")
@click.option("--limit", type=int, help="Page size (default: configured page size).")
@click.option("--next", "next_page", is_flag=True, help="Continue after the previous page.")
@click.pass_obj
def cmd_list(
    state: AppState,
    what: str,
    category: str | None,
    search: str | None,
    due: str | None,
    days: int | None,
    status: str,
    overdue: bool,
    mine: bool,
    after: str | None,
    before: str | None,
    limit: int | None,
    next_page: bool,
) -> str:
    """List one page of tasks (recurring first, then by due time) or records (oldest first)."""
    now = int(time.time())
    page_size = _limit(state, limit)

    if what.lower().startswith("t"):
        if due:
            due_before = parse_due(due, now=now)
        elif days is not None:
            due_before = days_from_now(days, now=now)
        else:
            due_before = None

        treq = TaskListRequest(
            category=category,
            search=search,
            due_before=due_before,
            status=parse_status(status),
            include_overdue=overdue,
            assignee_id=state.user_id if mine else None,
            limit=page_size,
            next_page=next_page,
        )
        res = list_tasks(state.items, state.display_cache, state.oracle, treq, now=now)
        return format_list("Tasks", res.items, has_next=res.has_next, now=now)

    if after:
        created_after = parse_due(after, now=now)
    elif days is not None:
        created_after = days_before_now(days, now=now)
    else:
        created_after = None

    rreq = RecordListRequest(
        category=category,
        search=search,
        created_after=created_after,
        created_before=_due(before, now),
        limit=page_size,
        next_page=next_page,
    )
    res = list_records(state.items, state.display_cache, rreq)
    return format_list("Records", res.items, has_next=res.has_next, now=now)


@registry.command("done", aliases=["d"], short_help="Complete the listed item at a position.")
@click.argument("position", type=click.IntRange(min=1))
@click.option("--comment", help="Appended to the task and to its completion record.")
@click.option("--status", help="Closing status for a task (default: done).")
@click.pass_obj
def cmd_done(state: AppState, position: int, comment: str | None, status: str | None) -> str:
    now = int(time.time())
    result = complete_item(
        state,
        position,
        comment=comment,
        status=_literal_status(status) or ItemStatus.DONE,
        now=now,
    )
    return f"Completed {kind_label(result.item)}:\n{format_row(position, result.item, now)}"


@registry.command("delete", aliases=["rm"], short_help="Delete the listed item at a position.")
@click.argument("position", type=click.IntRange(min=1))
@click.pass_obj
def cmd_delete(state: AppState, position: int) -> str:
    item = delete_item(state, position)
    return f"Deleted {kind_label(item)}: {item.title}"


@registry.command("update", aliases=["u"], short_help="Update the listed item at a position.")
@click.argument("position", type=click.IntRange(min=1))
@click.option("--content", help="Replace the content.")
@click.option("--add", "add_content", help="Append a line to the content (not for recurring tasks).")
@click.option("--category")
@click.option("--due", help="New due time (tasks only).")
@click.option("--cron", "schedule", metavar="EXPR", help="New cron schedule (recurring tasks only).")
@click.option("--label", help="New human-readable schedule (recurring tasks only).")
@click.option("--status", help="New single status (tasks only).")
@click.option("--reminder", type=click.IntRange(min=0))
@click.pass_obj
def cmd_update(
    state: AppState,
    position: int,
    content: str | None,
    add_content: str | None,
    category: str | None,
    due: str | None,
    schedule: str | None,
    label: str | None,
    status: str | None,
    reminder: int | None,
) -> str:
    now = int(time.time())
    changes = ItemUpdate(
        content=content,
        add_content=add_content,
        category=category,
        target_time=_due(due, now),
        schedule=schedule,
        human_schedule=label,
        status=_literal_status(status),
        reminder_days=reminder,
    )
    if changes == ItemUpdate():
        raise click.UsageError("Nothing to update; give at least one option.")
    item = update_item(state, position, changes)
    return f"Updated {kind_label(item)}:\n{format_row(position, item, now)}"


@registry.command("note", short_help="Add a note to the listed task at a position.")
@click.argument("position", type=click.IntRange(min=1))
@click.argument("text", nargs=-1, required=True)
@click.pass_obj
def cmd_note(state: AppState, position: int, text: tuple[str, ...]) -> str:
    item, note_id = add_note(state, position, " ".join(text))
    return f"Added note #{note_id} to {kind_label(item).lower()}: {item.title}"


@registry.command("link", short_help="Link a commit, issue, PR or URL to the listed task.")
@click.argument("position", type=click.IntRange(min=1))
@click.option("--commit")
@click.option("--issue")
@click.option("--pr")
@click.option("--url")
@click.option("--title")
@click.pass_obj
def cmd_link(
    state: AppState,
    position: int,
    commit: str | None,
    issue: str | None,
    pr: str | None,
    url: str | None,
    title: str | None,
) -> str:
    given = [(t, ref) for t, ref in (("commit", commit), ("issue", issue), ("pr", pr), ("url", url)) if ref]
    if len(given) != 1:
        raise click.UsageError("Must specify one of: --commit, --issue, --pr, or --url")
    link_type, reference = given[0]
    item, link_id = add_link(state, position, link_type, reference, title=title)
    return f"Added {link_type} link #{link_id} to {kind_label(item).lower()}: {item.title}"


@registry.command("show", aliases=["s"], short_help="Show details of the listed item at a position.")
@click.argument("position", type=click.IntRange(min=1))
@click.pass_obj
def cmd_show(state: AppState, position: int) -> str:
    return format_details(show_item(state, position), now=int(time.time()))


@registry.command("claim", short_help="Assign the listed task to yourself.")
@click.argument("position", type=click.IntRange(min=1))
@click.pass_obj
def cmd_claim(state: AppState, position: int) -> str:
    item = claim_item(state, position)
    return f"Claimed {kind_label(item).lower()} (assigned to {state.user_name}): {item.title}"
