# src/tasklog/items/listing.py

"""
List operations.

Task listing merges two streams behind one page boundary:

- recurring tasks, ordered by id
- scheduled tasks, ordered by target time

The recurring stream is drained first. A page that fills up with recurring
tasks never touches the scheduled stream; the next page resumes with an
IdCursor. Once the recurring stream runs short, the scheduled stream fills the
rest of the page from its beginning (an IdCursor means nothing to it), and from
then on a TargetTimeCursor drives the scheduled stream alone while the
recurring stream contributes nothing.

Every list call clears the display cache and stores the displayed page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..core.ports import DisplayIndex, ItemRepo, OccurrenceOracle
from .completion import mark_completion
from .cursor import (
    CREATE_TIME_COL,
    ID_COL,
    NO_CURSOR,
    TARGET_TIME_COL,
    CreateTimeCursor,
    Cursor,
    IdCursor,
    NoCursor,
    TargetTimeCursor,
)
from .errors import NoNextPageError
from .item_models import (
    Item,
    ItemKind,
    ItemStatus,
    RecurringTask,
    StatusGroup,
    expand_status,
)
from .item_query import ItemQuery

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 65536

# Selectors that the recurring stream resolves from completion records
# instead of the stored status column.
_COMPLETION_SELECTORS = (ItemStatus.DONE, StatusGroup.OPEN, StatusGroup.CLOSED, StatusGroup.ALL)


def _check_limit(limit: int) -> int:
    n = int(limit)
    if not 1 <= n <= MAX_LIMIT:
        raise ValueError(f"limit must be between 1 and {MAX_LIMIT}, got {n}")
    return n


@dataclass(frozen=True, slots=True)
class TaskListRequest:
    category: str | None = None
    search: str | None = None
    due_before: int | None = None
    status: ItemStatus | StatusGroup = StatusGroup.OPEN
    include_overdue: bool = False
    assignee_id: int | None = None
    limit: int = DEFAULT_LIMIT
    next_page: bool = False


@dataclass(frozen=True, slots=True)
class RecordListRequest:
    category: str | None = None
    search: str | None = None
    created_after: int | None = None
    created_before: int | None = None
    limit: int = DEFAULT_LIMIT
    next_page: bool = False


@dataclass(slots=True)
class ListResult:
    items: list[Item] = field(default_factory=list)
    has_next: bool = False


def _continuation(cache: DisplayIndex, next_page: bool) -> Cursor:
    if not next_page:
        return NO_CURSOR
    cursor = cache.next_cursor()
    if cursor is None:
        raise NoNextPageError()
    return cursor


# ---- task streams ----


def _query_recurring(repo: ItemRepo, req: TaskListRequest, cursor: Cursor, limit: int) -> list[RecurringTask]:
    if not isinstance(cursor, (NoCursor, IdCursor)):
        # The previous page was already past the recurring stream.
        return []

    q = ItemQuery().with_kind(ItemKind.RECURRING_TASK).with_order_by(ID_COL).with_cursor(cursor).with_limit(limit)
    if req.category:
        q = q.with_category(req.category)
    if req.search:
        q = q.with_content_like(req.search)
    if req.assignee_id is not None:
        q = q.with_assignee_id(req.assignee_id)
    if req.status not in _COMPLETION_SELECTORS:
        q = q.with_statuses([ItemStatus(req.status)])

    rows = repo.scan(q)
    return [r for r in rows if isinstance(r, RecurringTask)]


def _query_scheduled(
    repo: ItemRepo, req: TaskListRequest, cursor: Cursor, limit: int, now: int
) -> list[Item]:
    if isinstance(cursor, IdCursor):
        # Stream transition: the scheduled stream starts from its beginning.
        cursor = NO_CURSOR
    elif not isinstance(cursor, (NoCursor, TargetTimeCursor)):
        return []

    q = ItemQuery().with_kind(ItemKind.TASK).with_order_by(TARGET_TIME_COL).with_cursor(cursor).with_limit(limit)
    q = q.with_target_time_range(None if req.include_overdue else int(now), req.due_before)
    if req.category:
        q = q.with_category(req.category)
    if req.search:
        q = q.with_content_like(req.search)
    if req.assignee_id is not None:
        q = q.with_assignee_id(req.assignee_id)
    statuses = expand_status(req.status)
    if statuses is not None:
        q = q.with_statuses(statuses)
    return repo.scan(q)


def _filter_recurring(
    oracle: OccurrenceOracle,
    tasks: list[RecurringTask],
    req: TaskListRequest,
    now: int,
) -> list[RecurringTask]:
    if req.status == StatusGroup.ALL:
        kept = list(tasks)
    elif req.status in (StatusGroup.CLOSED, ItemStatus.DONE):
        kept = [t for t in tasks if t.interval_complete]
    else:
        kept = [t for t in tasks if not t.interval_complete]

    if req.due_before is not None:
        cutoff = int(req.due_before)
        kept = [t for t in kept if oracle.next_occurrence(t.cron_schedule, now) < cutoff]
    return kept


def list_tasks(
    repo: ItemRepo,
    cache: DisplayIndex,
    oracle: OccurrenceOracle,
    req: TaskListRequest,
    *,
    now: int,
) -> ListResult:
    """
    Produce one page of tasks and repopulate the display cache.

    Raises NoNextPageError for a continuation request when no further page
    was recorded, or when the continuation finds nothing; the cache is left
    untouched in both cases.
    """
    limit = _check_limit(req.limit)
    cursor = _continuation(cache, req.next_page)

    recurring_rows = _query_recurring(repo, req, cursor, limit)
    recurring_hit_limit = len(recurring_rows) == limit
    anchor = recurring_rows[-1] if recurring_hit_limit else None

    recurring = mark_completion(repo, oracle, recurring_rows, now)
    recurring = _filter_recurring(oracle, recurring, req, now)

    scheduled: list[Item] = []
    if recurring_hit_limit:
        displayed: list[Item] = list(recurring)
    else:
        scheduled = _query_scheduled(repo, req, cursor, limit, now)
        displayed = [*recurring, *scheduled][:limit]

    if req.next_page and not recurring_rows and not scheduled:
        raise NoNextPageError()

    hidden_tail: Item | None = None
    if anchor is not None and (not displayed or displayed[-1].id != anchor.id):
        hidden_tail = anchor

    has_next = recurring_hit_limit or len(displayed) == limit

    cache.clear()
    if has_next:
        cache.store_with_next(displayed, hidden_tail)
    else:
        cache.store(displayed)

    logger.info(
        "list tasks: recurring=%s/%s scheduled=%s shown=%s has_next=%s hidden_tail=%s",
        len(recurring),
        len(recurring_rows),
        len(scheduled),
        len(displayed),
        has_next,
        hidden_tail.id if hidden_tail is not None else None,
    )
    return ListResult(items=displayed, has_next=has_next)


# ---- records ----


def list_records(
    repo: ItemRepo,
    cache: DisplayIndex,
    req: RecordListRequest,
) -> ListResult:
    """Produce one page of records, oldest first, and repopulate the display cache."""
    limit = _check_limit(req.limit)
    cursor = _continuation(cache, req.next_page)
    if not isinstance(cursor, (NoCursor, CreateTimeCursor)):
        # The cached page came from a task listing.
        raise NoNextPageError()

    q = (
        ItemQuery()
        .with_kinds([ItemKind.RECORD, ItemKind.RECURRING_TASK_RECORD])
        .with_order_by(CREATE_TIME_COL)
        .with_create_time_range(req.created_after, req.created_before)
        .with_cursor(cursor)
        .with_limit(limit)
    )
    if req.category:
        q = q.with_category(req.category)
    if req.search:
        q = q.with_content_like(req.search)

    rows = repo.scan(q)
    if req.next_page and not rows:
        raise NoNextPageError()

    has_next = len(rows) == limit
    cache.clear()
    if has_next:
        cache.store_with_next(rows)
    else:
        cache.store(rows)

    logger.info("list records: shown=%s has_next=%s", len(rows), has_next)
    return ListResult(items=rows, has_next=has_next)
