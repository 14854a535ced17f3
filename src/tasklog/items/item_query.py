# src/tasklog/items/item_query.py

"""
Query specification and its compiler.

ItemQuery is an immutable value object built through `with_*` methods.
compile_query() turns it into parameterized SQL against the items table:

- every value is a bound parameter; column names come from a fixed set
- the ordering column is validated against ORDER_COLUMNS and fails fast
- a timestamp cursor that carries an item id resumes after that row in
  (column, id) order; without one it is strictly after the value
- a cursor whose column differs from the explicit ordering column makes the
  query compile to None ("this stream has nothing more"), never an error
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from .cursor import (
    CREATE_TIME_COL,
    ID_COL,
    NO_CURSOR,
    ORDER_COLUMNS,
    TARGET_TIME_COL,
    Cursor,
    cursor_column,
    cursor_tie_id,
    cursor_value,
)
from .errors import ConfigurationError
from .item_models import ItemKind, ItemStatus

logger = logging.getLogger(__name__)

ITEMS_TABLE = "items"


@dataclass(frozen=True, slots=True)
class ItemQuery:
    kinds: tuple[ItemKind, ...] | None = None
    category: str | None = None
    content_like: str | None = None

    create_time_min: int | None = None
    create_time_max: int | None = None
    target_time_min: int | None = None
    target_time_max: int | None = None
    good_until_min: int | None = None
    good_until_max: int | None = None

    recurring_task_id: int | None = None
    statuses: tuple[ItemStatus, ...] | None = None

    assignee_id: int | None = None
    owner_id: int | None = None
    namespace_id: int | None = None

    limit: int | None = None
    order_by: str | None = None
    cursor: Cursor = NO_CURSOR

    def with_kind(self, kind: ItemKind) -> ItemQuery:
        return replace(self, kinds=(ItemKind(kind),))

    def with_kinds(self, kinds: Iterable[ItemKind]) -> ItemQuery:
        return replace(self, kinds=tuple(ItemKind(k) for k in kinds))

    def with_category(self, category: str) -> ItemQuery:
        return replace(self, category=category)

    def with_content_like(self, text: str) -> ItemQuery:
        return replace(self, content_like=text)

    def with_create_time_range(self, min_ts: int | None, max_ts: int | None) -> ItemQuery:
        return replace(self, create_time_min=min_ts, create_time_max=max_ts)

    def with_target_time_range(self, min_ts: int | None, max_ts: int | None) -> ItemQuery:
        return replace(self, target_time_min=min_ts, target_time_max=max_ts)

    def with_good_until_range(self, min_ts: int | None, max_ts: int | None) -> ItemQuery:
        return replace(self, good_until_min=min_ts, good_until_max=max_ts)

    def with_recurring_task_id(self, task_id: int) -> ItemQuery:
        return replace(self, recurring_task_id=int(task_id))

    def with_statuses(self, statuses: Iterable[ItemStatus]) -> ItemQuery:
        return replace(self, statuses=tuple(ItemStatus(s) for s in statuses))

    def with_assignee_id(self, assignee_id: int) -> ItemQuery:
        return replace(self, assignee_id=int(assignee_id))

    def with_owner_id(self, owner_id: int) -> ItemQuery:
        return replace(self, owner_id=int(owner_id))

    def with_namespace_id(self, namespace_id: int) -> ItemQuery:
        return replace(self, namespace_id=int(namespace_id))

    def with_limit(self, limit: int) -> ItemQuery:
        return replace(self, limit=int(limit))

    def with_order_by(self, column: str) -> ItemQuery:
        return replace(self, order_by=column)

    def with_cursor(self, cursor: Cursor) -> ItemQuery:
        return replace(self, cursor=cursor)


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    sql: str
    params: tuple[Any, ...]


def _placeholders(n: int) -> str:
    return ",".join("?" for _ in range(n))


def compile_query(query: ItemQuery) -> CompiledQuery | None:
    """
    Compile `query` into a SELECT over the items table.

    Returns None when the query can contribute no rows: the cursor belongs to
    a different ordering column, or an explicit empty kind/status set was given.
    Raises ConfigurationError for an ordering column outside ORDER_COLUMNS.
    """
    cur_col = cursor_column(query.cursor)
    order_col = query.order_by or cur_col or ID_COL
    if order_col not in ORDER_COLUMNS:
        raise ConfigurationError(f"invalid order column: {order_col}")

    if cur_col is not None and cur_col != order_col:
        logger.debug("Cursor %r does not match order column %s; stream exhausted", query.cursor, order_col)
        return None

    conditions: list[str] = []
    params: list[Any] = []

    if query.kinds is not None:
        if not query.kinds:
            return None
        if len(query.kinds) == 1:
            conditions.append("kind = ?")
        else:
            conditions.append(f"kind IN ({_placeholders(len(query.kinds))})")
        params.extend(k.value for k in query.kinds)

    if query.category is not None:
        conditions.append("category = ?")
        params.append(query.category)

    if query.content_like is not None:
        # instr() is case-sensitive, unlike LIKE.
        conditions.append("instr(content, ?) > 0")
        params.append(query.content_like)

    ranges = (
        (CREATE_TIME_COL, query.create_time_min, query.create_time_max),
        (TARGET_TIME_COL, query.target_time_min, query.target_time_max),
        ("good_until", query.good_until_min, query.good_until_max),
    )
    for col, lo, hi in ranges:
        if lo is not None:
            conditions.append(f"{col} > ?")
            params.append(int(lo))
        if hi is not None:
            conditions.append(f"{col} <= ?")
            params.append(int(hi))

    if query.recurring_task_id is not None:
        conditions.append("recurring_task_id = ?")
        params.append(int(query.recurring_task_id))

    if query.statuses is not None:
        if not query.statuses:
            return None
        conditions.append(f"status IN ({_placeholders(len(query.statuses))})")
        params.extend(int(s) for s in query.statuses)

    for col, val in (
        ("assignee_id", query.assignee_id),
        ("owner_id", query.owner_id),
        ("namespace_id", query.namespace_id),
    ):
        if val is not None:
            conditions.append(f"{col} = ?")
            params.append(int(val))

    cur_val = cursor_value(query.cursor)
    tie_id = cursor_tie_id(query.cursor)
    if cur_col is not None and cur_val is not None:
        if tie_id is None:
            conditions.append(f"{cur_col} > ?")
            params.append(int(cur_val))
        else:
            # Keyset on (column, id), matching the ORDER BY below.
            conditions.append(f"({cur_col} > ? OR ({cur_col} = ? AND id > ?))")
            params.extend((int(cur_val), int(cur_val), int(tie_id)))

    sql = f"SELECT * FROM {ITEMS_TABLE}"
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)

    sql += f" ORDER BY {order_col} ASC"
    if order_col != ID_COL:
        sql += ", id ASC"

    if query.limit is not None:
        sql += " LIMIT ?"
        params.append(max(0, int(query.limit)))

    return CompiledQuery(sql=sql, params=tuple(params))
