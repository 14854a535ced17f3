# src/tasklog/items/cursor.py

"""
Pagination cursors.

A cursor is a resume token tied to exactly one ordering column:

- NoCursor: start from the beginning
- IdCursor: resume after a record id
- CreateTimeCursor: resume after a creation timestamp
- TargetTimeCursor: resume after a target (due) timestamp

The two timestamp cursors may also carry the id of the row they were taken
from. Rows sharing that timestamp then resume after it in (column, id) order
instead of being skipped.

Cursors are immutable. Every function that inspects one handles all four
variants and ends in assert_never, so adding a variant is a type error until
each site is updated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, TypeAlias, assert_never

from .item_models import ItemBase, Record, RecurringTask, RecurringTaskRecord, Task

ID_COL: Final = "id"
CREATE_TIME_COL: Final = "create_time"
TARGET_TIME_COL: Final = "target_time"

ORDER_COLUMNS: Final[frozenset[str]] = frozenset({ID_COL, CREATE_TIME_COL, TARGET_TIME_COL})


@dataclass(frozen=True, slots=True)
class NoCursor:
    pass


@dataclass(frozen=True, slots=True)
class IdCursor:
    item_id: int


@dataclass(frozen=True, slots=True)
class CreateTimeCursor:
    create_time: int
    item_id: int | None = None


@dataclass(frozen=True, slots=True)
class TargetTimeCursor:
    target_time: int
    item_id: int | None = None


Cursor: TypeAlias = NoCursor | IdCursor | CreateTimeCursor | TargetTimeCursor

NO_CURSOR: Final = NoCursor()


def cursor_column(cursor: Cursor) -> str | None:
    """Ordering column a cursor can resume; None for NoCursor."""
    if isinstance(cursor, NoCursor):
        return None
    if isinstance(cursor, IdCursor):
        return ID_COL
    if isinstance(cursor, CreateTimeCursor):
        return CREATE_TIME_COL
    if isinstance(cursor, TargetTimeCursor):
        return TARGET_TIME_COL
    assert_never(cursor)


def cursor_value(cursor: Cursor) -> int | None:
    if isinstance(cursor, NoCursor):
        return None
    if isinstance(cursor, IdCursor):
        return cursor.item_id
    if isinstance(cursor, CreateTimeCursor):
        return cursor.create_time
    if isinstance(cursor, TargetTimeCursor):
        return cursor.target_time
    assert_never(cursor)


def cursor_tie_id(cursor: Cursor) -> int | None:
    """Id that breaks ties on the cursor's column; None means strictly after the value."""
    if isinstance(cursor, (NoCursor, IdCursor)):
        return None
    if isinstance(cursor, (CreateTimeCursor, TargetTimeCursor)):
        return cursor.item_id
    assert_never(cursor)


def cursor_from_column(column: str | None, value: int | None, item_id: int | None = None) -> Cursor:
    """Rebuild a cursor from its persisted (column, value, anchor id) triple."""
    if column is None or value is None:
        return NO_CURSOR
    if column == ID_COL:
        return IdCursor(int(value))
    tie = int(item_id) if item_id is not None else None
    if column == CREATE_TIME_COL:
        return CreateTimeCursor(int(value), tie)
    if column == TARGET_TIME_COL:
        return TargetTimeCursor(int(value), tie)
    return NO_CURSOR


def cursor_after(item: ItemBase) -> Cursor:
    """
    Derive the implicit cursor that continues after `item`.

    recurring_task -> id, task -> target time,
    record / recurring_task_record -> creation time.
    Timestamp cursors keep the item id so equal timestamps are not skipped.
    """
    if item.id is None:
        raise ValueError("cannot derive a cursor from an item that has not been stored")
    if isinstance(item, RecurringTask):
        return IdCursor(item.id)
    if isinstance(item, Task):
        return TargetTimeCursor(item.target_time, item.id)
    if isinstance(item, (Record, RecurringTaskRecord)):
        return CreateTimeCursor(item.create_time, item.id)
    raise TypeError(f"unsupported item type: {type(item).__name__}")
