# src/tasklog/items/display_cache.py

"""
Display-index cache.

Maps 1-based page positions from the most recent list to item ids, so later
commands can say "item 3" without repeating the filters. It lives in the same
SQLite file as the items and survives process exit.

Lifecycle:
- created empty and invalid
- replaced wholesale by every list operation (clear() then one store*)
- read-only for every other command

Continuation is kept in a single state row as a ready-made cursor
(column + value) plus the id of the item it was derived from. The item that
anchors the cursor may be one that was filtered out of the page; it is never
given a position.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .cursor import Cursor, cursor_after, cursor_column, cursor_from_column, cursor_value
from .item_models import Item
from .item_store import connect

logger = logging.getLogger(__name__)

_POSITIONS_TABLE = "display_cache"
_STATE_TABLE = "display_cache_state"


class DisplayCache:
    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with connect(self._db_path) as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_POSITIONS_TABLE} (
                    position INTEGER PRIMARY KEY,
                    item_id INTEGER NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_STATE_TABLE} (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    next_column TEXT,
                    next_value INTEGER,
                    next_item_id INTEGER
                )
                """
            )

    # ---- writers (list operations only) ----

    def clear(self) -> None:
        with connect(self._db_path) as conn:
            conn.execute(f"DELETE FROM {_POSITIONS_TABLE}")
            conn.execute(f"DELETE FROM {_STATE_TABLE}")
        logger.debug("Display cache cleared")

    def store(self, items: list[Item]) -> None:
        """Assign positions 1..N; no further page."""
        self._write(items, None, None)

    def store_with_next(self, items: list[Item], hidden_tail: Item | None = None) -> None:
        """
        Assign positions 1..N and record that a further page exists.

        The next cursor derives from `hidden_tail` when given, else from the
        last item. With neither, no continuation is stored.
        """
        anchor = hidden_tail if hidden_tail is not None else (items[-1] if items else None)
        if anchor is None:
            self._write(items, None, None)
            return
        self._write(items, cursor_after(anchor), anchor.id)

    def _write(self, items: list[Item], next_cursor: Cursor | None, anchor_id: int | None) -> None:
        ids = []
        for item in items:
            if item.id is None:
                raise ValueError("cannot cache an item that has not been stored")
            ids.append(int(item.id))

        with connect(self._db_path) as conn:
            conn.execute(f"DELETE FROM {_POSITIONS_TABLE}")
            conn.execute(f"DELETE FROM {_STATE_TABLE}")
            conn.executemany(
                f"INSERT INTO {_POSITIONS_TABLE} (position, item_id) VALUES (?, ?)",
                list(enumerate(ids, start=1)),
            )
            conn.execute(
                f"INSERT INTO {_STATE_TABLE} (id, next_column, next_value, next_item_id) VALUES (1, ?, ?, ?)",
                (
                    cursor_column(next_cursor) if next_cursor is not None else None,
                    cursor_value(next_cursor) if next_cursor is not None else None,
                    anchor_id,
                ),
            )
        logger.debug("Display cache stored n=%s next=%r", len(ids), next_cursor)

    # ---- readers ----

    def validate(self) -> bool:
        """True iff a list operation populated the cache since the last clear()."""
        with connect(self._db_path) as conn:
            row = conn.execute(f"SELECT 1 FROM {_STATE_TABLE} WHERE id = 1").fetchone()
        return row is not None

    def read(self, position: int) -> int | None:
        with connect(self._db_path) as conn:
            row = conn.execute(
                f"SELECT item_id FROM {_POSITIONS_TABLE} WHERE position = ?",
                (int(position),),
            ).fetchone()
        return int(row["item_id"]) if row is not None else None

    def size(self) -> int:
        with connect(self._db_path) as conn:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM {_POSITIONS_TABLE}").fetchone()
        return int(n)

    def next_cursor(self) -> Cursor | None:
        """Cursor for the following page, or None when no further page was recorded."""
        with connect(self._db_path) as conn:
            row = conn.execute(
                f"SELECT next_column, next_value, next_item_id FROM {_STATE_TABLE} WHERE id = 1"
            ).fetchone()
        if row is None or row["next_column"] is None:
            return None
        return cursor_from_column(row["next_column"], row["next_value"], row["next_item_id"])
