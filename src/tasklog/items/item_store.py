# src/tasklog/items/item_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from .errors import NotFoundError, StoreError
from .item_models import (
    Item,
    ItemBase,
    ItemKind,
    ItemStatus,
    Record,
    RecurringTask,
    RecurringTaskRecord,
    Task,
)
from .item_query import ITEMS_TABLE, ItemQuery, compile_query

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 6

# Columns written on insert/update, in a fixed order. Never built from user input.
_DATA_COLUMNS = (
    "kind",
    "category",
    "content",
    "create_time",
    "target_time",
    "modify_time",
    "status",
    "cron_schedule",
    "human_schedule",
    "recurring_task_id",
    "good_until",
    "reminder_days",
    "project",
    "priority",
    "estimate_minutes",
    "owner_id",
    "assignee_id",
    "namespace_id",
    "issue_ref",
)


@contextlib.contextmanager
def connect(db_path: Path) -> Iterator[sqlite3.Connection]:
    """
    Short-lived connection: commit on success, roll back on any error, always close.

    sqlite3 failures surface as StoreError.
    """
    try:
        conn = sqlite3.connect(str(db_path), timeout=30.0)
    except sqlite3.Error as e:
        raise StoreError(f"Cannot open database {db_path}: {e}") from e
    conn.row_factory = sqlite3.Row
    with contextlib.suppress(sqlite3.Error):
        conn.execute("PRAGMA journal_mode=WAL")
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise StoreError(f"Database error: {e}") from e
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextlib.contextmanager
def reuse_or_connect(db_path: Path, conn: sqlite3.Connection | None) -> Iterator[sqlite3.Connection]:
    """Join the caller's transaction when `conn` is given, else run in a fresh one."""
    if conn is not None:
        yield conn
        return
    with connect(db_path) as fresh:
        yield fresh


class ItemStore:
    """
    SQLite store for the polymorphic items table.

    One table holds every kind; `kind` discriminates and the kind-specific
    columns stay NULL elsewhere. The schema is migration-safe:
    - create table if missing
    - PRAGMA table_info to detect missing columns, ALTER TABLE to add them
    - PRAGMA user_version records the schema version

    Each method opens its own connection unless it is handed one from
    transaction(), in which case it joins that transaction.
    """

    def __init__(self, db_path: str | Path = "tasklog.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("ItemStore ready db=%s total=%s", self._db_path, self.count_items())

    @property
    def db_path(self) -> Path:
        return self._db_path

    def transaction(self) -> contextlib.AbstractContextManager[sqlite3.Connection]:
        """One connection for a multi-step mutation; pass it as `conn=` to each step."""
        return connect(self._db_path)

    # ---- schema ----

    def _ensure_schema(self) -> None:
        with connect(self._db_path) as conn:
            (version,) = conn.execute("PRAGMA user_version").fetchone()
            if int(version) == SCHEMA_VERSION:
                return

            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {ITEMS_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    kind TEXT NOT NULL,
                    category TEXT NOT NULL,
                    content TEXT NOT NULL,
                    create_time INTEGER NOT NULL,
                    target_time INTEGER,
                    modify_time INTEGER,
                    status INTEGER NOT NULL DEFAULT 0,
                    cron_schedule TEXT,
                    human_schedule TEXT,
                    recurring_task_id INTEGER,
                    good_until INTEGER
                )
                """
            )

            cols = {row["name"] for row in conn.execute(f"PRAGMA table_info({ITEMS_TABLE})")}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                conn.execute(f"ALTER TABLE {ITEMS_TABLE} ADD COLUMN {name} {decl}")
                logger.info("ItemStore migration: added column %s", name)

            add_col("reminder_days", "INTEGER")
            add_col("project", "TEXT")
            add_col("priority", "INTEGER")
            add_col("estimate_minutes", "INTEGER")
            add_col("owner_id", "INTEGER")
            add_col("assignee_id", "INTEGER")
            add_col("namespace_id", "INTEGER")
            add_col("issue_ref", "TEXT")

            # Every task has a due time; rows written before that rule get their creation time.
            conn.execute(
                f"UPDATE {ITEMS_TABLE} SET target_time = create_time WHERE kind = ? AND target_time IS NULL",
                (ItemKind.TASK.value,),
            )

            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_items_kind ON {ITEMS_TABLE}(kind)")
            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_items_create_time ON {ITEMS_TABLE}(create_time)")
            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_items_target_time ON {ITEMS_TABLE}(target_time)")
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_items_category_target ON {ITEMS_TABLE}(category, target_time)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_items_recurring_good_until "
                f"ON {ITEMS_TABLE}(recurring_task_id, good_until)"
            )
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            logger.info("ItemStore schema at version %s (was %s)", SCHEMA_VERSION, version)

    # ---- row mapping ----

    @staticmethod
    def _item_to_row(item: ItemBase) -> dict[str, Any]:
        row: dict[str, Any] = {col: None for col in _DATA_COLUMNS}
        row.update(
            kind=item.kind.value,
            category=item.category,
            content=item.content,
            create_time=int(item.create_time),
            modify_time=item.modify_time,
            status=int(ItemStatus.ONGOING),
            reminder_days=item.reminder_days,
            project=item.project,
            priority=item.priority,
            estimate_minutes=item.estimate_minutes,
            owner_id=item.owner_id,
            assignee_id=item.assignee_id,
            namespace_id=item.namespace_id,
            issue_ref=item.issue_ref,
        )
        if isinstance(item, Task):
            row.update(target_time=item.target_time, status=int(item.status))
        elif isinstance(item, RecurringTask):
            row.update(
                cron_schedule=item.cron_schedule,
                human_schedule=item.human_schedule,
                status=int(item.status),
            )
        elif isinstance(item, RecurringTaskRecord):
            row.update(recurring_task_id=item.recurring_task_id, good_until=item.good_until)
        return row

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> Item:
        common: dict[str, Any] = {
            "id": int(row["id"]),
            "category": str(row["category"]),
            "content": str(row["content"]),
            "create_time": int(row["create_time"]),
            "modify_time": row["modify_time"],
            "reminder_days": row["reminder_days"],
            "project": row["project"],
            "priority": row["priority"],
            "estimate_minutes": row["estimate_minutes"],
            "owner_id": row["owner_id"],
            "assignee_id": row["assignee_id"],
            "namespace_id": row["namespace_id"],
            "issue_ref": row["issue_ref"],
        }
        raw_kind = row["kind"]
        try:
            kind = ItemKind(raw_kind)
        except ValueError:
            raise StoreError(f"Unknown item kind {raw_kind!r} for id={row['id']}") from None

        if kind is ItemKind.TASK:
            return Task(
                **common,
                target_time=int(row["target_time"]),
                status=ItemStatus.from_db(row["status"]),
            )
        if kind is ItemKind.RECURRING_TASK:
            return RecurringTask(
                **common,
                cron_schedule=str(row["cron_schedule"] or ""),
                human_schedule=row["human_schedule"],
                status=ItemStatus.from_db(row["status"]),
            )
        if kind is ItemKind.RECURRING_TASK_RECORD:
            return RecurringTaskRecord(
                **common,
                recurring_task_id=int(row["recurring_task_id"]),
                good_until=int(row["good_until"]),
            )
        return Record(**common)

    # ---- public API ----

    def count_items(self) -> int:
        with connect(self._db_path) as conn:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM {ITEMS_TABLE}").fetchone()
            return int(n)

    def insert(self, item: ItemBase, *, conn: sqlite3.Connection | None = None) -> int:
        """Insert `item` (its `id` is ignored) and return the new row id."""
        if not item.category or not item.category.strip():
            raise ValueError("category is required")
        if isinstance(item, Task) and item.target_time is None:
            raise ValueError("a task needs a target time")
        row = self._item_to_row(item)
        cols = ", ".join(_DATA_COLUMNS)
        ph = ", ".join("?" for _ in _DATA_COLUMNS)
        with reuse_or_connect(self._db_path, conn) as c:
            cur = c.execute(
                f"INSERT INTO {ITEMS_TABLE} ({cols}) VALUES ({ph})",
                [row[col] for col in _DATA_COLUMNS],
            )
            rowid = cur.lastrowid
        if rowid is None:
            raise StoreError("SQLite did not return lastrowid for items insert")
        logger.debug("Item added id=%s kind=%s category=%s", rowid, item.kind, item.category)
        return int(rowid)

    def get(self, item_id: int) -> Item:
        with connect(self._db_path) as conn:
            row = conn.execute(f"SELECT * FROM {ITEMS_TABLE} WHERE id = ?", (int(item_id),)).fetchone()
        if row is None:
            raise NotFoundError(f"Item {item_id} not found")
        return self._row_to_item(row)

    def update(self, item: ItemBase, *, conn: sqlite3.Connection | None = None) -> None:
        """Persist every mutable field of a stored item and bump modify_time."""
        if item.id is None:
            raise ValueError("cannot update an item that has not been inserted")
        row = self._item_to_row(item)
        row["modify_time"] = int(time.time())
        mutable = [col for col in _DATA_COLUMNS if col not in ("kind", "create_time")]
        assignments = ", ".join(f"{col} = ?" for col in mutable)
        with reuse_or_connect(self._db_path, conn) as c:
            cur = c.execute(
                f"UPDATE {ITEMS_TABLE} SET {assignments} WHERE id = ?",
                [*(row[col] for col in mutable), int(item.id)],
            )
            updated = cur.rowcount
        if updated == 0:
            raise NotFoundError(f"Item {item.id} not found")
        item.modify_time = row["modify_time"]
        logger.debug("Item updated id=%s kind=%s", item.id, item.kind)

    def delete(self, item_id: int, *, conn: sqlite3.Connection | None = None) -> None:
        with reuse_or_connect(self._db_path, conn) as c:
            cur = c.execute(f"DELETE FROM {ITEMS_TABLE} WHERE id = ?", (int(item_id),))
            deleted = cur.rowcount
        if deleted == 0:
            raise NotFoundError(f"Item {item_id} not found")
        logger.debug("Item deleted id=%s", item_id)

    def scan(self, query: ItemQuery) -> list[Item]:
        """
        Run a compiled query and materialize the result.

        A query that compiles to None (cursor for another ordering column)
        yields an empty list.
        """
        compiled = compile_query(query)
        if compiled is None:
            return []
        with connect(self._db_path) as conn:
            rows = conn.execute(compiled.sql, compiled.params).fetchall()
        return [self._row_to_item(r) for r in rows]
