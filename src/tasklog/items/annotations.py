# src/tasklog/items/annotations.py

"""
Append-only side tables attached to items: notes and links.

Both reference items.id; rows are removed together with their item.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path

from .errors import StateConflictError
from .item_store import connect, reuse_or_connect

logger = logging.getLogger(__name__)

LINK_TYPES: tuple[str, ...] = ("commit", "issue", "pr", "url")


@dataclass(slots=True)
class TaskNote:
    id: int
    item_id: int
    content: str
    created_at: int
    created_by: int | None = None


@dataclass(slots=True)
class TaskLink:
    id: int
    item_id: int
    link_type: str
    reference: str
    title: str | None
    created_at: int
    created_by: int | None = None

    def display(self) -> str:
        if self.title:
            return f"[{self.link_type}] {self.reference} - {self.title}"
        return f"[{self.link_type}] {self.reference}"


def validate_link_type(link_type: str) -> str:
    lt = (link_type or "").strip().lower()
    if lt not in LINK_TYPES:
        raise ValueError(f"Invalid link type '{link_type}'. Valid types: {', '.join(LINK_TYPES)}")
    return lt


class NoteStore:
    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with connect(self._db_path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS task_notes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    item_id INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    created_by INTEGER
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_task_notes_item ON task_notes(item_id)")

    def add(self, item_id: int, content: str, created_by: int | None = None) -> int:
        text = (content or "").strip()
        if not text:
            raise ValueError("note content is empty")
        with connect(self._db_path) as conn:
            cur = conn.execute(
                "INSERT INTO task_notes (item_id, content, created_at, created_by) VALUES (?, ?, ?, ?)",
                (int(item_id), text, int(time.time()), created_by),
            )
            note_id = int(cur.lastrowid or 0)
        logger.debug("Note added id=%s item_id=%s", note_id, item_id)
        return note_id

    def for_item(self, item_id: int) -> list[TaskNote]:
        with connect(self._db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM task_notes WHERE item_id = ? ORDER BY created_at ASC, id ASC",
                (int(item_id),),
            ).fetchall()
        return [
            TaskNote(
                id=int(r["id"]),
                item_id=int(r["item_id"]),
                content=str(r["content"]),
                created_at=int(r["created_at"]),
                created_by=r["created_by"],
            )
            for r in rows
        ]

    def delete_for_item(self, item_id: int, *, conn: sqlite3.Connection | None = None) -> int:
        with reuse_or_connect(self._db_path, conn) as c:
            cur = c.execute("DELETE FROM task_notes WHERE item_id = ?", (int(item_id),))
            return int(cur.rowcount)


class LinkStore:
    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with connect(self._db_path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS task_links (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    item_id INTEGER NOT NULL,
                    link_type TEXT NOT NULL,
                    reference TEXT NOT NULL,
                    title TEXT,
                    created_at INTEGER NOT NULL,
                    created_by INTEGER
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_task_links_item ON task_links(item_id)")

    def exists(self, item_id: int, reference: str) -> bool:
        with connect(self._db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM task_links WHERE item_id = ? AND reference = ? LIMIT 1",
                (int(item_id), reference),
            ).fetchone()
        return row is not None

    def add(
        self,
        item_id: int,
        link_type: str,
        reference: str,
        *,
        title: str | None = None,
        created_by: int | None = None,
    ) -> int:
        lt = validate_link_type(link_type)
        ref = (reference or "").strip()
        if not ref:
            raise ValueError("link reference is empty")
        if self.exists(item_id, ref):
            raise StateConflictError(f"Link '{ref}' already exists for this task")
        with connect(self._db_path) as conn:
            cur = conn.execute(
                "INSERT INTO task_links (item_id, link_type, reference, title, created_at, created_by) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (int(item_id), lt, ref, title, int(time.time()), created_by),
            )
            link_id = int(cur.lastrowid or 0)
        logger.debug("Link added id=%s item_id=%s type=%s", link_id, item_id, lt)
        return link_id

    def for_item(self, item_id: int) -> list[TaskLink]:
        with connect(self._db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM task_links WHERE item_id = ? ORDER BY created_at ASC, id ASC",
                (int(item_id),),
            ).fetchall()
        return [
            TaskLink(
                id=int(r["id"]),
                item_id=int(r["item_id"]),
                link_type=str(r["link_type"]),
                reference=str(r["reference"]),
                title=r["title"],
                created_at=int(r["created_at"]),
                created_by=r["created_by"],
            )
            for r in rows
        ]

    def delete_for_item(self, item_id: int, *, conn: sqlite3.Connection | None = None) -> int:
        with reuse_or_connect(self._db_path, conn) as c:
            cur = c.execute("DELETE FROM task_links WHERE item_id = ?", (int(item_id),))
            return int(cur.rowcount)
