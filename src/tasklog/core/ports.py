# src/tasklog/core/ports.py

"""
Ports (interfaces) used by the item services.

Listing and single-item commands depend on these Protocols, so tests can
swap in a deterministic oracle without touching storage.
"""

from __future__ import annotations

import sqlite3
from contextlib import AbstractContextManager
from typing import Protocol

from ..items.cursor import Cursor
from ..items.item_models import Item, ItemBase
from ..items.item_query import ItemQuery


class ItemRepo(Protocol):
    def transaction(self) -> AbstractContextManager[sqlite3.Connection]: ...

    def insert(self, item: ItemBase, *, conn: sqlite3.Connection | None = None) -> int: ...

    def get(self, item_id: int) -> Item: ...

    def update(self, item: ItemBase, *, conn: sqlite3.Connection | None = None) -> None: ...

    def delete(self, item_id: int, *, conn: sqlite3.Connection | None = None) -> None: ...

    def scan(self, query: ItemQuery) -> list[Item]: ...


class OccurrenceOracle(Protocol):
    def last_occurrence(self, schedule: str, now: int) -> int: ...

    def next_occurrence(self, schedule: str, now: int) -> int: ...


class DisplayIndex(Protocol):
    def clear(self) -> None: ...

    def store(self, items: list[Item]) -> None: ...

    def store_with_next(self, items: list[Item], hidden_tail: Item | None = None) -> None: ...

    def read(self, position: int) -> int | None: ...

    def validate(self) -> bool: ...

    def next_cursor(self) -> Cursor | None: ...
