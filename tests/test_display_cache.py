# tests/test_display_cache.py

from __future__ import annotations

import pytest

from tasklog.items.cursor import (
    NO_CURSOR,
    CreateTimeCursor,
    IdCursor,
    TargetTimeCursor,
    cursor_after,
    cursor_column,
    cursor_from_column,
    cursor_tie_id,
    cursor_value,
)
from tasklog.items.display_cache import DisplayCache
from tasklog.items.item_models import Record, RecurringTask, RecurringTaskRecord, Task
from tasklog.items.item_store import ItemStore

from .fakes import DAILY, NOW


def test_cursor_after_maps_kind_to_variant() -> None:
    assert cursor_after(RecurringTask(id=4, category="c", content="x", cron_schedule=DAILY)) == IdCursor(4)
    assert cursor_after(Task(id=5, category="c", content="x", target_time=NOW)) == TargetTimeCursor(NOW, 5)
    assert cursor_after(Record(id=6, category="c", content="x", create_time=NOW - 1)) == CreateTimeCursor(NOW - 1, 6)
    rr = RecurringTaskRecord(id=7, category="c", content="x", create_time=NOW - 2, recurring_task_id=4, good_until=NOW)
    assert cursor_after(rr) == CreateTimeCursor(NOW - 2, 7)


def test_cursor_after_needs_stored_item() -> None:
    with pytest.raises(ValueError):
        cursor_after(Task(category="c", content="x", target_time=NOW))


def test_cursor_column_round_trip() -> None:
    for cur in (IdCursor(3), CreateTimeCursor(NOW), TargetTimeCursor(NOW + 1)):
        assert cursor_from_column(cursor_column(cur), cursor_value(cur)) == cur
    for cur in (CreateTimeCursor(NOW, 8), TargetTimeCursor(NOW + 1, 9)):
        assert cursor_from_column(cursor_column(cur), cursor_value(cur), cursor_tie_id(cur)) == cur
    assert cursor_tie_id(IdCursor(3)) is None
    assert cursor_column(NO_CURSOR) is None
    assert cursor_from_column(None, None) is NO_CURSOR


def test_cache_starts_invalid(cache: DisplayCache) -> None:
    assert cache.validate() is False
    assert cache.read(1) is None
    assert cache.next_cursor() is None


def test_store_assigns_one_based_positions(store: ItemStore, cache: DisplayCache) -> None:
    a = Record(category="c", content="a", create_time=NOW)
    b = Record(category="c", content="b", create_time=NOW + 1)
    a.id = store.insert(a)
    b.id = store.insert(b)

    cache.clear()
    cache.store([a, b])

    assert cache.validate() is True
    assert cache.read(1) == a.id
    assert cache.read(2) == b.id
    assert cache.read(0) is None
    assert cache.read(3) is None
    assert cache.size() == 2
    assert cache.next_cursor() is None


def test_clear_invalidates(store: ItemStore, cache: DisplayCache) -> None:
    r = Record(category="c", content="a")
    r.id = store.insert(r)
    cache.store([r])
    cache.clear()
    assert cache.validate() is False
    assert cache.read(1) is None


def test_empty_store_is_valid(cache: DisplayCache) -> None:
    cache.clear()
    cache.store([])
    assert cache.validate() is True
    assert cache.read(1) is None


def test_store_with_next_uses_last_item(cache: DisplayCache) -> None:
    t = Task(id=10, category="c", content="t", target_time=NOW + 50)
    cache.store_with_next([t])
    assert cache.next_cursor() == TargetTimeCursor(NOW + 50, 10)


def test_hidden_tail_defines_cursor_but_has_no_position(cache: DisplayCache) -> None:
    shown = RecurringTask(id=1, category="c", content="shown", cron_schedule=DAILY)
    hidden = RecurringTask(id=2, category="c", content="hidden", cron_schedule=DAILY)

    cache.store_with_next([shown], hidden_tail=hidden)

    assert cache.read(1) == 1
    assert cache.read(2) is None
    assert cache.size() == 1
    assert cache.next_cursor() == IdCursor(2)


def test_cache_survives_reopen(settings, store: ItemStore) -> None:
    r = Record(category="c", content="a")
    r.id = store.insert(r)
    DisplayCache(settings.db_path).store_with_next([r])

    reopened = DisplayCache(settings.db_path)
    assert reopened.validate()
    assert reopened.read(1) == r.id
    assert reopened.next_cursor() == CreateTimeCursor(r.create_time, r.id)
