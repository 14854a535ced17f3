# tests/test_item_api.py

from __future__ import annotations

import pytest

from tasklog.core.state import AppState
from tasklog.items import item_api
from tasklog.items.completion import ALREADY_COMPLETED_MSG
from tasklog.items.errors import (
    CacheInvalidError,
    NotFoundError,
    ScheduleError,
    StateConflictError,
    StoreError,
)
from tasklog.items.item_api import ItemUpdate
from tasklog.items.item_models import ItemKind, ItemStatus, Record, RecurringTask, StatusGroup, Task
from tasklog.items.item_query import ItemQuery
from tasklog.items.listing import RecordListRequest, TaskListRequest, list_records, list_tasks
from tasklog.items.occurrence import end_of_day

from .fakes import DAILY, NOW


def _list_tasks(state: AppState, **kw) -> list:
    req = TaskListRequest(**kw)
    return list_tasks(state.items, state.display_cache, state.oracle, req, now=NOW).items


def _list_records(state: AppState) -> list:
    return list_records(state.items, state.display_cache, RecordListRequest()).items


def test_single_item_commands_need_a_list_first(state: AppState) -> None:
    item_api.add_task(state, category="work", content="x", target_time=NOW + 10, now=NOW)

    for call in (
        lambda: item_api.complete_item(state, 1, now=NOW),
        lambda: item_api.delete_item(state, 1),
        lambda: item_api.show_item(state, 1),
        lambda: item_api.claim_item(state, 1),
        lambda: item_api.add_note(state, 1, "n"),
    ):
        with pytest.raises(CacheInvalidError) as ei:
            call()
        assert "consider running list command first" in str(ei.value)


def test_position_beyond_page_is_not_found(state: AppState) -> None:
    item_api.add_task(state, category="work", content="only", target_time=NOW + 10, now=NOW)
    _list_tasks(state)

    with pytest.raises(NotFoundError) as ei:
        item_api.show_item(state, 2)
    assert str(ei.value) == "index 2 does not exist"


def test_add_sets_owner_and_creation_time(state: AppState) -> None:
    task = item_api.add_task(state, category="work", content="ship", target_time=NOW + 10, priority=1, now=NOW)
    stored = state.items.get(task.id)
    assert isinstance(stored, Task)
    assert stored.owner_id == 1000
    assert stored.create_time == NOW
    assert stored.priority == 1


def test_add_task_without_target_is_due_end_of_today(state: AppState) -> None:
    task = item_api.add_task(state, category="home", content="buy milk", now=NOW)
    assert state.items.get(task.id).target_time == end_of_day(NOW)
    assert [i.content for i in _list_tasks(state)] == ["buy milk"]


def test_unsaved_item_has_no_stored_id() -> None:
    with pytest.raises(NotFoundError):
        item_api._stored_id(Task(category="w", content="draft", target_time=NOW))


def test_add_validates_input(state: AppState) -> None:
    with pytest.raises(ValueError):
        item_api.add_record(state, category="", content="x")
    with pytest.raises(ValueError):
        item_api.add_task(state, category="work", content="   ")
    with pytest.raises(ScheduleError):
        item_api.add_recurring_task(state, category="work", content="x", schedule="every tuesday")


def test_complete_task_appends_record_and_sets_status(state: AppState) -> None:
    task = item_api.add_task(state, category="work", content="write report", target_time=NOW + 10, now=NOW)
    _list_tasks(state)

    result = item_api.complete_item(state, 1, comment="sent to Bob", now=NOW)

    assert result.item.id == task.id
    stored = state.items.get(task.id)
    assert stored.status is ItemStatus.DONE
    assert stored.content == "write report\nsent to Bob"
    assert isinstance(result.record, Record)
    assert result.record.content == "Completed Task: write report\nsent to Bob"
    assert state.items.get(result.record.id).kind is ItemKind.RECORD


def test_complete_task_with_other_closing_status(state: AppState) -> None:
    task = item_api.add_task(state, category="work", content="dup", target_time=NOW + 10, now=NOW)
    _list_tasks(state)
    item_api.complete_item(state, 1, status=ItemStatus.DUPLICATE, now=NOW)
    assert state.items.get(task.id).status is ItemStatus.DUPLICATE


def test_complete_task_rolls_back_when_status_write_fails(
    state: AppState, monkeypatch: pytest.MonkeyPatch
) -> None:
    task = item_api.add_task(state, category="work", content="write report", target_time=NOW + 10, now=NOW)
    _list_tasks(state)

    def fail_update(item, *, conn=None):
        raise StoreError("disk full")

    monkeypatch.setattr(state.items, "update", fail_update)
    with pytest.raises(StoreError):
        item_api.complete_item(state, 1, now=NOW)
    monkeypatch.undo()

    assert state.items.get(task.id).status is ItemStatus.ONGOING
    assert state.items.scan(ItemQuery().with_kind(ItemKind.RECORD)) == []


def test_complete_recurring_twice_conflicts(state: AppState) -> None:
    item_api.add_recurring_task(state, category="work", content="standup", schedule=DAILY, now=NOW)
    _list_tasks(state, status=StatusGroup.ALL)

    first = item_api.complete_item(state, 1, now=NOW)
    assert first.record.content == "Completed Recurring Task: standup"

    with pytest.raises(StateConflictError) as ei:
        item_api.complete_item(state, 1, now=NOW + 5)
    assert str(ei.value) == ALREADY_COMPLETED_MSG

    # Completed for this interval: hidden from the default (open) listing.
    assert _list_tasks(state) == []


def test_complete_record_is_rejected(state: AppState) -> None:
    item_api.add_record(state, category="log", content="note to self", now=NOW)
    _list_records(state)
    with pytest.raises(StateConflictError) as ei:
        item_api.complete_item(state, 1, now=NOW)
    assert str(ei.value) == "Cannot complete a record"


def test_update_task_fields(state: AppState) -> None:
    task = item_api.add_task(state, category="work", content="draft", target_time=NOW + 10, now=NOW)
    _list_tasks(state)

    item_api.update_item(
        state,
        1,
        ItemUpdate(add_content="more detail", category="home", target_time=NOW + 99, reminder_days=2),
    )

    stored = state.items.get(task.id)
    assert stored.content == "draft\nmore detail"
    assert stored.category == "home"
    assert stored.target_time == NOW + 99
    assert stored.reminder_days == 2
    assert stored.modify_time is not None


def test_update_recurring_rules(state: AppState) -> None:
    rt = item_api.add_recurring_task(state, category="work", content="standup", schedule=DAILY, now=NOW)
    _list_tasks(state)

    with pytest.raises(StateConflictError) as ei:
        item_api.update_item(state, 1, ItemUpdate(status=ItemStatus.DONE))
    assert str(ei.value) == "Cannot update status for recurring tasks"

    with pytest.raises(StateConflictError) as ei:
        item_api.update_item(state, 1, ItemUpdate(add_content="x"))
    assert str(ei.value) == "Cannot use add_content for recurring tasks, use content instead"

    with pytest.raises(ScheduleError):
        item_api.update_item(state, 1, ItemUpdate(schedule="not cron"))

    item_api.update_item(state, 1, ItemUpdate(schedule="30 8 * * 1-5", human_schedule="weekdays 8:30", content="sync"))
    stored = state.items.get(rt.id)
    assert isinstance(stored, RecurringTask)
    assert stored.cron_schedule == "30 8 * * 1-5"
    assert stored.human_schedule == "weekdays 8:30"
    assert stored.content == "sync"


def test_update_task_rejects_schedule(state: AppState) -> None:
    item_api.add_task(state, category="work", content="x", target_time=NOW + 10, now=NOW)
    _list_tasks(state)
    with pytest.raises(StateConflictError):
        item_api.update_item(state, 1, ItemUpdate(schedule=DAILY))


def test_delete_removes_item_and_annotations(state: AppState) -> None:
    task = item_api.add_task(state, category="work", content="x", target_time=NOW + 10, now=NOW)
    _list_tasks(state)
    item_api.add_note(state, 1, "a note")
    item_api.add_link(state, 1, "url", "https://example.com")

    deleted = item_api.delete_item(state, 1)

    assert deleted.id == task.id
    assert state.items.scan(ItemQuery().with_kind(ItemKind.TASK)) == []
    assert state.notes.for_item(task.id) == []
    assert state.links.for_item(task.id) == []


def test_delete_rolls_back_when_link_cleanup_fails(
    state: AppState, monkeypatch: pytest.MonkeyPatch
) -> None:
    task = item_api.add_task(state, category="work", content="x", target_time=NOW + 10, now=NOW)
    _list_tasks(state)
    item_api.add_note(state, 1, "keep this note")

    def fail_cleanup(item_id, *, conn=None):
        raise StoreError("locked")

    monkeypatch.setattr(state.links, "delete_for_item", fail_cleanup)
    with pytest.raises(StoreError):
        item_api.delete_item(state, 1)

    assert state.items.get(task.id).content == "x"
    assert [n.content for n in state.notes.for_item(task.id)] == ["keep this note"]


def test_notes_and_links_show_up_in_details(state: AppState) -> None:
    item_api.add_task(state, category="work", content="fix bug", target_time=NOW + 10, now=NOW)
    _list_tasks(state)

    _, note_id = item_api.add_note(state, 1, "reproduced on main")
    _, link_id = item_api.add_link(state, 1, "issue", "#42", title="Crash on start")
    item_api.add_link(state, 1, "commit", "abc123")

    details = item_api.show_item(state, 1)
    assert [n.id for n in details.notes] == [note_id]
    assert details.notes[0].created_by == 1000
    assert [link.display() for link in details.links] == ["[issue] #42 - Crash on start", "[commit] abc123"]
    assert details.links[0].id == link_id

    with pytest.raises(StateConflictError) as ei:
        item_api.add_link(state, 1, "commit", "abc123")
    assert str(ei.value) == "Link 'abc123' already exists for this task"

    with pytest.raises(ValueError):
        item_api.add_link(state, 1, "wiki", "page")


def test_records_cannot_be_annotated_or_claimed(state: AppState) -> None:
    item_api.add_record(state, category="log", content="r", now=NOW)
    _list_records(state)

    with pytest.raises(StateConflictError, match="Cannot add notes to records"):
        item_api.add_note(state, 1, "x")
    with pytest.raises(StateConflictError, match="Cannot add links to records"):
        item_api.add_link(state, 1, "url", "https://example.com")
    with pytest.raises(StateConflictError, match="Cannot claim a record"):
        item_api.claim_item(state, 1)


def test_claim_assigns_current_user_once(state: AppState) -> None:
    task = item_api.add_task(state, category="work", content="x", target_time=NOW + 10, now=NOW)
    other = item_api.add_task(state, category="work", content="y", target_time=NOW + 20, now=NOW)
    other.assignee_id = 7
    state.items.update(other)
    _list_tasks(state)

    claimed = item_api.claim_item(state, 1)
    assert claimed.assignee_id == 1000
    assert state.items.get(task.id).assignee_id == 1000

    with pytest.raises(StateConflictError) as ei:
        item_api.claim_item(state, 1)
    assert str(ei.value) == "You are already assigned to this task"

    with pytest.raises(StateConflictError) as ei:
        item_api.claim_item(state, 2)
    assert str(ei.value) == "Task is already assigned. Use update command to reassign."
