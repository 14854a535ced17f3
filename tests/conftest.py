# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasklog.core.state import AppState
from tasklog.items.annotations import LinkStore, NoteStore
from tasklog.items.display_cache import DisplayCache
from tasklog.items.item_store import ItemStore

from .fakes import FakeOracle


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    A SimpleNamespace rather than the real config keeps unit tests isolated
    from the environment and any .env file.
    """
    return SimpleNamespace(
        app_name="tasklog-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        db_path=tmp_path / "tasklog.sqlite3",
        log_dir=tmp_path / "logs",
        page_size=100,
        user_name="tester",
        user_id=1000,
    )


@pytest.fixture()
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture()
def store(settings: SimpleNamespace) -> ItemStore:
    return ItemStore(settings.db_path)


@pytest.fixture()
def cache(settings: SimpleNamespace) -> DisplayCache:
    return DisplayCache(settings.db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, store: ItemStore, cache: DisplayCache, oracle: FakeOracle) -> AppState:
    """
    AppState wired with real SQLite stores and a deterministic oracle.
    """
    return AppState(
        settings=settings,
        items=store,
        display_cache=cache,
        notes=NoteStore(settings.db_path),
        links=LinkStore(settings.db_path),
        oracle=oracle,
        user_id=settings.user_id,
        user_name=settings.user_name,
    )
