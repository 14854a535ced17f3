# src/tasklog/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local directories exist,
- wires the SQLite stores and the cron oracle into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..items.annotations import LinkStore, NoteStore
from ..items.display_cache import DisplayCache
from ..items.item_store import ItemStore
from ..items.occurrence import CronOracle

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.log_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    # ItemStore first: it owns the schema version of the shared database file.
    items = ItemStore(settings.db_path)
    state = AppState(
        settings=settings,
        items=items,
        display_cache=DisplayCache(settings.db_path),
        notes=NoteStore(settings.db_path),
        links=LinkStore(settings.db_path),
        oracle=CronOracle(),
        user_id=getattr(settings, "user_id", None),
        user_name=getattr(settings, "user_name", "unknown"),
    )
    logger.debug("State ready db=%s user=%s", settings.db_path, state.user_name)
    return state
