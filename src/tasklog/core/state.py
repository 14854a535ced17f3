# src/tasklog/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..items.annotations import LinkStore, NoteStore
from .ports import DisplayIndex, ItemRepo, OccurrenceOracle


@dataclass
class AppState:
    # Settings object (real Settings or a test namespace with the same attributes).
    settings: Any

    items: ItemRepo
    display_cache: DisplayIndex
    notes: NoteStore
    links: LinkStore
    oracle: OccurrenceOracle

    user_id: int | None = None
    user_name: str = "unknown"
