# src/tasklog/config.py

"""Centralized settings loaded from environment variables (+ .env).

- One Settings object for the whole app.
- Every variable uses the TASKLOG_ prefix; a .env in the working directory is
  loaded first and never overrides the real environment.
"""

from __future__ import annotations

import getpass
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKLOG"

PAGE_SIZE_MIN = 1
PAGE_SIZE_MAX = 65536


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_opt_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _default_user_name() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    db_path: Path
    log_dir: Path

    # ---- Listing ----
    page_size: int

    # ---- Identity ----
    user_name: str
    user_id: int | None

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "tasklog") or "tasklog"
        log_level = _env(_k("LOG_LEVEL"), "WARNING")

        data_dir = _env_path(_k("DATA_DIR"), Path("~/.local/share/tasklog").expanduser())
        db_path = _env_path(_k("DB_PATH"), data_dir / "tasklog.sqlite3")
        log_dir = _env_path(_k("LOG_DIR"), data_dir / "logs")

        page_size = _env_int(_k("PAGE_SIZE"), 100)
        page_size = max(PAGE_SIZE_MIN, min(PAGE_SIZE_MAX, page_size))

        user_name = _env(_k("USER_NAME"), "") or _default_user_name()
        user_id = _env_opt_int(_k("USER_ID"))
        if user_id is None and hasattr(os, "getuid"):
            user_id = os.getuid()

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            log_dir=log_dir,
            page_size=page_size,
            user_name=user_name,
            user_id=user_id,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
