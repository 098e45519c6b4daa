"""SQLite storage: location, schema and value conversions."""

from __future__ import annotations

import os
import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLI = timedelta(milliseconds=1)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    slug        TEXT NOT NULL UNIQUE,
    color       TEXT,
    archived    INTEGER NOT NULL DEFAULT 0,
    created_at  INTEGER NOT NULL,
    updated_at  INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS tasks (
    id           TEXT PRIMARY KEY,
    project_id   TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    title        TEXT NOT NULL,
    description  TEXT,
    status       TEXT NOT NULL DEFAULT 'todo'
                 CHECK (status IN ('todo', 'in_progress', 'done', 'archived')),
    external_ref TEXT,
    created_at   INTEGER NOT NULL,
    updated_at   INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_tasks_project ON tasks(project_id);
CREATE TABLE IF NOT EXISTS timers (
    id               TEXT PRIMARY KEY,
    task_id          TEXT NOT NULL UNIQUE REFERENCES tasks(id) ON DELETE CASCADE,
    started_at       INTEGER NOT NULL,
    note             TEXT,
    source           TEXT NOT NULL,
    paused_at        INTEGER,
    paused_total_sec INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS time_entries (
    id           TEXT PRIMARY KEY,
    task_id      TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
    started_at   INTEGER NOT NULL,
    ended_at     INTEGER NOT NULL,
    duration_sec INTEGER NOT NULL,
    note         TEXT,
    source       TEXT NOT NULL,
    created_at   INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_time_entries_started ON time_entries(started_at);
CREATE INDEX IF NOT EXISTS idx_time_entries_task ON time_entries(task_id);
"""


def default_data_dir() -> Path:
    """Per-OS directory for timer data."""
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if not base:
            raise OSError("neither %LOCALAPPDATA% nor %APPDATA% is defined")
        return Path(base) / "timer"
    return Path.home() / ".local" / "share" / "timer"


def resolve_db_path() -> Path:
    """$TIMER_DB_PATH if set, else timer.db in the data directory (created)."""
    override = os.environ.get("TIMER_DB_PATH")
    if override:
        return Path(override)
    data_dir = default_data_dir()
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OSError(f"create data dir: {exc}") from exc
    return data_dir / "timer.db"


def open_database(path: str | os.PathLike[str]) -> sqlite3.Connection:
    """Open the database, enable foreign keys and apply the schema."""
    conn = sqlite3.connect(os.fspath(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA busy_timeout = 5000")
    conn.executescript(_SCHEMA)
    return conn


def to_millis(dt: datetime) -> int:
    """Unix milliseconds; naive datetimes are taken as local time."""
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return (dt - _EPOCH) // _MILLI


def from_millis(ms: int) -> datetime:
    """Timezone-aware local datetime from Unix milliseconds."""
    return (_EPOCH + ms * _MILLI).astimezone()


def none_if_empty(value: str) -> str | None:
    """None for an empty string, otherwise the string."""
    return value or None


def empty_if_none(value: str | None) -> str:
    """An empty string for None, otherwise the string."""
    return value if value is not None else ""