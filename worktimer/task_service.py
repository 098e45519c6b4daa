"""Task operations: create, list, rename, complete and delete."""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass, replace
from datetime import datetime

from .database import empty_if_none, from_millis, to_millis
from .domain import (
    AmbiguousPrefixError,
    NotFoundError,
    Source,
    Task,
    TaskStatus,
    TimeEntry,
    Timer,
    TimerAppError,
    ValidationError,
)

_LIST_SELECT = (
    "SELECT t.*, p.name AS project_name, p.slug AS project_slug"
    " FROM tasks t JOIN projects p ON p.id = t.project_id"
    " WHERE (? = 1 OR t.status NOT IN ('done', 'archived'))"
)
_LIST_ORDER = " ORDER BY p.name COLLATE NOCASE ASC, t.created_at ASC, t.rowid ASC"


class TaskHasHistoryError(TimerAppError):
    """A delete without force hit a task with time entries or an active timer."""

    default_message = (
        "task has time entries or an active timer; pass force=true to delete anyway"
    )


@dataclass
class MarkDoneResult:
    """The completed task and the entry written if a timer was running."""

    task: Task
    entry: TimeEntry | None = None


@dataclass
class DeleteTaskResult:
    """What a hard task delete removed."""

    task: Task
    time_entry_count: int
    had_active_timer: bool


def _now() -> datetime:
    return datetime.now().astimezone()


def _task_from_row(row: sqlite3.Row) -> Task:
    keys = row.keys()
    return Task(
        id=row["id"],
        project_id=row["project_id"],
        project_name=row["project_name"] if "project_name" in keys else "",
        project_slug=row["project_slug"] if "project_slug" in keys else "",
        title=row["title"],
        description=empty_if_none(row["description"]),
        status=TaskStatus(row["status"]),
        external_ref=empty_if_none(row["external_ref"]),
        created_at=from_millis(row["created_at"]),
        updated_at=from_millis(row["updated_at"]),
    )


class TaskService:
    """Validates input and runs task queries; projects are addressed by slug."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _get_project_row(self, slug: str) -> sqlite3.Row:
        row = self._conn.execute("SELECT * FROM projects WHERE slug = ?", (slug,)).fetchone()
        if row is None:
            raise NotFoundError(f'project "{slug}" not found')
        return row

    def _resolve(self, prefix: str) -> sqlite3.Row:
        matches = self._conn.execute(
            "SELECT * FROM tasks WHERE id LIKE ? ORDER BY id", (prefix + "%",)
        ).fetchall()
        if not matches:
            raise NotFoundError(f'no task matches prefix "{prefix}"')
        if len(matches) > 1:
            raise AmbiguousPrefixError(
                f'ambiguous prefix "{prefix}": matches {len(matches)} tasks'
            )
        return matches[0]

    def create(self, project_slug: str, title: str) -> Task:
        """Insert a 'todo' task in the project with the given slug."""
        title = title.strip()
        if not title:
            raise ValidationError("task title cannot be empty")
        project = self._get_project_row(project_slug)

        now = _now()
        now_ms = to_millis(now)
        task_id = str(uuid.uuid4())
        with self._conn:
            self._conn.execute(
                "INSERT INTO tasks (id, project_id, title, description, status,"
                " external_ref, created_at, updated_at)"
                " VALUES (?, ?, ?, NULL, ?, NULL, ?, ?)",
                (task_id, project["id"], title, TaskStatus.TODO.value, now_ms, now_ms),
            )
        return Task(
            id=task_id,
            project_id=project["id"],
            project_name=project["name"],
            project_slug=project["slug"],
            title=title,
            status=TaskStatus.TODO,
            created_at=now,
            updated_at=now,
        )

    def list(self, project_slug: str = "", include_done: bool = False) -> list[Task]:
        """Tasks grouped by project; done and archived ones only with include_done."""
        flag = 1 if include_done else 0
        if project_slug:
            project = self._get_project_row(project_slug)
            rows = self._conn.execute(
                _LIST_SELECT + " AND t.project_id = ?" + _LIST_ORDER, (flag, project["id"])
            ).fetchall()
        else:
            rows = self._conn.execute(_LIST_SELECT + _LIST_ORDER, (flag,)).fetchall()
        return [_task_from_row(row) for row in rows]

    def update_title(self, id_prefix: str, new_title: str) -> Task:
        """Rename the task matching the id prefix."""
        id_prefix = id_prefix.strip()
        new_title = new_title.strip()
        if not id_prefix:
            raise ValidationError("task id prefix cannot be empty")
        if not new_title:
            raise ValidationError("task title cannot be empty")
        row = self._resolve(id_prefix)

        now = _now()
        with self._conn:
            self._conn.execute(
                "UPDATE tasks SET title = ?, updated_at = ? WHERE id = ?",
                (new_title, to_millis(now), row["id"]),
            )
        return replace(_task_from_row(row), title=new_title, updated_at=now)

    def mark_done(self, id_prefix: str) -> MarkDoneResult:
        """Close any running timer on the task and mark it done, atomically."""
        id_prefix = id_prefix.strip()
        if not id_prefix:
            raise ValidationError("task id prefix cannot be empty")
        row = self._resolve(id_prefix)
        timer_row = self._conn.execute(
            "SELECT * FROM timers WHERE task_id = ?", (row["id"],)
        ).fetchone()

        now = _now()
        now_ms = to_millis(now)
        entry: TimeEntry | None = None
        with self._conn:
            if timer_row is not None:
                paused = timer_row["paused_at"]
                timer = Timer(
                    id=timer_row["id"],
                    task_id=timer_row["task_id"],
                    started_at=from_millis(timer_row["started_at"]),
                    note=empty_if_none(timer_row["note"]),
                    source=Source(timer_row["source"]),
                    paused_at=None if paused is None else from_millis(paused),
                    paused_total_sec=timer_row["paused_total_sec"],
                )
                duration_sec = timer.elapsed_sec(now)
                entry_id = str(uuid.uuid4())
                self._conn.execute(
                    "INSERT INTO time_entries (id, task_id, started_at, ended_at,"
                    " duration_sec, note, source, created_at)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        entry_id,
                        timer.task_id,
                        timer_row["started_at"],
                        now_ms,
                        duration_sec,
                        timer_row["note"],
                        Source.CLI.value,
                        now_ms,
                    ),
                )
                self._conn.execute("DELETE FROM timers WHERE id = ?", (timer.id,))
                entry = TimeEntry(
                    id=entry_id,
                    task_id=timer.task_id,
                    task_title=row["title"],
                    project_id=row["project_id"],
                    started_at=timer.started_at,
                    ended_at=now,
                    duration_sec=duration_sec,
                    note=timer.note,
                    source=Source.CLI,
                    created_at=now,
                )
            self._conn.execute(
                "UPDATE tasks SET status = ?, updated_at = ? WHERE id = ?",
                (TaskStatus.DONE.value, now_ms, row["id"]),
            )

        task = replace(_task_from_row(row), status=TaskStatus.DONE, updated_at=now)
        return MarkDoneResult(task=task, entry=entry)

    def delete(self, id_prefix: str, force: bool = False) -> DeleteTaskResult:
        """Hard-delete a task; refuses if it has history unless force is set."""
        id_prefix = id_prefix.strip()
        if not id_prefix:
            raise ValidationError("task id prefix cannot be empty")
        row = self._resolve(id_prefix)

        (entry_count,) = self._conn.execute(
            "SELECT COUNT(*) FROM time_entries WHERE task_id = ?", (row["id"],)
        ).fetchone()
        had_timer = (
            self._conn.execute(
                "SELECT 1 FROM timers WHERE task_id = ?", (row["id"],)
            ).fetchone()
            is not None
        )

        if not force and (entry_count > 0 or had_timer):
            raise TaskHasHistoryError(
                f"{TaskHasHistoryError.default_message} (id: {row['id']},"
                f" entries: {entry_count}, activeTimer: {str(had_timer).lower()})"
            )

        with self._conn:
            self._conn.execute("DELETE FROM tasks WHERE id = ?", (row["id"],))

        return DeleteTaskResult(
            task=_task_from_row(row),
            time_entry_count=entry_count,
            had_active_timer=had_timer,
        )