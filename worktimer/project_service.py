"""Project operations: create, list, seed, archive and delete."""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime

from .database import empty_if_none, from_millis, to_millis
from .domain import (
    NotFoundError,
    Project,
    Source,
    TimeEntry,
    Timer,
    TimerAppError,
    ValidationError,
)
from .slugs import slugify


class ProjectExistsError(TimerAppError):
    """A project with the same slug already exists."""

    default_message = "project with that slug already exists"


class ProjectNotArchivedError(TimerAppError):
    """A hard delete was requested on an active project without force."""

    default_message = "project is not archived; archive it first or pass force=true"


@dataclass
class ArchiveResult:
    """The archived project and the entries written for timers it closed."""

    project: Project
    closed_entries: list[TimeEntry] = field(default_factory=list)
    already_archived: bool = False


@dataclass
class DeleteResult:
    """What a hard delete removed, counted before the delete."""

    project: Project
    task_count: int
    time_entry_count: int
    active_timer_count: int


def _project_from_row(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        color=empty_if_none(row["color"]),
        archived=row["archived"] == 1,
        created_at=from_millis(row["created_at"]),
        updated_at=from_millis(row["updated_at"]),
    )


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


class ProjectService:
    """Validates input and runs project queries against the database."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, name: str) -> Project:
        """Insert a project whose slug is derived from its name."""
        name = name.strip()
        if not name:
            raise ValidationError("project name cannot be empty")
        slug = slugify(name)
        if not slug:
            raise ValidationError(f'could not derive a slug from "{name}"')

        now = datetime.now().astimezone()
        now_ms = to_millis(now)
        project_id = str(uuid.uuid4())
        try:
            with self._conn:
                self._conn.execute(
                    "INSERT INTO projects (id, name, slug, color, archived, created_at, updated_at)"
                    " VALUES (?, ?, ?, NULL, 0, ?, ?)",
                    (project_id, name, slug, now_ms, now_ms),
                )
        except sqlite3.IntegrityError as exc:
            if _is_unique_violation(exc):
                raise ProjectExistsError(
                    f'{ProjectExistsError.default_message}: "{slug}"'
                ) from exc
            raise
        return Project(id=project_id, name=name, slug=slug, created_at=now, updated_at=now)

    def seed_defaults_if_empty(self) -> bool:
        """Create the Inbox project when none exist; True if it did."""
        (count,) = self._conn.execute("SELECT COUNT(*) FROM projects").fetchone()
        if count > 0:
            return False
        self.create("Inbox")
        return True

    def list(self, include_archived: bool) -> list[Project]:
        """Projects ordered by name, case-insensitively."""
        rows = self._conn.execute(
            "SELECT * FROM projects WHERE archived = 0 OR ? = 1"
            " ORDER BY name COLLATE NOCASE ASC",
            (1 if include_archived else 0,),
        ).fetchall()
        return [_project_from_row(row) for row in rows]

    def _get_by_slug(self, slug: str) -> Project:
        row = self._conn.execute("SELECT * FROM projects WHERE slug = ?", (slug,)).fetchone()
        if row is None:
            raise NotFoundError(f'project "{slug}" not found')
        return _project_from_row(row)

    def archive(self, slug: str) -> ArchiveResult:
        """Archive a project, closing its running timers in the same transaction."""
        slug = slug.strip()
        if not slug:
            raise ValidationError("project slug cannot be empty")
        project = self._get_by_slug(slug)
        if project.archived:
            return ArchiveResult(project=project, already_archived=True)

        rows = self._conn.execute(
            "SELECT tm.id, tm.task_id, tm.started_at, tm.note, tm.paused_at,"
            " tm.paused_total_sec, t.title AS task_title"
            " FROM timers tm JOIN tasks t ON t.id = tm.task_id"
            " WHERE t.project_id = ? ORDER BY tm.started_at",
            (project.id,),
        ).fetchall()

        now = datetime.now().astimezone()
        now_ms = to_millis(now)
        closed: list[TimeEntry] = []
        with self._conn:
            for row in rows:
                timer = Timer(
                    id=row["id"],
                    task_id=row["task_id"],
                    started_at=from_millis(row["started_at"]),
                    paused_at=None if row["paused_at"] is None else from_millis(row["paused_at"]),
                    paused_total_sec=row["paused_total_sec"],
                )
                duration_sec = timer.elapsed_sec(now)
                entry_id = str(uuid.uuid4())
                self._conn.execute(
                    "INSERT INTO time_entries (id, task_id, started_at, ended_at, duration_sec,"
                    " note, source, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        entry_id,
                        row["task_id"],
                        row["started_at"],
                        now_ms,
                        duration_sec,
                        row["note"],
                        Source.CLI.value,
                        now_ms,
                    ),
                )
                self._conn.execute("DELETE FROM timers WHERE id = ?", (row["id"],))
                closed.append(
                    TimeEntry(
                        id=entry_id,
                        task_id=row["task_id"],
                        task_title=row["task_title"],
                        project_id=project.id,
                        project_name=project.name,
                        project_slug=project.slug,
                        started_at=timer.started_at,
                        ended_at=now,
                        duration_sec=duration_sec,
                        note=empty_if_none(row["note"]),
                        source=Source.CLI,
                        created_at=now,
                    )
                )
            self._conn.execute(
                "UPDATE projects SET archived = 1, updated_at = ? WHERE id = ?",
                (now_ms, project.id),
            )

        return ArchiveResult(
            project=replace(project, archived=True, updated_at=now),
            closed_entries=closed,
        )

    def delete(self, slug: str, force: bool) -> DeleteResult:
        """Hard-delete a project and everything under it; requires archive or force."""
        slug = slug.strip()
        if not slug:
            raise ValidationError("project slug cannot be empty")
        project = self._get_by_slug(slug)
        if not project.archived and not force:
            raise ProjectNotArchivedError(
                f"{ProjectNotArchivedError.default_message} (slug: {slug})"
            )

        (task_count,) = self._conn.execute(
            "SELECT COUNT(*) FROM tasks WHERE project_id = ?", (project.id,)
        ).fetchone()
        (entry_count,) = self._conn.execute(
            "SELECT COUNT(*) FROM time_entries te JOIN tasks t ON t.id = te.task_id"
            " WHERE t.project_id = ?",
            (project.id,),
        ).fetchone()
        (timer_count,) = self._conn.execute(
            "SELECT COUNT(*) FROM timers tm JOIN tasks t ON t.id = tm.task_id"
            " WHERE t.project_id = ?",
            (project.id,),
        ).fetchone()

        with self._conn:
            self._conn.execute("DELETE FROM projects WHERE id = ?", (project.id,))

        return DeleteResult(
            project=project,
            task_count=task_count,
            time_entry_count=entry_count,
            active_timer_count=timer_count,
        )