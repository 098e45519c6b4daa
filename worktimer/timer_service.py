"""Timer lifecycle (start, stop, pause, resume) and time-entry reads."""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass, replace
from datetime import datetime

from .database import empty_if_none, from_millis, none_if_empty, to_millis
from .domain import (
    AmbiguousPrefixError,
    NotFoundError,
    Source,
    TaskStatus,
    TimeEntry,
    Timer,
    TimerAlreadyPausedError,
    TimerAlreadyRunningError,
    TimerAppError,
    TimerNotPausedError,
    ValidationError,
)
from .report import ReportSummary, aggregate_entries

_ACTIVE_TIMERS_SQL = (
    "SELECT tm.id, tm.task_id, tm.started_at, tm.note, tm.source, tm.paused_at,"
    " tm.paused_total_sec, t.title AS task_title, p.id AS project_id,"
    " p.name AS project_name, p.slug AS project_slug"
    " FROM timers tm JOIN tasks t ON t.id = tm.task_id"
    " JOIN projects p ON p.id = t.project_id"
    " ORDER BY tm.started_at ASC"
)

_LIST_ENTRIES_SQL = (
    "SELECT te.id, te.task_id, te.started_at, te.ended_at, te.duration_sec, te.note,"
    " te.source, te.created_at, t.title AS task_title, p.id AS project_id,"
    " p.name AS project_name, p.slug AS project_slug"
    " FROM time_entries te JOIN tasks t ON t.id = te.task_id"
    " JOIN projects p ON p.id = t.project_id"
    " WHERE te.started_at >= ? AND (? = '' OR t.project_id = ?)"
    " ORDER BY te.started_at DESC LIMIT ?"
)


@dataclass
class ListEntriesOpts:
    """Time-entry filters; defaults mean no lower bound, all projects, 20 rows."""

    min_started_at: datetime | None = None
    project_slug: str = ""
    limit: int = 0


class StopAllError(TimerAppError):
    """At least one timer failed to stop; `entries` holds the ones that did."""

    default_message = "could not stop every timer"

    def __init__(self, message: str | None = None, *, entries: list[TimeEntry]) -> None:
        super().__init__(message)
        self.entries = entries


def _now() -> datetime:
    return datetime.now().astimezone()


def _timer_from_row(row: sqlite3.Row) -> Timer:
    paused = row["paused_at"]
    return Timer(
        id=row["id"],
        task_id=row["task_id"],
        task_title=row["task_title"],
        project_id=row["project_id"],
        project_name=row["project_name"],
        project_slug=row["project_slug"],
        started_at=from_millis(row["started_at"]),
        note=empty_if_none(row["note"]),
        source=Source(row["source"]),
        paused_at=None if paused is None else from_millis(paused),
        paused_total_sec=row["paused_total_sec"],
    )


def _entry_from_row(row: sqlite3.Row) -> TimeEntry:
    return TimeEntry(
        id=row["id"],
        task_id=row["task_id"],
        task_title=row["task_title"],
        project_id=row["project_id"],
        project_name=row["project_name"],
        project_slug=row["project_slug"],
        started_at=from_millis(row["started_at"]),
        ended_at=from_millis(row["ended_at"]),
        duration_sec=row["duration_sec"],
        note=empty_if_none(row["note"]),
        source=Source(row["source"]),
        created_at=from_millis(row["created_at"]),
    )


class TimerService:
    """Owns timer state transitions and time-entry queries."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _resolve_task(self, prefix: str) -> sqlite3.Row:
        prefix = prefix.strip()
        if not prefix:
            raise ValidationError("task id prefix cannot be empty")
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

    def _resolve_active_timer(self, prefix: str) -> Timer:
        prefix = prefix.strip()
        if not prefix:
            raise ValidationError("task id prefix cannot be empty")
        matches = [t for t in self.list_active() if t.task_id.startswith(prefix)]
        if not matches:
            raise NotFoundError(f'no active timer for task prefix "{prefix}"')
        if len(matches) > 1:
            raise AmbiguousPrefixError(
                f'ambiguous task prefix "{prefix}": matches {len(matches)} active timers'
            )
        return matches[0]

    def start(self, task_id_prefix: str) -> Timer:
        """Create a timer on the task; a 'todo' task becomes 'in_progress'."""
        task = self._resolve_task(task_id_prefix)
        now_ms = to_millis(_now())
        timer_id = str(uuid.uuid4())

        try:
            with self._conn:
                self._conn.execute(
                    "INSERT INTO timers (id, task_id, started_at, note, source)"
                    " VALUES (?, ?, ?, NULL, ?)",
                    (timer_id, task["id"], now_ms, Source.CLI.value),
                )
                if task["status"] == TaskStatus.TODO.value:
                    self._conn.execute(
                        "UPDATE tasks SET status = ?, updated_at = ? WHERE id = ?",
                        (TaskStatus.IN_PROGRESS.value, now_ms, task["id"]),
                    )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE constraint failed" in str(exc):
                raise TimerAlreadyRunningError() from exc
            raise

        for timer in self.list_active():
            if timer.id == timer_id:
                return timer
        raise NotFoundError(f"timer {timer_id} not found")

    def _stop_one(self, timer: Timer, now: datetime) -> TimeEntry:
        duration_sec = timer.elapsed_sec(now)
        now_ms = to_millis(now)
        entry_id = str(uuid.uuid4())
        with self._conn:
            self._conn.execute(
                "INSERT INTO time_entries (id, task_id, started_at, ended_at, duration_sec,"
                " note, source, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry_id,
                    timer.task_id,
                    to_millis(timer.started_at),
                    now_ms,
                    duration_sec,
                    none_if_empty(timer.note),
                    Source.CLI.value,
                    now_ms,
                ),
            )
            self._conn.execute("DELETE FROM timers WHERE id = ?", (timer.id,))
        return TimeEntry(
            id=entry_id,
            task_id=timer.task_id,
            task_title=timer.task_title,
            project_id=timer.project_id,
            project_name=timer.project_name,
            project_slug=timer.project_slug,
            started_at=timer.started_at,
            ended_at=now,
            duration_sec=duration_sec,
            note=timer.note,
            source=Source.CLI,
            created_at=now,
        )

    def stop(self, task_id_prefix: str) -> TimeEntry:
        """Close the task's timer into a time entry, excluding paused time."""
        timer = self._resolve_active_timer(task_id_prefix)
        return self._stop_one(timer, _now())

    def stop_all(self) -> list[TimeEntry]:
        """Stop every active timer; on failure raise StopAllError with the partial list."""
        timers = self.list_active()
        now = _now()
        entries: list[TimeEntry] = []
        first_error: Exception | None = None
        for timer in timers:
            try:
                entries.append(self._stop_one(timer, now))
            except (sqlite3.Error, TimerAppError) as exc:
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise StopAllError(str(first_error), entries=entries) from first_error
        return entries

    def pause(self, task_id_prefix: str) -> Timer:
        """Mark the task's timer as paused now."""
        timer = self._resolve_active_timer(task_id_prefix)
        if timer.is_paused():
            raise TimerAlreadyPausedError(timer=timer)
        now = _now()
        with self._conn:
            self._conn.execute(
                "UPDATE timers SET paused_at = ? WHERE id = ?", (to_millis(now), timer.id)
            )
        return replace(timer, paused_at=now)

    def resume(self, task_id_prefix: str) -> Timer:
        """Clear the pause and add its length to the accumulated paused total."""
        timer = self._resolve_active_timer(task_id_prefix)
        if timer.paused_at is None:
            raise TimerNotPausedError(timer=timer)
        now = _now()
        extra = max(int((now - timer.paused_at).total_seconds()), 0)
        with self._conn:
            self._conn.execute(
                "UPDATE timers SET paused_at = NULL,"
                " paused_total_sec = paused_total_sec + ? WHERE id = ?",
                (extra, timer.id),
            )
        return replace(
            timer, paused_at=None, paused_total_sec=timer.paused_total_sec + extra
        )

    def list_active(self) -> list[Timer]:
        """Every running or paused timer with task and project info."""
        rows = self._conn.execute(_ACTIVE_TIMERS_SQL).fetchall()
        return [_timer_from_row(row) for row in rows]

    def list_entries(self, opts: ListEntriesOpts | None = None) -> list[TimeEntry]:
        """Time entries matching the options, newest first."""
        opts = opts or ListEntriesOpts()
        limit = opts.limit if opts.limit > 0 else 20

        project_id = ""
        if opts.project_slug:
            row = self._conn.execute(
                "SELECT id FROM projects WHERE slug = ?", (opts.project_slug,)
            ).fetchone()
            if row is None:
                raise NotFoundError(f'project "{opts.project_slug}" not found')
            project_id = row["id"]

        min_ms = 0 if opts.min_started_at is None else to_millis(opts.min_started_at)
        rows = self._conn.execute(
            _LIST_ENTRIES_SQL, (min_ms, project_id, project_id, limit)
        ).fetchall()
        return [_entry_from_row(row) for row in rows]

    def log_entry(
        self,
        task_id_prefix: str,
        started_at: datetime,
        ended_at: datetime,
        note: str = "",
        source: Source | str | None = None,
    ) -> TimeEntry:
        """Insert a manual time entry for an existing task."""
        if not task_id_prefix.strip():
            raise ValidationError("task id prefix cannot be empty")
        start_ms = to_millis(started_at)
        end_ms = to_millis(ended_at)
        if end_ms <= start_ms:
            raise ValidationError("endedAt must be strictly after startedAt")
        source = Source(source) if source else Source.MANUAL

        task = self._resolve_task(task_id_prefix)
        duration_sec = (end_ms - start_ms) // 1000
        now = _now()
        entry_id = str(uuid.uuid4())
        with self._conn:
            self._conn.execute(
                "INSERT INTO time_entries (id, task_id, started_at, ended_at, duration_sec,"
                " note, source, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry_id,
                    task["id"],
                    start_ms,
                    end_ms,
                    duration_sec,
                    none_if_empty(note),
                    source.value,
                    to_millis(now),
                ),
            )
        return TimeEntry(
            id=entry_id,
            task_id=task["id"],
            started_at=started_at,
            ended_at=ended_at,
            duration_sec=duration_sec,
            note=note,
            source=source,
            created_at=now,
        )

    def build_report(self, opts: ListEntriesOpts | None = None) -> ReportSummary:
        """Aggregate matching entries; an unset limit means up to 10000 rows."""
        opts = opts or ListEntriesOpts()
        if opts.limit == 0:
            opts = replace(opts, limit=10000)
        return aggregate_entries(self.list_entries(opts))