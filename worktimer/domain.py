"""Core domain types: projects, tasks, timers, time entries and errors."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TaskStatus(str, Enum):
    """Lifecycle state of a task."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    ARCHIVED = "archived"


class Source(str, Enum):
    """The surface that created a timer or time entry."""

    CLI = "cli"
    TUI = "tui"
    MCP = "mcp"
    MANUAL = "manual"


@dataclass(kw_only=True)
class Project:
    """A top-level grouping of tasks."""

    id: str
    name: str
    slug: str
    color: str = ""
    archived: bool = False
    created_at: datetime = _EPOCH
    updated_at: datetime = _EPOCH


@dataclass(kw_only=True)
class Task:
    """A unit of work inside a project, with denormalized project info."""

    id: str
    project_id: str
    title: str
    project_name: str = ""
    project_slug: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    external_ref: str = ""
    created_at: datetime = _EPOCH
    updated_at: datetime = _EPOCH


@dataclass(kw_only=True)
class Timer:
    """An in-flight tracking session for a task."""

    started_at: datetime
    id: str = ""
    task_id: str = ""
    task_title: str = ""
    project_id: str = ""
    project_name: str = ""
    project_slug: str = ""
    note: str = ""
    source: Source = Source.CLI
    paused_at: datetime | None = None
    paused_total_sec: int = 0

    def elapsed_sec(self, now: datetime) -> int:
        """Work seconds so far, excluding prior and current pauses; never negative."""
        total = int((now - self.started_at).total_seconds()) - self.paused_total_sec
        if self.paused_at is not None:
            total -= int((now - self.paused_at).total_seconds())
        return max(total, 0)

    def is_paused(self) -> bool:
        """True while the timer has an open pause."""
        return self.paused_at is not None


@dataclass(kw_only=True)
class TimeEntry:
    """A closed, committed work segment."""

    id: str = ""
    task_id: str = ""
    task_title: str = ""
    project_id: str = ""
    project_name: str = ""
    project_slug: str = ""
    started_at: datetime = _EPOCH
    ended_at: datetime = _EPOCH
    duration_sec: int = 0
    note: str = ""
    source: Source = Source.CLI
    created_at: datetime = _EPOCH


class TimerAppError(Exception):
    """Base class for every error the application reports."""

    default_message = "timer error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NotFoundError(TimerAppError):
    """A referenced project, task or timer does not exist."""

    default_message = "not found"


class AmbiguousPrefixError(TimerAppError):
    """An id prefix matched more than one record."""

    default_message = "ambiguous prefix"


class ValidationError(TimerAppError, ValueError):
    """Input was rejected before touching storage."""

    default_message = "invalid input"


class TimerAlreadyRunningError(TimerAppError):
    """A timer is already active for the task."""

    default_message = "timer already running for this task"


class _TimerStateError(TimerAppError):
    def __init__(self, message: str | None = None, *, timer: Timer | None = None) -> None:
        super().__init__(message)
        self.timer = timer


class TimerNotPausedError(_TimerStateError):
    """Resume was requested on a running timer."""

    default_message = "timer is not paused"


class TimerAlreadyPausedError(_TimerStateError):
    """Pause was requested on a paused timer."""

    default_message = "timer is already paused"