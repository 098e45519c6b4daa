"""Shared pieces of the agent tools: results, timer picking and task resolution."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..domain import Task, Timer, TimerAppError
from ..formatting import duration
from ..projectdetect import detect
from ..task_service import TaskService

_SERVICE_ERRORS = (TimerAppError, sqlite3.Error)
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


@dataclass
class ToolResult:
    """Text returned to the agent; is_error marks a failed call."""

    text: str
    is_error: bool = False


class ToolError(Exception):
    """A tool call failed with a message meant for the agent."""


def _string_arg(args: Mapping[str, Any] | None, key: str, default: str = "") -> str:
    value = (args or {}).get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _bool_arg(args: Mapping[str, Any] | None, key: str, default: bool = False) -> bool:
    value = (args or {}).get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        return default
    if isinstance(value, (int, float)):
        return value != 0
    return default


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _failure(context: str, exc: BaseException) -> ToolResult:
    return ToolResult(f"{context}: {exc}", is_error=True)


@dataclass
class TimerFilters:
    """Optional filters on stop/pause/resume; empty fields match everything."""

    task_title: str = ""
    project_slug: str = ""

    def matches(self, timer: Timer) -> bool:
        """True when the timer passes both filters."""
        if self.project_slug and timer.project_slug != self.project_slug:
            return False
        if self.task_title and self.task_title.lower() not in timer.task_title.lower():
            return False
        return True


def render_timer_list(timers: Sequence[Timer], now: datetime) -> str:
    """One indented line per timer, marked running or paused."""
    lines = []
    for timer in timers:
        marker = "⏸" if timer.is_paused() else "▶"
        lines.append(
            f"  {marker} {timer.task_title} ({timer.project_name})"
            f" · {duration(timer.elapsed_sec(now))}"
        )
    return "\n".join(lines)


def pick_active(timers: Sequence[Timer], filters: TimerFilters, now: datetime) -> Timer:
    """Exactly one timer matching the filters, or ToolError listing candidates."""
    if not timers:
        raise ToolError("no hay timers activos")
    matches = [timer for timer in timers if filters.matches(timer)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise ToolError(
            "ningún timer activo coincide con los filtros. Timers activos:\n"
            + render_timer_list(timers, now)
        )
    raise ToolError(
        f"hay {len(matches)} timers activos y no pude desambiguar."
        " Especificá taskTitle o projectSlug:\n" + render_timer_list(matches, now)
    )


def resolve_or_create_task(
    task_service: TaskService,
    task_id: str = "",
    project_slug: str = "",
    task_title: str = "",
) -> tuple[Task, bool]:
    """Find a task by id prefix or (project, title), creating it if needed.

    Returns the task and whether it was created by this call.
    """
    task_id = task_id.strip()
    task_title = task_title.strip()
    project_slug = project_slug.strip()

    if task_id:
        try:
            all_tasks = task_service.list("", True)
        except _SERVICE_ERRORS as exc:
            raise ToolError(f"listar tareas: {exc}") from exc
        matches = [task for task in all_tasks if task.id.startswith(task_id)]
        if not matches:
            raise ToolError(f"no task matches id {_quote(task_id)}")
        if len(matches) > 1:
            raise ToolError(
                f"ambiguous task id {_quote(task_id)}: matches {len(matches)} tasks"
            )
        return matches[0], False

    if not task_title:
        raise ToolError(
            "se requiere taskId, o (projectSlug + taskTitle), o taskTitle"
            " (con auto-detect del cwd)"
        )

    if not project_slug:
        inferred = detect("").inferred_slug
        if not inferred:
            raise ToolError(
                "no se pudo inferir un proyecto desde el cwd; pasá projectSlug explícito"
            )
        project_slug = inferred

    try:
        tasks = task_service.list(project_slug, True)
    except _SERVICE_ERRORS as exc:
        raise ToolError(
            f"listar tareas del proyecto {_quote(project_slug)}: {exc}"
        ) from exc

    needle = task_title.lower()
    for task in tasks:
        if task.title.lower() == needle:
            return task, False

    try:
        created = task_service.create(project_slug, task_title)
    except _SERVICE_ERRORS as exc:
        raise ToolError(f"crear tarea: {exc}") from exc
    return created, True