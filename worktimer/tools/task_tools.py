"""Agent tools for listing, creating and deleting tasks."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..domain import Task
from ..formatting import short_id
from ..task_service import TaskService
from .resolve import (
    _SERVICE_ERRORS,
    ToolResult,
    _bool_arg,
    _failure,
    _quote,
    _string_arg,
)


def list_tasks(task_service: TaskService, args: Mapping[str, Any] | None) -> ToolResult:
    """List tasks, optionally narrowed to a project and a status."""
    project_slug = _string_arg(args, "projectSlug").strip()
    status_filter = _string_arg(args, "status").strip()
    try:
        tasks = task_service.list(project_slug, status_filter != "")
    except _SERVICE_ERRORS as exc:
        return _failure("list_tasks", exc)
    if status_filter:
        tasks = [task for task in tasks if task.status.value == status_filter]
    return ToolResult(format_task_list(tasks, project_slug, status_filter))


def create_task(task_service: TaskService, args: Mapping[str, Any] | None) -> ToolResult:
    """Create a task in the given project."""
    project_slug = _string_arg(args, "projectSlug").strip()
    title = _string_arg(args, "title").strip()
    if not project_slug:
        return ToolResult("projectSlug is required", is_error=True)
    if not title:
        return ToolResult("title is required", is_error=True)
    try:
        task = task_service.create(project_slug, title)
    except _SERVICE_ERRORS as exc:
        return _failure("create_task", exc)
    return ToolResult(
        f"Tarea creada: {_quote(task.title)} en {task.project_name}"
        f" (id: {short_id(task.id)})."
    )


def delete_task(task_service: TaskService, args: Mapping[str, Any] | None) -> ToolResult:
    """Hard-delete a task; requires confirm, and force when it has history."""
    task_id = _string_arg(args, "taskId").strip()
    if not task_id:
        return ToolResult("taskId is required", is_error=True)
    if not _bool_arg(args, "confirm"):
        return ToolResult(
            "confirm must be true to delete a task (safety guard)", is_error=True
        )
    force = _bool_arg(args, "force")
    try:
        res = task_service.delete(task_id, force)
    except _SERVICE_ERRORS as exc:
        return _failure("delete_task", exc)
    extra = " (incluyendo 1 timer activo)" if res.had_active_timer else ""
    return ToolResult(
        f"Tarea eliminada: {_quote(res.task.title)} (id: {short_id(res.task.id)})."
        f" Se borraron {res.time_entry_count} entrada(s) de tiempo{extra}."
    )


def format_task_list(tasks: Sequence[Task], project_slug: str, status: str) -> str:
    """Header plus one aligned line per task."""
    header = "Tareas"
    if project_slug:
        header = f"Tareas de {_quote(project_slug)}"
    if status:
        header = f"{header} (status: {status})"
    if not tasks:
        return header + ": (vacío)"

    width = max(len(task.title.encode()) for task in tasks)
    parts = [header + ":\n"]
    for task in tasks:
        extra = f"  [{task.external_ref}]" if task.external_ref else ""
        project_col = (
            f"  ({task.project_slug})" if not project_slug and task.project_slug else ""
        )
        parts.append(
            f"\n  • {short_id(task.id)}  {task.title.ljust(width)}"
            f"  {task.status.value}{extra}{project_col}"
        )
    return "".join(parts)