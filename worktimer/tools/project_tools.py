"""Agent tools for listing, creating, archiving and deleting projects."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..domain import Project
from ..formatting import duration
from ..project_service import ProjectService
from ..projectdetect import detect
from .resolve import (
    _SERVICE_ERRORS,
    ToolResult,
    _bool_arg,
    _failure,
    _quote,
    _string_arg,
)


def list_projects(
    project_service: ProjectService, args: Mapping[str, Any] | None
) -> ToolResult:
    """List projects, marking the one inferred from the working directory."""
    include_archived = _bool_arg(args, "includeArchived")
    try:
        projects = project_service.list(include_archived)
    except _SERVICE_ERRORS as exc:
        return _failure("list_projects", exc)
    return ToolResult(format_project_list(projects, detect("").inferred_slug))


def create_project(
    project_service: ProjectService, args: Mapping[str, Any] | None
) -> ToolResult:
    """Create a project; its slug is derived from the name."""
    name = _string_arg(args, "name").strip()
    if not name:
        return ToolResult("name is required", is_error=True)
    try:
        project = project_service.create(name)
    except _SERVICE_ERRORS as exc:
        return _failure("create_project", exc)
    return ToolResult(f"Proyecto creado: {project.name} (slug: {project.slug}).")


def archive_project(
    project_service: ProjectService, args: Mapping[str, Any] | None
) -> ToolResult:
    """Archive a project, closing any running timers first."""
    slug = _string_arg(args, "slug").strip()
    if not slug:
        return ToolResult("slug is required", is_error=True)
    try:
        res = project_service.archive(slug)
    except _SERVICE_ERRORS as exc:
        return _failure("archive_project", exc)
    if res.already_archived:
        return ToolResult(
            f"El proyecto {_quote(res.project.name)} ({res.project.slug})"
            " ya estaba archivado."
        )
    parts = [f"Proyecto archivado: {res.project.name} ({res.project.slug})."]
    for entry in res.closed_entries:
        parts.append(
            f"\n  • timer cerrado en {_quote(entry.task_title)}"
            f" → {duration(entry.duration_sec)}"
        )
    return ToolResult("".join(parts))


def delete_project(
    project_service: ProjectService, args: Mapping[str, Any] | None
) -> ToolResult:
    """Hard-delete a project; requires confirm, and force unless archived."""
    slug = _string_arg(args, "slug").strip()
    if not slug:
        return ToolResult("slug is required", is_error=True)
    if not _bool_arg(args, "confirm"):
        return ToolResult(
            "confirm must be true to delete a project (safety guard)", is_error=True
        )
    force = _bool_arg(args, "force")
    try:
        res = project_service.delete(slug, force)
    except _SERVICE_ERRORS as exc:
        return _failure("delete_project", exc)
    return ToolResult(
        f"Proyecto eliminado: {res.project.name} ({res.project.slug})."
        f" Se borraron {res.task_count} tarea(s), {res.time_entry_count}"
        f" entrada(s) de tiempo y {res.active_timer_count} timer(s) activo(s)."
    )


def format_project_list(projects: Sequence[Project], cwd_slug: str) -> str:
    """Aligned project lines; the cwd project and archived ones are flagged."""
    if not projects:
        return "No tenés proyectos. Creá uno con create_project."
    width = max(len(project.slug.encode()) for project in projects)
    parts = ["Tus proyectos:\n"]
    for project in projects:
        hint = " (este proyecto)" if cwd_slug and project.slug == cwd_slug else ""
        archived = " [archivado]" if project.archived else ""
        parts.append(
            f"\n  • {project.slug.ljust(width)}  → {project.name}{hint}{archived}"
        )
    return "".join(parts)