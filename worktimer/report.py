"""Totals of time entries grouped by project and task."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .domain import TimeEntry


@dataclass
class TaskSummary:
    """Total tracked seconds for one task."""

    id: str
    title: str
    total: int = 0


@dataclass
class ProjectSummary:
    """Total tracked seconds for one project, with its tasks sorted by total."""

    id: str
    name: str
    slug: str
    total: int = 0
    tasks: list[TaskSummary] = field(default_factory=list)


@dataclass
class ReportSummary:
    """Grand total plus projects sorted by total, largest first."""

    total: int = 0
    projects: list[ProjectSummary] = field(default_factory=list)


def aggregate_entries(entries: Iterable[TimeEntry] | None) -> ReportSummary:
    """Group entries by project, then task; sort both levels by total descending."""
    projects: dict[str, ProjectSummary] = {}
    tasks_by_project: dict[str, dict[str, TaskSummary]] = {}
    total = 0

    for entry in entries or ():
        project = projects.get(entry.project_id)
        if project is None:
            project = ProjectSummary(
                id=entry.project_id, name=entry.project_name, slug=entry.project_slug
            )
            projects[entry.project_id] = project
            tasks_by_project[entry.project_id] = {}
        project.total += entry.duration_sec

        tasks = tasks_by_project[entry.project_id]
        task = tasks.get(entry.task_id)
        if task is None:
            task = TaskSummary(id=entry.task_id, title=entry.task_title)
            tasks[entry.task_id] = task
        task.total += entry.duration_sec

        total += entry.duration_sec

    for project_id, project in projects.items():
        project.tasks = sorted(
            tasks_by_project[project_id].values(), key=lambda t: t.total, reverse=True
        )

    return ReportSummary(
        total=total,
        projects=sorted(projects.values(), key=lambda p: p.total, reverse=True),
    )