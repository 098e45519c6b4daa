"""Agent tools for manual time entries and range summaries."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from ..database import to_millis
from ..domain import Source, Task, TimeEntry, ValidationError
from ..formatting import duration
from ..report import ReportSummary, aggregate_entries
from ..task_service import TaskService
from ..timer_service import ListEntriesOpts, TimerService
from ..timeranges import start_of_day, start_of_iso_week
from .resolve import (
    _SERVICE_ERRORS,
    ToolError,
    ToolResult,
    _failure,
    _quote,
    _string_arg,
    resolve_or_create_task,
)

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(Z|[+-]\d{2}:\d{2})"
)
_NAIVE = re.compile(r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})")


def _build(groups: tuple[str | None, ...], fraction: str | None, tz: timezone) -> datetime:
    year, month, day, hour, minute, second = (int(g) for g in groups)
    micro = int((fraction or "").ljust(6, "0")[:6] or 0)
    return datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)


def parse_iso(s: str) -> datetime:
    """Parse an RFC 3339 timestamp; a timestamp without offset is taken as UTC."""
    s = s.strip()
    if not s:
        raise ValidationError("required ISO 8601 timestamp is empty")
    try:
        match = _RFC3339.fullmatch(s)
        if match:
            zone = match.group(8)
            if zone == "Z":
                tz = timezone.utc
            else:
                sign = -1 if zone[0] == "-" else 1
                offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
                tz = timezone(sign * offset)
            return _build(match.groups()[:6], match.group(7), tz)
        match = _NAIVE.fullmatch(s)
        if match:
            return _build(match.groups(), None, timezone.utc)
    except ValueError:
        pass
    raise ValidationError(f"not a valid ISO 8601 timestamp: {_quote(s)}")


def resolve_range(
    name: str, from_arg: str, to_arg: str, now: datetime
) -> tuple[datetime, datetime | None, str]:
    """Map a named range to (from, to, label); to is None when unbounded."""
    if name == "today":
        return start_of_day(now), None, "Hoy"
    if name == "yesterday":
        sod = start_of_day(now)
        return sod - timedelta(days=1), sod, "Ayer"
    if name == "this_week":
        return start_of_iso_week(now), None, "Esta semana"
    if name == "last_week":
        this_week = start_of_iso_week(now)
        return this_week - timedelta(days=7), this_week, "Semana pasada"
    if name == "custom":
        try:
            start = parse_iso(from_arg)
        except ValidationError as exc:
            raise ValidationError(f"from: {exc}") from exc
        try:
            end = parse_iso(to_arg)
        except ValidationError as exc:
            raise ValidationError(f"to: {exc}") from exc
        if not end > start:
            raise ValidationError("to must be strictly after from")
        return start, end, f"{start:%Y-%m-%d %H:%M} → {end:%Y-%m-%d %H:%M}"
    raise ValidationError(f"unknown range {_quote(name)}")


def log_time(
    timer_service: TimerService,
    task_service: TaskService,
    args: Mapping[str, Any] | None,
) -> ToolResult:
    """Record a retroactive time entry on a task found (or created) from the arguments."""
    try:
        started_at = parse_iso(_string_arg(args, "startedAt"))
    except ValidationError as exc:
        return ToolResult(f"startedAt: {exc}", is_error=True)
    try:
        ended_at = parse_iso(_string_arg(args, "endedAt"))
    except ValidationError as exc:
        return ToolResult(f"endedAt: {exc}", is_error=True)

    try:
        task, created = resolve_or_create_task(
            task_service,
            _string_arg(args, "taskId"),
            _string_arg(args, "projectSlug"),
            _string_arg(args, "taskTitle"),
        )
    except ToolError as exc:
        return ToolResult(str(exc), is_error=True)

    try:
        entry = timer_service.log_entry(
            task.id,
            started_at,
            ended_at,
            _string_arg(args, "note").strip(),
            Source.MCP,
        )
    except _SERVICE_ERRORS as exc:
        return _failure("log_time", exc)
    return ToolResult(format_logged_entry(entry, task, created))


def get_summary(timer_service: TimerService, args: Mapping[str, Any] | None) -> ToolResult:
    """Totals per project for a named or custom range."""
    rng = _string_arg(args, "range").strip()
    if not rng:
        return ToolResult(
            "range is required (today | yesterday | this_week | last_week | custom)",
            is_error=True,
        )
    try:
        start, end, label = resolve_range(
            rng,
            _string_arg(args, "from"),
            _string_arg(args, "to"),
            datetime.now().astimezone(),
        )
    except ValidationError as exc:
        return ToolResult(str(exc), is_error=True)

    project_slug = _string_arg(args, "projectSlug").strip()
    try:
        entries = timer_service.list_entries(
            ListEntriesOpts(min_started_at=start, project_slug=project_slug, limit=10000)
        )
    except _SERVICE_ERRORS as exc:
        return _failure("get_summary", exc)

    if end is not None:
        upper = to_millis(end)
        entries = [entry for entry in entries if to_millis(entry.started_at) < upper]

    return ToolResult(format_summary(aggregate_entries(entries), label))


def format_logged_entry(entry: TimeEntry, task: Task, task_created: bool) -> str:
    """Confirmation of a manually logged entry."""
    text = (
        f"Entrada registrada: {duration(entry.duration_sec)} en {_quote(task.title)}"
        f" ({task.project_name}).\n  {entry.started_at:%Y-%m-%d %H:%M} → {entry.ended_at:%H:%M}"
    )
    if entry.note:
        text += f"\n  📝 {entry.note}"
    if task_created:
        text += "\n  📝 Tarea creada en este momento."
    return text


def format_summary(report: ReportSummary, label: str) -> str:
    """Grand total plus a per-project breakdown with percentages."""
    if report.total == 0:
        return f"Resumen — {label}\n\nSin tiempo registrado."
    parts = [f"Resumen — {label}\n\nTotal: {duration(report.total)}\n"]
    if report.projects:
        parts.append("\nPor proyecto:")
        width = max(len(project.name.encode()) for project in report.projects)
        for project in report.projects:
            pct = (project.total * 100) // report.total if report.total > 0 else 0
            parts.append(
                f"\n  {project.name.ljust(width)}  {duration(project.total)}  ({pct}%)"
            )
    return "".join(parts)