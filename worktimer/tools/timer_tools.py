"""Agent tools for the timer lifecycle: list, start, stop, pause, resume, switch."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from ..domain import TimeEntry, Timer, TimerAlreadyPausedError, TimerAlreadyRunningError
from ..formatting import duration
from ..task_service import TaskService
from ..timer_service import StopAllError, TimerService
from .resolve import (
    _SERVICE_ERRORS,
    TimerFilters,
    ToolError,
    ToolResult,
    _bool_arg,
    _failure,
    _quote,
    _string_arg,
    pick_active,
    render_timer_list,
    resolve_or_create_task,
)

_ERRORS = _SERVICE_ERRORS + (StopAllError,)


def _now() -> datetime:
    return datetime.now().astimezone()


def _filters(args: Mapping[str, Any] | None) -> TimerFilters:
    return TimerFilters(
        task_title=_string_arg(args, "taskTitle"),
        project_slug=_string_arg(args, "projectSlug"),
    )


def active_timer(timer_service: TimerService, args: Mapping[str, Any] | None) -> ToolResult:
    """Describe every running or paused timer."""
    try:
        timers = timer_service.list_active()
    except _ERRORS as exc:
        return _failure("list active timers", exc)
    return ToolResult(format_active_timers(timers, _now()))


def start_timer(
    timer_service: TimerService,
    task_service: TaskService,
    args: Mapping[str, Any] | None,
) -> ToolResult:
    """Start a timer on a task found (or created) from the arguments."""
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
        timer = timer_service.start(task.id)
    except TimerAlreadyRunningError:
        return ToolResult(
            "TIMER_ALREADY_RUNNING_FOR_TASK: ya hay un timer activo en esa tarea.",
            is_error=True,
        )
    except _ERRORS as exc:
        return _failure("start_timer", exc)
    return ToolResult(format_started_timer(timer, created))


def stop_timer(timer_service: TimerService, args: Mapping[str, Any] | None) -> ToolResult:
    """Stop one timer picked by the filters, or all of them with all=true."""
    if _bool_arg(args, "all"):
        try:
            entries = timer_service.stop_all()
        except _ERRORS as exc:
            return _failure("stop_timer", exc)
        return ToolResult(format_stopped_all(entries))

    filters = _filters(args)
    try:
        active = timer_service.list_active()
    except _ERRORS as exc:
        return _failure("stop_timer", exc)
    try:
        target = pick_active(active, filters, _now())
    except ToolError as exc:
        return ToolResult(str(exc), is_error=True)

    try:
        entry = timer_service.stop(target.task_id)
    except _ERRORS as exc:
        return _failure("stop_timer", exc)
    return ToolResult(format_stopped_one(entry))


def pause_timer(timer_service: TimerService, args: Mapping[str, Any] | None) -> ToolResult:
    """Pause one timer picked by the filters."""
    filters = _filters(args)
    try:
        active = timer_service.list_active()
    except _ERRORS as exc:
        return _failure("pause_timer", exc)
    try:
        target = pick_active(active, filters, _now())
    except ToolError as exc:
        return ToolResult(str(exc), is_error=True)

    try:
        paused = timer_service.pause(target.task_id)
    except TimerAlreadyPausedError:
        return ToolResult(
            f"El timer de {_quote(target.task_title)} ya estaba pausado.", is_error=True
        )
    except _ERRORS as exc:
        return _failure("pause_timer", exc)
    return ToolResult(
        f"Timer pausado en {_quote(paused.task_title)} ({paused.project_name})"
        f" · {duration(paused.elapsed_sec(_now()))} tracked."
    )


def resume_timer(timer_service: TimerService, args: Mapping[str, Any] | None) -> ToolResult:
    """Resume one paused timer picked by the filters."""
    filters = _filters(args)
    try:
        active = timer_service.list_active()
    except _ERRORS as exc:
        return _failure("resume_timer", exc)
    paused = [timer for timer in active if timer.is_paused()]
    if not paused:
        return ToolResult("No hay timers pausados.")
    try:
        target = pick_active(paused, filters, _now())
    except ToolError as exc:
        return ToolResult(str(exc), is_error=True)

    try:
        resumed = timer_service.resume(target.task_id)
    except _ERRORS as exc:
        return _failure("resume_timer", exc)
    return ToolResult(
        f"Timer reanudado en {_quote(resumed.task_title)} ({resumed.project_name})."
    )


def switch_task(
    timer_service: TimerService,
    task_service: TaskService,
    args: Mapping[str, Any] | None,
) -> ToolResult:
    """Stop every active timer, then start one on the given task."""
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
        stopped = timer_service.stop_all()
    except _ERRORS as exc:
        return _failure("switch_task: stop_all", exc)

    try:
        timer = timer_service.start(task.id)
    except TimerAlreadyRunningError:
        return ToolResult(
            "TIMER_ALREADY_RUNNING_FOR_TASK: ya hay un timer activo en esa tarea"
            " (los anteriores ya fueron detenidos).",
            is_error=True,
        )
    except _ERRORS as exc:
        return _failure("switch_task: start", exc)
    return ToolResult(format_switched(stopped, timer, created))


def format_active_timers(timers: Sequence[Timer], now: datetime) -> str:
    """Detail for a single timer, a marked list for several."""
    if not timers:
        return "No hay timers activos."
    if len(timers) == 1:
        timer = timers[0]
        header = "Timer pausado" if timer.is_paused() else "Timer corriendo"
        text = (
            f"{header} · {duration(timer.elapsed_sec(now))} tracked:\n"
            f"  Tarea: {timer.task_title}\n"
            f"  Proyecto: {timer.project_name}"
        )
        if timer.note:
            text += f"\n  Nota: {timer.note}"
        return text
    return f"{len(timers)} timers activos:\n\n{render_timer_list(timers, now)}"


def format_started_timer(timer: Timer, created: bool) -> str:
    """Confirmation of a started timer."""
    text = (
        f"Timer iniciado en {_quote(timer.task_title)} (proyecto: {timer.project_name}).\n"
        f"⏱  Empezó: {timer.started_at:%H:%M:%S}"
    )
    if created:
        text += "\n📝 Tarea creada en este momento."
    return text


def format_stopped_one(entry: TimeEntry) -> str:
    """Confirmation of a single stopped timer."""
    return (
        f"Timer detenido. Se registraron {duration(entry.duration_sec)}"
        f" en {_quote(entry.task_title)} ({entry.project_name})."
    )


def format_stopped_all(entries: Sequence[TimeEntry]) -> str:
    """Count and total of every stopped timer."""
    if not entries:
        return "No había timers activos."
    total = sum(entry.duration_sec for entry in entries)
    return f"Detenidos {len(entries)} timer(s) (total: {duration(total)})."


def format_switched(
    stopped: Sequence[TimeEntry], started: Timer, task_created: bool
) -> str:
    """Summary of a task switch: what stopped and what started."""
    parts = ["Cambiando de tarea:\n"]
    if not stopped:
        parts.append("  ⏹  (no había timers activos)\n")
    else:
        total = sum(entry.duration_sec for entry in stopped)
        parts.append(f"  ⏹  Detenidos {len(stopped)} timer(s) (total: {duration(total)})\n")
    parts.append(
        f"  ▶  {_quote(started.task_title)} ({started.project_name}) → timer activo"
    )
    if task_created:
        parts.append("\n  📝 Tarea creada en este momento.")
    return "".join(parts)