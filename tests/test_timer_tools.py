from datetime import datetime, timedelta, timezone

import pytest

from worktimer.database import open_database
from worktimer.domain import TimeEntry, Timer
from worktimer.project_service import ProjectService
from worktimer.task_service import TaskService
from worktimer.timer_service import TimerService
from worktimer.tools.timer_tools import (
    active_timer,
    format_active_timers,
    format_started_timer,
    format_stopped_all,
    format_stopped_one,
    format_switched,
    pause_timer,
    resume_timer,
    start_timer,
    stop_timer,
    switch_task,
)

BASE = datetime(2026, 4, 25, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def services(tmp_path):
    conn = open_database(tmp_path / "timer.db")
    yield ProjectService(conn), TaskService(conn), TimerService(conn)
    conn.close()


def test_timer_lifecycle_end_to_end(services):
    projects, tasks, timers = services
    projects.create("API Backend")

    res = start_timer(
        timers, tasks, {"projectSlug": "api-backend", "taskTitle": "Implementar login"}
    )
    assert not res.is_error, res.text
    assert "Implementar login" in res.text
    assert "Tarea creada en este momento." in res.text

    res = active_timer(timers, {})
    assert not res.is_error
    assert "Timer corriendo" in res.text

    res = pause_timer(timers, {})
    assert not res.is_error
    assert res.text.startswith('Timer pausado en "Implementar login"')
    assert "Timer pausado" in active_timer(timers, {}).text

    res = resume_timer(timers, {})
    assert not res.is_error
    assert res.text == 'Timer reanudado en "Implementar login" (API Backend).'

    res = stop_timer(timers, {})
    assert not res.is_error
    assert "Timer detenido" in res.text
    assert timers.list_active() == []


def test_start_timer_already_running_for_task(services):
    projects, tasks, timers = services
    projects.create("P1")
    args = {"projectSlug": "p1", "taskTitle": "Same task"}
    assert not start_timer(timers, tasks, args).is_error
    res = start_timer(timers, tasks, args)
    assert res.is_error
    assert "TIMER_ALREADY_RUNNING_FOR_TASK" in res.text


def test_start_timer_without_task_arguments_is_error(services):
    _, tasks, timers = services
    res = start_timer(timers, tasks, {})
    assert res.is_error
    assert res.text.startswith("se requiere taskId")


def test_no_active_timers(services):
    _, _, timers = services
    assert active_timer(timers, {}).text == "No hay timers activos."
    res = stop_timer(timers, {})
    assert res.is_error
    assert res.text == "no hay timers activos"


def test_pause_twice_reports_already_paused(services):
    projects, tasks, timers = services
    projects.create("P")
    start_timer(timers, tasks, {"projectSlug": "p", "taskTitle": "Work"})
    assert not pause_timer(timers, {}).is_error
    res = pause_timer(timers, {})
    assert res.is_error
    assert res.text == 'El timer de "Work" ya estaba pausado.'


def test_resume_without_paused_timers(services):
    projects, tasks, timers = services
    projects.create("P")
    start_timer(timers, tasks, {"projectSlug": "p", "taskTitle": "Work"})
    res = resume_timer(timers, {})
    assert not res.is_error
    assert res.text == "No hay timers pausados."


def test_stop_ambiguous_then_filtered(services):
    projects, tasks, timers = services
    projects.create("P")
    start_timer(timers, tasks, {"projectSlug": "p", "taskTitle": "Alpha work"})
    start_timer(timers, tasks, {"projectSlug": "p", "taskTitle": "Beta work"})

    res = stop_timer(timers, {})
    assert res.is_error
    assert "hay 2 timers activos" in res.text

    res = stop_timer(timers, {"taskTitle": "alpha"})
    assert not res.is_error
    assert '"Alpha work"' in res.text
    remaining = timers.list_active()
    assert [t.task_title for t in remaining] == ["Beta work"]


def test_stop_filter_without_match_lists_timers(services):
    projects, tasks, timers = services
    projects.create("P")
    start_timer(timers, tasks, {"projectSlug": "p", "taskTitle": "Work"})
    res = stop_timer(timers, {"projectSlug": "other"})
    assert res.is_error
    assert "ningún timer activo coincide" in res.text
    assert "Work (P)" in res.text


def test_stop_all(services):
    projects, tasks, timers = services
    projects.create("P")
    start_timer(timers, tasks, {"projectSlug": "p", "taskTitle": "One"})
    start_timer(timers, tasks, {"projectSlug": "p", "taskTitle": "Two"})
    res = stop_timer(timers, {"all": True})
    assert not res.is_error
    assert res.text.startswith("Detenidos 2 timer(s)")
    assert timers.list_active() == []


def test_switch_task(services):
    projects, tasks, timers = services
    projects.create("P")
    start_timer(timers, tasks, {"projectSlug": "p", "taskTitle": "Old"})
    res = switch_task(timers, tasks, {"projectSlug": "p", "taskTitle": "New"})
    assert not res.is_error, res.text
    assert "Detenidos 1 timer(s)" in res.text
    assert '"New" (P) → timer activo' in res.text
    assert [t.task_title for t in timers.list_active()] == ["New"]


def test_format_active_timers_single_with_note():
    timer = Timer(started_at=BASE, task_title="T", project_name="P", note="n")
    got = format_active_timers([timer], BASE + timedelta(seconds=3661))
    assert got == "Timer corriendo · 1h 01m 01s tracked:\n  Tarea: T\n  Proyecto: P\n  Nota: n"


def test_format_active_timers_many():
    running = Timer(started_at=BASE, task_title="A", project_name="Proj")
    paused = Timer(
        started_at=BASE,
        task_title="B",
        project_name="Proj",
        paused_at=BASE + timedelta(seconds=30),
    )
    got = format_active_timers([running, paused], BASE + timedelta(seconds=60))
    assert got == "2 timers activos:\n\n  ▶ A (Proj) · 1m 00s\n  ⏸ B (Proj) · 30s"


def test_format_started_timer():
    timer = Timer(started_at=BASE, task_title="T", project_name="P")
    assert format_started_timer(timer, False) == (
        'Timer iniciado en "T" (proyecto: P).\n⏱  Empezó: 12:00:00'
    )
    assert format_started_timer(timer, True).endswith("\n📝 Tarea creada en este momento.")


def test_format_stopped():
    entry = TimeEntry(task_title="T", project_name="P", duration_sec=125)
    assert format_stopped_one(entry) == 'Timer detenido. Se registraron 2m 05s en "T" (P).'
    assert format_stopped_all([]) == "No había timers activos."
    assert format_stopped_all([entry, entry]) == "Detenidos 2 timer(s) (total: 4m 10s)."


def test_format_switched():
    started = Timer(started_at=BASE, task_title="T", project_name="P")
    assert format_switched([], started, True) == (
        "Cambiando de tarea:\n"
        "  ⏹  (no había timers activos)\n"
        '  ▶  "T" (P) → timer activo\n'
        "  📝 Tarea creada en este momento."
    )
    entry = TimeEntry(duration_sec=60)
    assert format_switched([entry], started, False) == (
        "Cambiando de tarea:\n"
        "  ⏹  Detenidos 1 timer(s) (total: 1m 00s)\n"
        '  ▶  "T" (P) → timer activo'
    )