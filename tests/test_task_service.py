from types import SimpleNamespace

import pytest

from worktimer.database import open_database
from worktimer.domain import (
    AmbiguousPrefixError,
    NotFoundError,
    TaskStatus,
    ValidationError,
)
from worktimer.project_service import ProjectService
from worktimer.task_service import TaskHasHistoryError, TaskService
from worktimer.timer_service import ListEntriesOpts, TimerService


@pytest.fixture
def app(tmp_path):
    conn = open_database(tmp_path / "timer.db")
    yield SimpleNamespace(
        conn=conn,
        projects=ProjectService(conn),
        tasks=TaskService(conn),
        timers=TimerService(conn),
    )
    conn.close()


def test_delete_no_history(app):
    app.projects.create("P")
    task = app.tasks.create("p", "T")

    res = app.tasks.delete(task.id, False)
    assert res.time_entry_count == 0
    assert res.had_active_timer is False
    assert app.tasks.list("p", True) == []


def test_delete_refuses_with_time_entries(app):
    app.projects.create("P")
    task = app.tasks.create("p", "T")
    app.timers.start(task.id)
    app.timers.stop(task.id)

    with pytest.raises(TaskHasHistoryError):
        app.tasks.delete(task.id, False)


def test_delete_refuses_with_active_timer(app):
    app.projects.create("P")
    task = app.tasks.create("p", "T")
    app.timers.start(task.id)

    with pytest.raises(TaskHasHistoryError):
        app.tasks.delete(task.id, False)


def test_delete_force_cascades(app):
    app.projects.create("P")
    task = app.tasks.create("p", "T")
    app.timers.start(task.id)
    app.timers.stop(task.id)
    app.timers.start(task.id)

    res = app.tasks.delete(task.id, True)
    assert res.time_entry_count == 1
    assert res.had_active_timer is True
    assert app.timers.list_active() == []
    assert app.timers.list_entries(ListEntriesOpts()) == []


def test_delete_not_found(app):
    with pytest.raises(NotFoundError):
        app.tasks.delete("deadbeef", True)


def test_create(app):
    app.projects.create("Timer CLI")
    task = app.tasks.create("timer-cli", "Implement timers")
    assert task.status == TaskStatus.TODO
    assert task.project_slug == "timer-cli"
    assert task.title == "Implement timers"


def test_create_project_not_found(app):
    with pytest.raises(NotFoundError) as info:
        app.tasks.create("nope", "x")
    assert 'project "nope" not found' in str(info.value)


def test_create_rejects_empty_title(app):
    app.projects.create("P")
    with pytest.raises(ValidationError):
        app.tasks.create("p", "  ")


def test_list_filters_done_by_default(app):
    app.projects.create("P")
    t1 = app.tasks.create("p", "Open one")
    t2 = app.tasks.create("p", "Closed one")
    app.tasks.mark_done(t2.id)

    open_tasks = app.tasks.list("p", False)
    assert [t.id for t in open_tasks] == [t1.id]
    assert len(app.tasks.list("p", True)) == 2


def test_list_across_projects_grouped_by_project(app):
    app.projects.create("Beta")
    app.projects.create("Alpha")
    app.tasks.create("beta", "B1")
    app.tasks.create("alpha", "A1")
    app.tasks.create("beta", "B2")

    tasks = app.tasks.list("", False)
    assert [t.project_slug for t in tasks] == ["alpha", "beta", "beta"]
    assert [t.title for t in tasks] == ["A1", "B1", "B2"]


def test_list_unknown_project(app):
    with pytest.raises(NotFoundError):
        app.tasks.list("nope", True)


def test_mark_done_ambiguous_prefix(app):
    project = app.projects.create("P")
    for task_id in ("aaaa1111-0000-0000-0000-000000000000", "aaaa2222-0000-0000-0000-000000000000"):
        app.conn.execute(
            "INSERT INTO tasks (id, project_id, title, status, created_at, updated_at)"
            " VALUES (?, ?, ?, 'todo', 0, 0)",
            (task_id, project.id, task_id[:8]),
        )
    app.conn.commit()

    with pytest.raises(AmbiguousPrefixError) as info:
        app.tasks.mark_done("aaaa")
    assert "ambiguous" in str(info.value)


def test_mark_done_closes_active_timer(app):
    app.projects.create("P")
    task = app.tasks.create("p", "T1")
    app.timers.start(task.id)

    res = app.tasks.mark_done(task.id)
    assert res.entry is not None
    assert res.task.status == TaskStatus.DONE
    assert app.timers.list_active() == []

    entries = app.timers.list_entries(ListEntriesOpts())
    assert [e.id for e in entries] == [res.entry.id]


def test_mark_done_no_timer(app):
    app.projects.create("P")
    task = app.tasks.create("p", "T")
    res = app.tasks.mark_done(task.id)
    assert res.entry is None
    assert res.task.status == TaskStatus.DONE


def test_mark_done_empty_prefix(app):
    with pytest.raises(ValidationError):
        app.tasks.mark_done("   ")


def test_update_title(app):
    app.projects.create("P")
    task = app.tasks.create("p", "Old title")

    got = app.tasks.update_title(task.id, "New title")
    assert got.title == "New title"

    tasks = app.tasks.list("p", False)
    assert [t.title for t in tasks] == ["New title"]


def test_update_title_rejects_empty(app):
    app.projects.create("P")
    task = app.tasks.create("p", "Old")
    with pytest.raises(ValidationError):
        app.tasks.update_title(task.id, "  ")


def test_update_title_no_match(app):
    with pytest.raises(NotFoundError):
        app.tasks.update_title("deadbeef", "x")