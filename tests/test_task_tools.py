import pytest

from worktimer.database import open_database
from worktimer.domain import Task, TaskStatus
from worktimer.formatting import short_id
from worktimer.project_service import ProjectService
from worktimer.task_service import TaskService
from worktimer.timer_service import TimerService
from worktimer.tools.task_tools import (
    create_task,
    delete_task,
    format_task_list,
    list_tasks,
)


@pytest.fixture
def conn(tmp_path):
    connection = open_database(tmp_path / "timer.db")
    ProjectService(connection).create("P")
    yield connection
    connection.close()


@pytest.fixture
def tasks(conn):
    return TaskService(conn)


def test_create_task_requires_project_slug(tasks):
    res = create_task(tasks, {"title": "x"})
    assert res.is_error
    assert res.text == "projectSlug is required"


def test_create_task_requires_title(tasks):
    res = create_task(tasks, {"projectSlug": "p", "title": "  "})
    assert res.is_error
    assert res.text == "title is required"


def test_create_then_list(tasks):
    res = create_task(tasks, {"projectSlug": "p", "title": "Write docs"})
    assert not res.is_error
    created = tasks.list("p", True)
    assert len(created) == 1
    assert short_id(created[0].id) in res.text

    listing = list_tasks(tasks, {})
    assert not listing.is_error
    assert "Write docs" in listing.text
    assert short_id(created[0].id) in listing.text


def test_create_task_unknown_project(tasks):
    res = create_task(tasks, {"projectSlug": "nope", "title": "x"})
    assert res.is_error
    assert res.text.startswith("create_task:")


def test_list_tasks_empty(tasks):
    res = list_tasks(tasks, None)
    assert not res.is_error
    assert res.text.endswith("(vacío)")


def test_list_tasks_status_filter(tasks):
    open_task = tasks.create("p", "Still open")
    done_task = tasks.create("p", "Finished")
    tasks.mark_done(done_task.id)

    default = list_tasks(tasks, {"projectSlug": "p"})
    assert "Still open" in default.text
    assert "Finished" not in default.text

    done_only = list_tasks(tasks, {"projectSlug": "p", "status": "done"})
    assert "Finished" in done_only.text
    assert open_task.title not in done_only.text


def test_list_tasks_unknown_project(tasks):
    res = list_tasks(tasks, {"projectSlug": "nope"})
    assert res.is_error
    assert res.text.startswith("list_tasks:")


def test_delete_task_requires_confirm(tasks):
    task = tasks.create("p", "T")
    res = delete_task(tasks, {"taskId": task.id})
    assert res.is_error
    assert "confirm must be true" in res.text
    assert len(tasks.list("p", True)) == 1


def test_delete_task_without_history(tasks):
    task = tasks.create("p", "T")
    res = delete_task(tasks, {"taskId": task.id, "confirm": True})
    assert not res.is_error
    assert short_id(task.id) in res.text
    assert tasks.list("p", True) == []


def test_delete_task_with_active_timer_needs_force(conn, tasks):
    task = tasks.create("p", "T")
    TimerService(conn).start(task.id)

    refused = delete_task(tasks, {"taskId": task.id, "confirm": True})
    assert refused.is_error
    assert refused.text.startswith("delete_task:")

    forced = delete_task(tasks, {"taskId": task.id, "confirm": "true", "force": True})
    assert not forced.is_error
    assert "incluyendo 1 timer activo" in forced.text
    assert tasks.list("p", True) == []


def _task(title, slug="p", ref=""):
    return Task(
        id=f"{title.lower():a<8}-rest",
        project_id="proj",
        project_slug=slug,
        title=title,
        status=TaskStatus.TODO,
        external_ref=ref,
    )


def test_format_task_list_aligns_status_column():
    text = format_task_list([_task("A"), _task("Longer title")], "", "")
    lines = [line for line in text.split("\n")[1:] if line]
    assert len(lines) == 2
    positions = {line.index(" todo") for line in lines}
    assert len(positions) == 1


def test_format_task_list_project_column_only_across_projects():
    across = format_task_list([_task("A", slug="alpha")], "", "")
    assert "(alpha)" in across
    scoped = format_task_list([_task("A", slug="alpha")], "alpha", "")
    assert "(alpha)" not in scoped.split("\n", 1)[1]


def test_format_task_list_shows_external_ref():
    text = format_task_list([_task("A", ref="ISSUE-1")], "", "")
    assert "[ISSUE-1]" in text