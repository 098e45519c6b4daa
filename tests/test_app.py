import sqlite3
from pathlib import Path

import pytest

from worktimer.cli.app import open_app


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "sandbox.db"
    monkeypatch.setenv("TIMER_DB_PATH", str(path))
    return path


def test_open_app_creates_database_at_override(db_path):
    app = open_app()
    try:
        rows = app.db.execute("PRAGMA database_list").fetchall()
        main_file = next(row[2] for row in rows if row[1] == "main")
        assert Path(main_file).resolve() == db_path.resolve()
        assert db_path.exists()
    finally:
        app.close()


def test_first_open_seeds_inbox(db_path):
    with open_app() as app:
        assert app.just_seeded is True
        projects = app.project_service.list(False)
        assert [p.slug for p in projects] == ["inbox"]


def test_second_open_does_not_seed(db_path):
    with open_app() as first:
        assert first.just_seeded is True
    with open_app() as second:
        assert second.just_seeded is False
        assert len(second.project_service.list(True)) == 1


def test_services_share_the_connection(db_path):
    with open_app() as app:
        task = app.task_service.create("inbox", "Buy milk")
        timer = app.timer_service.start(task.id)
        assert timer.task_id == task.id
        assert timer.project_slug == "inbox"


def test_close_releases_connection(db_path):
    app = open_app()
    app.close()
    with pytest.raises(sqlite3.ProgrammingError):
        app.db.execute("SELECT 1")


def test_context_manager_closes(db_path):
    with open_app() as app:
        conn = app.db
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")