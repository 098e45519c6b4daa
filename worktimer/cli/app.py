"""Per-invocation bundle of the database connection and services."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from ..database import open_database, resolve_db_path
from ..project_service import ProjectService
from ..task_service import TaskService
from ..timer_service import TimerService


@dataclass
class AppContext:
    """Database connection and the services built on it for one command."""

    db: sqlite3.Connection
    project_service: ProjectService
    task_service: TaskService
    timer_service: TimerService
    just_seeded: bool = False

    def close(self) -> None:
        """Release the database connection."""
        self.db.close()

    def __enter__(self) -> AppContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_app() -> AppContext:
    """Open the database, wire the services and seed the Inbox project if empty."""
    conn = open_database(resolve_db_path())
    app = AppContext(
        db=conn,
        project_service=ProjectService(conn),
        task_service=TaskService(conn),
        timer_service=TimerService(conn),
    )
    try:
        app.just_seeded = app.project_service.seed_defaults_if_empty()
    except Exception:
        app.close()
        raise
    return app