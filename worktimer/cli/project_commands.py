"""The `project` command tree and the `init` command."""

from __future__ import annotations

import argparse
import json

from ..database import resolve_db_path
from ..formatting import duration
from .app import open_app


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _run_add(args: argparse.Namespace) -> None:
    with open_app() as app:
        project = app.project_service.create(args.name)
        print(f"Created {_quote(project.name)} (slug: {project.slug})")


def _run_list(args: argparse.Namespace) -> None:
    with open_app() as app:
        projects = app.project_service.list(args.all)
        if not projects:
            print('No projects yet. Create one with: timer project add "My Project"')
            return
        for project in projects:
            print(f"- {project.name} ({project.slug})")


def _run_archive(args: argparse.Namespace) -> None:
    with open_app() as app:
        res = app.project_service.archive(args.slug)
        name, slug = _quote(res.project.name), res.project.slug
        if res.already_archived:
            print(f"Project {name} ({slug}) was already archived.")
            return
        print(f"Archived {name} ({slug})")
        for entry in res.closed_entries:
            print(f"  (closed running timer on {entry.task_title} → {duration(entry.duration_sec)})")


def _run_delete(args: argparse.Namespace) -> None:
    with open_app() as app:
        res = app.project_service.delete(args.slug, args.force)
        print(
            f"Deleted project {_quote(res.project.name)} ({res.project.slug}) — removed"
            f" {res.task_count} task(s), {res.time_entry_count} time entr(ies),"
            f" {res.active_timer_count} active timer(s)."
        )


def _run_init(args: argparse.Namespace) -> None:
    path = resolve_db_path()
    with open_app() as app:
        print(f"Database ready at {path}")
        if app.just_seeded:
            print('Seeded default project "Inbox".')
        else:
            print("Existing data preserved (no seed needed).")


def add_project_commands(subparsers: argparse._SubParsersAction) -> None:
    """Attach `project` with its add, list, archive and delete subcommands."""
    project = subparsers.add_parser(
        "project",
        aliases=["projects"],
        help="Manage projects",
        description="Projects are the top-level grouping. Tasks belong to a project;"
        " time entries inherit it.",
    )
    project.set_defaults(handler=lambda args: project.print_help())
    sub = project.add_subparsers(title="commands", metavar="<command>")
    raw = argparse.RawDescriptionHelpFormatter

    add = sub.add_parser(
        "add",
        help="Create a new project",
        formatter_class=raw,
        description="Create a project. The slug is derived from the name (lowercased,\n"
        "spaces → dashes) and used as the handle in commands like 'task add' and\n"
        "'log --project'.",
        epilog='examples:\n  timer project add "Timer CLI"     # → slug: timer-cli\n'
        '  timer project add "Side Hustle"   # → slug: side-hustle',
    )
    add.add_argument("name")
    add.set_defaults(handler=_run_add)

    listing = sub.add_parser(
        "list",
        aliases=["ls"],
        help="List projects",
        formatter_class=raw,
        description="List active projects (use --all to also show archived ones).",
        epilog="examples:\n  timer project list\n  timer project list --all",
    )
    listing.add_argument("--all", action="store_true", help="include archived projects")
    listing.set_defaults(handler=_run_list)

    archive = sub.add_parser(
        "archive",
        help="Archive a project (soft, reversible)",
        formatter_class=raw,
        description="Archive a project. The project disappears from the default 'list'\n"
        "output but every task and time entry is preserved. If any task of the\n"
        "project has a running timer, it is closed first (a time entry is written)\n"
        "in the same transaction as the archive flip.",
        epilog="examples:\n  timer project archive timer-cli",
    )
    archive.add_argument("slug")
    archive.set_defaults(handler=_run_archive)

    delete = sub.add_parser(
        "delete",
        aliases=["rm"],
        help="Hard-delete a project (irreversible)",
        formatter_class=raw,
        description="Delete a project AND every task, timer, and time entry under it.\n"
        "This is irreversible. By default refuses unless the project is already\n"
        "archived — use 'project archive' first, or pass --force to bypass and\n"
        "accept the data loss.",
        epilog="examples:\n"
        "  timer project archive timer-cli && timer project delete timer-cli\n"
        "  timer project delete timer-cli --force",
    )
    delete.add_argument("slug")
    delete.add_argument(
        "--force", action="store_true", help="delete even if the project is not archived"
    )
    delete.set_defaults(handler=_run_delete)


def add_init_command(subparsers: argparse._SubParsersAction) -> None:
    """Attach `init`, which creates the database and seeds the Inbox project."""
    init = subparsers.add_parser(
        "init",
        help="Create the data directory and seed the default Inbox project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Initialize the timer database explicitly.\n\n"
        "The DB is also created on first use of any command, but running 'init'\n"
        "gives you a clear path to where the data lives and confirms the default\n"
        "'Inbox' project was seeded.",
        epilog="examples:\n  timer init\n  TIMER_DB_PATH=/tmp/sandbox.db timer init",
    )
    init.set_defaults(handler=_run_init)