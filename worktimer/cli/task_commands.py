"""The `task` command tree: add, list, done and delete."""

from __future__ import annotations

import argparse
import json

from ..formatting import duration, short_id
from .app import open_app


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _run_add(args: argparse.Namespace) -> None:
    with open_app() as app:
        task = app.task_service.create(args.project_slug, args.title)
        print(f"Created {_quote(task.title)} in {task.project_slug} (id: {short_id(task.id)})")


def _run_list(args: argparse.Namespace) -> None:
    with open_app() as app:
        tasks = app.task_service.list(args.project, args.all)
        if not tasks:
            print('No tasks. Create one with: timer task add <project-slug> "My task"')
            return
        current_slug = ""
        for task in tasks:
            if task.project_slug != current_slug:
                if current_slug:
                    print()
                print(f"{task.project_name} ({task.project_slug})")
                current_slug = task.project_slug
            print(f"  {short_id(task.id)}  [{task.status.value:<11}]  {task.title}")


def _run_done(args: argparse.Namespace) -> None:
    with open_app() as app:
        res = app.task_service.mark_done(args.task_id_prefix)
        print(f"Done: {short_id(res.task.id)}  {res.task.title}")
        if res.entry is not None:
            print(f"  (closed running timer → {duration(res.entry.duration_sec)})")


def _run_delete(args: argparse.Namespace) -> None:
    with open_app() as app:
        res = app.task_service.delete(args.task_id_prefix, args.force)
        line = (
            f"Deleted task {short_id(res.task.id)}  {_quote(res.task.title)}"
            f"  — removed {res.time_entry_count} time entr(ies)"
        )
        if res.had_active_timer:
            line += ", and 1 active timer"
        print(line + ".")


def add_task_commands(subparsers: argparse._SubParsersAction) -> None:
    """Attach `task` with its add, list, done and delete subcommands."""
    task = subparsers.add_parser(
        "task",
        aliases=["tasks"],
        help="Manage tasks",
        description="Tasks live inside a project. They have a status (todo, in_progress,"
        " done, archived) and an 8-char short id used by the timer commands.",
    )
    task.set_defaults(handler=lambda args: task.print_help())
    sub = task.add_subparsers(title="commands", metavar="<command>")
    raw = argparse.RawDescriptionHelpFormatter

    add = sub.add_parser(
        "add",
        help="Create a new task in a project",
        formatter_class=raw,
        description="Create a new task in the given project. The task starts in 'todo'\n"
        "status and gets a UUID — only the first 8 chars are shown and used in\n"
        "subsequent commands.",
        epilog='examples:\n  timer task add timer-cli "Implement timers"\n'
        '  timer task add inbox "Buy milk"',
    )
    add.add_argument("project_slug", metavar="project-slug")
    add.add_argument("title")
    add.set_defaults(handler=_run_add)

    listing = sub.add_parser(
        "list",
        aliases=["ls"],
        help="List tasks (grouped by project)",
        formatter_class=raw,
        description="List tasks grouped by project. By default hides 'done' and\n"
        "'archived' tasks — use --all to include them.",
        epilog="examples:\n  timer task list\n  timer task list --project timer-cli\n"
        "  timer task list --all",
    )
    listing.add_argument("-p", "--project", default="", help="filter by project slug")
    listing.add_argument("--all", action="store_true", help="include done and archived tasks")
    listing.set_defaults(handler=_run_list)

    done = sub.add_parser(
        "done",
        help="Mark a task as done (closes any active timer first)",
        formatter_class=raw,
        description="Mark a task as done. Resolves the prefix git-style: any unique\n"
        "prefix of the task's UUID works. If the task has a running timer, it\n"
        "is closed atomically (a time entry gets written) before the status flip.",
        epilog="examples:\n  timer task done aa86            # 4 chars are usually enough\n"
        "  timer task done aa866ddf        # the full short id from 'task list'",
    )
    done.add_argument("task_id_prefix", metavar="task-id-prefix")
    done.set_defaults(handler=_run_done)

    delete = sub.add_parser(
        "delete",
        aliases=["rm"],
        help="Hard-delete a task (irreversible)",
        formatter_class=raw,
        description="Delete a task AND its active timer (if any) and every time entry\n"
        "of the task. This is irreversible. By default refuses if the task has any\n"
        "time entry or an active timer — pass --force to bypass and accept the data\n"
        "loss. Tasks with no history can be deleted without --force.",
        epilog="examples:\n  timer task delete aa86             # only if the task has no history\n"
        "  timer task delete aa86 --force     # nuke timer + entries",
    )
    delete.add_argument("task_id_prefix", metavar="task-id-prefix")
    delete.add_argument(
        "--force",
        action="store_true",
        help="delete even if the task has time entries or an active timer",
    )
    delete.set_defaults(handler=_run_delete)