# worktimer

A local-first time tracker library. Projects, tasks, running timers and
closed time entries live in one SQLite file; there is no server and no
account.

## Install

```
pip install .
```

For the test suite: `pip install .[test]` and run `pytest`.

## Where data lives

`worktimer.database.resolve_db_path()` picks the database file:

- `$TIMER_DB_PATH`, if set;
- otherwise `~/.local/share/timer/timer.db` on Linux / macOS, or
  `%LOCALAPPDATA%\timer\timer.db` on Windows (the directory is created).

`worktimer.database.open_database(path)` opens the file, turns on foreign
keys and creates the schema if it is missing.

## Using the services

```python
from worktimer.database import open_database
from worktimer.project_service import ProjectService
from worktimer.task_service import TaskService
from worktimer.timer_service import ListEntriesOpts, TimerService

conn = open_database("/tmp/example.db")
projects = ProjectService(conn)
tasks = TaskService(conn)
timers = TimerService(conn)

projects.create("Side Hustle")              # slug: side-hustle
task = tasks.create("side-hustle", "Write invoice")
timers.start(task.id)                       # task becomes in_progress
timers.pause(task.id)
timers.resume(task.id)
entry = timers.stop(task.id)                # paused time is excluded

report = timers.build_report(ListEntriesOpts(project_slug="side-hustle"))
print(report.total, [p.slug for p in report.projects])
```

- `ProjectService`: `create`, `list`, `seed_defaults_if_empty` (creates
  `Inbox` on an empty database), `archive` (closes running timers in the
  same transaction; idempotent) and `delete` (needs an archived project or
  `force=True`; cascades to tasks, timers and entries).
- `TaskService`: `create`, `list` (hides done/archived unless
  `include_done`), `update_title`, `mark_done` (closes a running timer
  first) and `delete` (refuses a task with history unless `force=True`).
- `TimerService`: `start`, `stop`, `stop_all`, `pause`, `resume`,
  `list_active`, `list_entries`, `log_entry` and `build_report`.

Tasks are addressed by any unique prefix of their UUID, git-style.
Failures raise subclasses of `worktimer.domain.TimerAppError`, such as
`NotFoundError`, `AmbiguousPrefixError`, `ValidationError`,
`TimerAlreadyRunningError`, `TimerAlreadyPausedError`,
`TimerNotPausedError`, `ProjectExistsError`, `ProjectNotArchivedError`,
`TaskHasHistoryError` and `StopAllError`.

Helpers: `worktimer.formatting.duration` (`"1h 02m 03s"`),
`worktimer.formatting.short_id`, `worktimer.slugs.slugify`,
`worktimer.timeranges.start_of_day` / `start_of_iso_week`, and
`worktimer.report.aggregate_entries`.

## Command builders

`worktimer.cli` holds argparse builders, not a finished program:

- `project_commands.add_project_commands(subparsers)` adds `project`
  (`add`, `list`, `archive`, `delete`);
- `project_commands.add_init_command(subparsers)` adds `init`;
- `task_commands.add_task_commands(subparsers)` adds `task`
  (`add`, `list`, `done`, `delete`).

Each subcommand stores its function as `handler`, and opens the database
through `worktimer.cli.app.open_app()`:

```python
import argparse
from worktimer.cli.project_commands import add_init_command, add_project_commands
from worktimer.cli.task_commands import add_task_commands

parser = argparse.ArgumentParser(prog="timer")
sub = parser.add_subparsers()
add_init_command(sub)
add_project_commands(sub)
add_task_commands(sub)
args = parser.parse_args(["project", "list", "--all"])
args.handler(args)
```

## Agent tools

`worktimer.tools` has handlers that take a plain argument dictionary and
return a `ToolResult(text, is_error)` with Spanish-language text:

- `timer_tools`: `active_timer`, `start_timer`, `stop_timer`,
  `pause_timer`, `resume_timer`, `switch_task`;
- `task_tools`: `list_tasks`, `create_task`, `delete_task`;
- `project_tools`: `list_projects`, `create_project`, `archive_project`,
  `delete_project`;
- `report_tools`: `log_time`, `get_summary`.

When a project slug is not given, the project is inferred from the
working directory (its git root, if any) by
`worktimer.projectdetect.detect`, which runs `git`.

## What it does not do

- No installed command: there is no `timer` executable and no top-level
  parser. Timer commands (start, stop, pause, resume, list), `log`,
  `report` and `version` have no command-line form; use `TimerService`
  directly.
- No protocol server: the agent tools are plain functions; nothing here
  serves them over stdio or a network.
- No terminal UI and no self-update.