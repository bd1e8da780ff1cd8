"""Command-line interface for the task board."""

import argparse
import asyncio
import logging
import sys
from datetime import date

from .logging_utils import configure_logging
from .task_sync.config import (
    BACKEND_LOCAL,
    BACKEND_REMOTE,
    DEFAULT_BACKEND,
    DEFAULT_DATABASE_PATH,
)
from .task_sync.exceptions import TaskSyncError, ValidationError
from .task_sync.factory import TaskBoard, create_backend
from .task_sync.models import MutationResult, Task

logger = logging.getLogger(__name__)

STATUS_MARKS = {"pending": "[ ]", "completed": "[x]"}


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Taskboard - create, complete, filter and reschedule tasks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  taskboard list                                   # All tasks, ordered by due date
  taskboard list --status pending                  # Only pending tasks
  taskboard add "Pay invoice" --due 2024-06-01 --priority high
  taskboard toggle 3f2a...                         # Mark complete / pending
  taskboard reschedule 3f2a... 2024-07-04          # Move to another day
  taskboard calendar --view week --date 2024-07-01
  taskboard --backend remote stats                 # Use the remote record API
  taskboard serve sse                              # Run the MCP server over HTTP/SSE
        """,
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging and debug information",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable trace logging (most verbose, includes HTTP client logs)",
    )
    parser.add_argument(
        "--backend",
        choices=(BACKEND_LOCAL, BACKEND_REMOTE),
        default=DEFAULT_BACKEND,
        help=f"Persistence backend (default: {DEFAULT_BACKEND})",
    )
    parser.add_argument(
        "--db-path",
        default=DEFAULT_DATABASE_PATH,
        metavar="PATH",
        help=f"SQLite file for the local backend (default: {DEFAULT_DATABASE_PATH})",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    list_parser = commands.add_parser("list", help="List tasks")
    list_parser.add_argument(
        "--status", choices=("all", "pending", "completed"), default="all"
    )

    add_parser = commands.add_parser("add", help="Add a task")
    add_parser.add_argument("title")
    add_parser.add_argument("--due", dest="due_date", help="Due date (YYYY-MM-DD, default tomorrow)")
    add_parser.add_argument("--description", default="")
    add_parser.add_argument("--priority", choices=("low", "medium", "high"), default="medium")

    edit_parser = commands.add_parser("edit", help="Edit a task")
    edit_parser.add_argument("task_id")
    edit_parser.add_argument("--title")
    edit_parser.add_argument("--description")
    edit_parser.add_argument("--priority", choices=("low", "medium", "high"))
    edit_parser.add_argument("--status", choices=("pending", "completed"))
    edit_parser.add_argument("--due", dest="due_date")

    toggle_parser = commands.add_parser("toggle", help="Toggle pending/completed")
    toggle_parser.add_argument("task_id")

    delete_parser = commands.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("task_id")

    reschedule_parser = commands.add_parser("reschedule", help="Move a task to another date")
    reschedule_parser.add_argument("task_id")
    reschedule_parser.add_argument("new_date", help="New due date (YYYY-MM-DD)")

    commands.add_parser("stats", help="Show completed/pending/overdue counts")

    calendar_parser = commands.add_parser("calendar", help="Show calendar events")
    calendar_parser.add_argument("--view", choices=("month", "week", "day"), default="month")
    calendar_parser.add_argument("--date", dest="focus_date", help="Date to focus (YYYY-MM-DD)")

    serve_parser = commands.add_parser("serve", help="Run the MCP server")
    serve_parser.add_argument("transport", nargs="?", choices=("stdio", "sse"), default="stdio")

    return parser


def format_task_line(board: TaskBoard, task: Task) -> str:
    """Render one task as a single line."""
    controller = board.controller
    line = (
        f"{STATUS_MARKS[task.status.value]} {task.title} "
        f"({task.priority.value}, due {controller.format_due_date(task)}) [{task.id}]"
    )
    if controller.is_overdue(task):
        line += " OVERDUE"
    return line


def report_mutation(action: str, result: MutationResult | None) -> None:
    if result is None:
        print(f"❌ Nothing to {action}.")
        return
    title = f" '{result.task.title}'" if result.task else ""
    print(f"✅ Task{title} {action}d.")
    if not result.refreshed:
        print(f"⚠️ Saved, but the task list could not be refreshed: {result.refresh_error}")


async def _fill_and_submit(board: TaskBoard, fields: dict[str, object]) -> MutationResult:
    controller = board.controller
    try:
        for name, value in fields.items():
            if value is not None:
                controller.edit_field(name, value)
        return await controller.submit()
    finally:
        controller.close_modal()


async def run_command(board: TaskBoard, args: argparse.Namespace) -> int:
    """
    Execute one subcommand against a started task board.

    Returns:
        Process exit code
    """
    controller = board.controller

    if args.command == "list":
        controller.set_filter(args.status)
        tasks = controller.filtered_tasks()
        if board.store.error:
            print(f"⚠️ Showing last known tasks: {board.store.error}")
        if not tasks:
            print(controller.empty_message())
        for task in tasks:
            print(format_task_line(board, task))
        return 0

    if args.command == "add":
        controller.open_add()
        result = await _fill_and_submit(
            board,
            {
                "title": args.title,
                "description": args.description,
                "priority": args.priority,
                "due_date": args.due_date,
            },
        )
        report_mutation("create", result)
        return 0

    if args.command == "edit":
        controller.open_edit(await board.store.get_task(args.task_id))
        result = await _fill_and_submit(
            board,
            {
                "title": args.title,
                "description": args.description,
                "priority": args.priority,
                "status": args.status,
                "due_date": args.due_date,
            },
        )
        report_mutation("update", result)
        return 0

    if args.command == "toggle":
        report_mutation("update", await controller.toggle_status(args.task_id))
        return 0

    if args.command == "delete":
        controller.request_delete(await board.store.get_task(args.task_id))
        report_mutation("delete", await controller.confirm_delete())
        return 0

    if args.command == "reschedule":
        new_date = date.fromisoformat(args.new_date)
        report_mutation("update", await board.calendar.reschedule(args.task_id, new_date))
        return 0

    if args.command == "stats":
        stats = board.stats.stats
        print(f"Completed: {stats.completed}")
        print(f"Pending:   {stats.pending}")
        print(f"Overdue:   {stats.overdue}")
        return 0

    if args.command == "calendar":
        board.calendar.set_granularity(args.view)
        if args.focus_date:
            board.calendar.navigate(date.fromisoformat(args.focus_date))
        for event in board.calendar.events():
            when = event.start.date().isoformat() if event.all_day else event.start.isoformat(" ", "minutes")
            print(f"{when}  {event.title}  <{event.css_class}>")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


async def main(args: argparse.Namespace) -> int:
    """Main entry point for the CLI application."""
    board = TaskBoard.create(create_backend(args.backend, args.db_path))

    if args.command == "serve":
        from .task_sync.mcp_server import serve

        await serve(board, transport=args.transport)
        return 0

    try:
        await board.start()
        return await run_command(board, args)
    except ValidationError as e:
        for field_name, message in e.errors.items():
            print(f"❌ {field_name}: {message}")
        return 1
    except (TaskSyncError, ValueError) as e:
        print(f"❌ {e}")
        return 1
    finally:
        await board.shutdown()


def cli_entry_with_args() -> None:
    """CLI entry point with argument parsing."""
    parser = create_argument_parser()
    args = parser.parse_args()
    configure_logging(verbose=args.verbose, trace=args.trace)

    try:
        exit_code = asyncio.run(main(args))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    cli_entry_with_args()
