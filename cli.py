# cli.py
import argparse
import os
import sys

from dotenv import load_dotenv

from client import ClientError, TaskBoard, TasksClient, render_text
from logging_setup import LEVELS, setup_logging

load_dotenv()

DEFAULT_API_URL = os.getenv("TASKS_API_URL", "http://localhost:3000/api")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the task list of a running task server.")
    parser.add_argument("--api-url", type=str, default=DEFAULT_API_URL, help="Base URL of the tasks API.")
    parser.add_argument(
        "--log-level", type=str.upper, default="WARNING", choices=LEVELS, help="Console log level."
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    subparsers.add_parser("list", help="Show all tasks, pending first.")

    parser_add = subparsers.add_parser("add", help="Add a new task.")
    parser_add.add_argument("text", type=str, nargs="+", help="Task text.")

    parser_toggle = subparsers.add_parser("toggle", help="Toggle a task between pending and completed.")
    parser_toggle.add_argument("id", type=str, help="Task id.")

    parser_delete = subparsers.add_parser("delete", help="Delete a task.")
    parser_delete.add_argument("id", type=str, help="Task id.")

    subparsers.add_parser("clear-completed", help="Delete all completed tasks.")
    subparsers.add_parser("clear-all", help="Delete every task.")
    return parser


def run_command(args, client: TasksClient, board: TaskBoard) -> str:
    """Runs one command against the API and returns the message to show."""
    if args.command == "add":
        task = client.add_task(board, " ".join(args.text))
        return f"Task added: {task.id}"
    if args.command == "toggle":
        task = client.toggle_task(board, args.id)
        return f"Task {task.id} is now {'completed' if task.completed else 'pending'}"
    if args.command == "delete":
        result = client.delete_task(board, args.id)
        return f"Task deleted successfully. Remaining: {result.remainingCount}"
    if args.command == "clear-completed":
        result = client.clear_completed(board)
        return f"Cleared {result.clearedCount} completed task(s)"
    if args.command == "clear-all":
        result = client.clear_all(board)
        return f"Deleted {result.deletedCount} task(s)"
    return ""


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    client = TasksClient(args.api_url)
    board = TaskBoard()
    try:
        client.fetch_tasks(board)
        message = run_command(args, client, board)
    except ClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if message:
        print(message)
    print(render_text(board.tasks))
    counts = board.counts()
    print(f"Total: {counts['total']}  Pending: {counts['pending']}  Completed: {counts['completed']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
