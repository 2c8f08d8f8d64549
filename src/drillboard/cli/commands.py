# src/drillboard/cli/commands.py

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import shlex
from collections.abc import Callable
from datetime import date, datetime
from typing import Any, cast

from ..core.state import AppState
from ..errors import DrillboardError
from ..reports.aggregator import Report, build_report, default_period, to_date
from ..tasks.categories import DRILL_CATEGORIES
from ..tasks.task_models import Task, TaskStatus
from ..tasks.timing import critical_tasks, duration_label, execution_duration, wait_duration

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

COLUMN_TITLES: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "PENDING",
    TaskStatus.IN_PROGRESS: "IN PROGRESS",
    TaskStatus.DONE: "DONE",
}

_STATUS_ALIASES: dict[str, TaskStatus] = {
    "pending": TaskStatus.PENDING,
    "todo": TaskStatus.PENDING,
    "in_progress": TaskStatus.IN_PROGRESS,
    "in-progress": TaskStatus.IN_PROGRESS,
    "doing": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.DONE,
}


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Board errors (unknown task, unknown category, bad values) become replies.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Could not parse command: {e}."
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except (DrillboardError, ValueError) as e:
            logger.debug("Command /%s rejected: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _fmt_ts(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).strftime("%d %b %H:%M")


def _fmt_qty(q: float) -> str:
    return f"{q:g}"


def parse_status(raw: str) -> TaskStatus:
    status = _STATUS_ALIASES.get(raw.strip().lower())
    if status is None:
        raise ValueError(f"unknown status {raw!r} (use pending, in_progress or done)")
    return status


def format_task(task: Task, now: float) -> str:
    lines = [
        f"[{task.id[:8]}] {task.title or '<untitled>'}",
        f"    {task.category}: {_fmt_qty(task.quantity)} {task.unit}",
    ]
    if task.description:
        lines.append(f"    {task.description}")

    timing = [f"created {_fmt_ts(task.created_at)}"]
    if task.status == TaskStatus.PENDING:
        timing.append(f"waiting {duration_label(0, wait_duration(task, now))}")
    else:
        timing.append(f"wait {duration_label(0, wait_duration(task, now))}")
    execution = execution_duration(task, now)
    if execution is not None:
        timing.append(f"execution {duration_label(0, execution)}")
    if task.completed_at is not None:
        timing.append(f"done {_fmt_ts(task.completed_at)}")
    lines.append("    " + ", ".join(timing))
    return "\n".join(lines)


def format_report(report: Report) -> str:
    k = report.kpis
    lines = [
        f"Report {report.start.isoformat()} .. {report.end.isoformat()}",
        f"  Drilled:          {k.drilling_meters} m",
        f"  Logging/mapping:  {k.logging_meters} m",
        f"  Completed tasks:  {k.completed_count}",
        f"  Average cycle:    {k.avg_hours} hrs",
        f"  Created in range: {k.created_count}",
        "",
    ]
    if not report.items:
        lines.append("  No data for this range.")
        return "\n".join(lines)

    width = max(len(i.category) for i in report.items)
    lines.append(f"  {'Activity'.ljust(width)}  {'Total':>10}  {'Unit':<4}  {'Events':>6}")
    for i in report.items:
        lines.append(
            f"  {i.category.ljust(width)}  {i.total_quantity:>10.2f}  {i.unit.value:<4}  {i.task_count:>6}"
        )
    return "\n".join(lines)


REPORT_USAGE = "Usage: /{name} [start [end]] (dates as YYYY-MM-DD)"


def _report_range(args: list[str], today: date) -> tuple[date, date]:
    if not args:
        return default_period(today)
    if len(args) == 1:
        d = to_date(args[0])
        return d, d
    return to_date(args[0]), to_date(args[1])


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_categories(state: AppState, args: list[str]) -> str:
    lines = ["Categories:"]
    for cat in DRILL_CATEGORIES:
        lines.append(f"  {cat.id:<14} {cat.name} ({cat.unit})")
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <category> <quantity> <title...> [-- <description...>]
    """
    if len(args) < 3:
        return 'Usage: /add <category> <quantity> <title...> [-- <description...>]'

    description = None
    if "--" in args:
        sep = args.index("--")
        description = " ".join(args[sep + 1 :])
        args = args[:sep]

    category, quantity, title = args[0], args[1], " ".join(args[2:])
    task = state.board.create(title, category, float(quantity), description)
    return f"Task added [{task.id[:8]}] {task.title} ({_fmt_qty(task.quantity)} {task.unit})."


def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id> field=value [field=value ...]
    Fields: title, category, quantity, description, status.
    """
    if len(args) < 2:
        return "Usage: /edit <id> field=value ... (title, category, quantity, description, status)"

    task_id = state.board.resolve_id(args[0])
    changes: dict[str, Any] = {}
    for pair in args[1:]:
        key, sep, value = pair.partition("=")
        if not sep:
            return f"Expected field=value, got {pair!r}."
        key = key.strip().lower()
        if key == "status":
            changes[key] = parse_status(value)
        elif key == "quantity":
            changes[key] = float(value)
        else:
            changes[key] = value

    task = state.board.edit(task_id, changes)
    return f"Task [{task.id[:8]}] updated."


def cmd_move(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /move <id> <pending|in_progress|done>"
    task_id = state.board.resolve_id(args[0])
    task = state.board.move(task_id, parse_status(args[1]))
    return f"Task [{task.id[:8]}] moved to {COLUMN_TITLES[task.status]}."


def _move_to(status: TaskStatus) -> CommandHandler2:
    def handler(state: AppState, args: list[str]) -> str:
        if len(args) != 1:
            return "Usage: /<command> <id>"
        return cmd_move(state, [args[0], status.value])

    return handler


def cmd_delete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /delete <id>"
    task = state.board.delete(state.board.resolve_id(args[0]))
    return f"Task [{task.id[:8]}] {task.title} deleted."


def cmd_list(state: AppState, args: list[str]) -> str:
    now = state.clock()
    lines: list[str] = []
    for status in TaskStatus:
        tasks = state.board.by_status(status)
        lines.append(f"== {COLUMN_TITLES[status]} ({len(tasks)}) ==")
        if not tasks:
            lines.append("  (empty)")
        for t in tasks:
            lines.append(format_task(t, now))
        lines.append("")
    return "\n".join(lines).rstrip()


def cmd_alerts(state: AppState, args: list[str]) -> str:
    now = state.clock()
    critical = critical_tasks(state.board.list_tasks(), now)
    if not critical:
        return "No open tasks."
    lines = ["Attention required (longest waits):"]
    for i, c in enumerate(critical, start=1):
        phase = "waiting" if c.task.status == TaskStatus.PENDING else "running"
        lines.append(
            f"  #{i} [{c.task.id[:8]}] {c.task.title} - {phase} {duration_label(0, c.elapsed)}"
        )
    return "\n".join(lines)


def cmd_report(state: AppState, args: list[str]) -> str:
    """
    /report               -> current month
    /report <day>         -> a single day
    /report <start> <end> -> inclusive range (YYYY-MM-DD)
    """
    if len(args) > 2:
        return REPORT_USAGE.format(name="report")
    start, end = _report_range(args, date.today())
    return format_report(build_report(state.board.list_tasks(), start, end))


def cmd_summary(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) > 2:
        return REPORT_USAGE.format(name="summary")
    start, end = _report_range(args, date.today())
    report = build_report(state.board.list_tasks(), start, end)
    if not report.items:
        return "No completed work in this range; nothing to summarize."
    if state.summary.in_flight:
        return "A summary is already being generated."

    if emit:
        with contextlib.suppress(Exception):
            emit("[AI] Generating executive summary...")

    text = asyncio.run(state.summary.generate(report))
    return text if text is not None else "A summary is already being generated."


def cmd_status(state: AppState, args: list[str]) -> str:
    counts = ", ".join(
        f"{COLUMN_TITLES[s]}: {len(state.board.by_status(s))}" for s in TaskStatus
    )
    ai = "configured" if state.summary.configured else "not configured"
    db = getattr(state.settings, "tasks_db_path", "?")
    return (
        "Status:\n"
        f"  Tasks: {counts}\n"
        f"  AI summary: {ai}\n"
        f"  Storage: {db}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("categories", cmd_categories, help_text="List activity categories and units.")
registry.register(
    "add", cmd_add, help_text="Add a task: /add <category> <qty> <title> [-- <description>]."
)
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> field=value ...")
registry.register("move", cmd_move, help_text="Move a task: /move <id> <pending|in_progress|done>.")
registry.register("start", _move_to(TaskStatus.IN_PROGRESS), help_text="Start a task: /start <id>.")
registry.register("done", _move_to(TaskStatus.DONE), help_text="Complete a task: /done <id>.")
registry.register("reset", _move_to(TaskStatus.PENDING), help_text="Reset a task to pending: /reset <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("list", cmd_list, help_text="Show the board.", aliases=["ls", "board"])
registry.register("alerts", cmd_alerts, help_text="Show the longest-waiting open tasks.")
registry.register("report", cmd_report, help_text="Production report: /report [start [end]].")
registry.register("summary", cmd_summary, help_text="AI executive summary: /summary [start [end]].")
registry.register("status", cmd_status, help_text="Show board counts and configuration.")
