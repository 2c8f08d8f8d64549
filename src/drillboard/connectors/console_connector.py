# src/drillboard/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"/exit", "/quit"})
PROMPT = "drillboard> "


def _stamp(text: str) -> str:
    return f"[{datetime.now().astimezone():%H:%M:%S}] {text}"


def handle_line(state: AppState, line: str, emit: Callable[[str], None]) -> str | None:
    """One REPL step: the text to print for `line`, or None for nothing."""
    line = line.strip()
    if not line:
        return None
    if not line.startswith("/"):
        return "Commands start with '/'. Use /help to list them."
    try:
        return command_registry.handle(state, line, emit=emit)
    except Exception:
        logger.exception("Command failed: %s", line.split()[0])
        return "Internal error while handling a command (see drillboard.log)."


def run_console_loop(
    state: AppState,
    *,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> None:
    logger.info("Console started (tasks=%d).", len(state.board))
    write("Type /help for commands, /list for the board, /exit to quit.\n")

    def emit(text: str) -> None:
        write(_stamp(text))

    while True:
        try:
            line = read(PROMPT)
        except (EOFError, KeyboardInterrupt):
            write("")
            break

        if line.strip().lower() in EXIT_COMMANDS:
            break

        response = handle_line(state, line, emit)
        if response is not None:
            write(response + "\n")

    logger.info("Console finished.")
