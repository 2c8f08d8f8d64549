# src/drillboard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the snapshot store, the task board and the optional LLM into AppState,
- loads the saved task list once.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..errors import SummaryServiceError
from ..llm.client import OpenRouterLLMClient
from ..reports.summary import SummaryService
from ..tasks.snapshot_store import SnapshotStore
from ..tasks.task_store import TaskBoard

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, llm: LLMClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings(). If no llm is given, an
    OpenRouter client is built when an API key is configured; otherwise the
    summary feature runs unconfigured (fixed error message).
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if llm is None:
        try:
            llm = OpenRouterLLMClient(settings)
        except SummaryServiceError as e:
            logger.info("AI summary disabled: %s", e)
            llm = None

    board = TaskBoard(SnapshotStore(settings.tasks_db_path, key=settings.storage_key))
    board.load()

    return AppState(
        settings=settings,
        board=board,
        summary=SummaryService(llm),
    )
