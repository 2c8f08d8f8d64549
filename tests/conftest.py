# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from drillboard.core.state import AppState
from drillboard.reports.summary import SummaryService
from drillboard.tasks.snapshot_store import SnapshotStore
from drillboard.tasks.task_store import TaskBoard

from .fakes import FakeClock, FakeLLMClient, MemorySnapshotRepo


def ts(*args: int) -> float:
    """Local wall-clock datetime -> epoch seconds."""
    return datetime(*args).timestamp()


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    A SimpleNamespace keeps tests isolated from the real environment.
    """
    return SimpleNamespace(
        app_name="drillboard-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        storage_key="drill_tasks_test",
        openrouter_api_key=None,
        openrouter_base_url="https://openrouter.example/api/v1",
        llm_models=["model-a", "model-b"],
        extra_headers={},
        llm_connect_timeout=1.0,
        llm_read_timeout=2.0,
        llm_first_token_timeout=2.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(ts(2025, 3, 1, 8, 0))


@pytest.fixture()
def repo() -> MemorySnapshotRepo:
    return MemorySnapshotRepo()


@pytest.fixture()
def board(repo: MemorySnapshotRepo, clock: FakeClock) -> TaskBoard:
    b = TaskBoard(repo, clock=clock)
    b.load()
    return b


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock, llm: FakeLLMClient) -> AppState:
    """
    AppState wired with a real SQLite snapshot store and a fake LLM.
    """
    board = TaskBoard(SnapshotStore(settings.tasks_db_path, key=settings.storage_key), clock=clock)
    board.load()
    return AppState(settings=settings, board=board, summary=SummaryService(llm), clock=clock)
