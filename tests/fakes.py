# tests/fakes.py

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from drillboard.core.ports import ChatMessage
from drillboard.errors import PersistenceReadError, SummaryServiceError


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Yields a predefined text as a couple of chunks
    """

    def __init__(self, next_text: str = "Resumen ok") -> None:
        self.next_text = next_text
        self.calls: list[tuple[list[ChatMessage], str]] = []

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        self.calls.append((messages, system_prompt))
        half = len(self.next_text) // 2
        yield self.next_text[:half]
        yield self.next_text[half:]


class FailingLLMClient:
    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or SummaryServiceError("All LLM models failed.")

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        raise self.exc


class FakeClock:
    """Manually advanced clock (epoch seconds)."""

    def __init__(self, start: float) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class MemorySnapshotRepo:
    """In-memory SnapshotRepo that records every full save."""

    def __init__(self, records: list[dict[str, Any]] | None = None, *, corrupt: bool = False) -> None:
        self.records = list(records or [])
        self.corrupt = corrupt
        self.saves: list[list[dict[str, Any]]] = []

    def load(self) -> list[dict[str, Any]]:
        if self.corrupt:
            raise PersistenceReadError("corrupt snapshot")
        return list(self.records)

    def save(self, records: list[dict[str, Any]]) -> None:
        self.records = list(records)
        self.saves.append(list(records))


class FailingSaveRepo(MemorySnapshotRepo):
    """Snapshot repo whose writes always fail (e.g. a locked database)."""

    def save(self, records: list[dict[str, Any]]) -> None:
        raise sqlite3.OperationalError("database is locked")


def write_raw_slot(db_path: Path, key: str, value: str) -> None:
    """Put an arbitrary string into a SnapshotStore slot (corrupt-data tests)."""
    conn = sqlite3.connect(str(db_path))
    try:
        conn.execute(
            "INSERT OR REPLACE INTO kv(key, value, updated_at) VALUES (?, ?, 0)",
            (key, value),
        )
        conn.commit()
    finally:
        conn.close()
