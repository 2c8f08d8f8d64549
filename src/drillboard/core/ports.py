# src/drillboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The board and the report summary depend on Protocols instead of concrete
implementations, so storage and LLM providers stay swappable in tests.
"""

from typing import Any, Iterable, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class SnapshotRepo(Protocol):
    """One named slot holding the entire task list as a record array."""
    def load(self) -> list[dict[str, Any]]: ...
    def save(self, records: list[dict[str, Any]]) -> None: ...
