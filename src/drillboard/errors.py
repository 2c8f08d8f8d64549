# src/drillboard/errors.py

from __future__ import annotations


class DrillboardError(Exception):
    """Base class for every recoverable error raised by the board."""


class TaskNotFoundError(DrillboardError, KeyError):
    """An operation referenced a task id that is not on the board."""

    def __init__(self, task_id: str) -> None:
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"Task not found: {self.task_id}"


class InvalidCategoryError(DrillboardError, ValueError):
    """Creation/edit referenced a category outside the known registry."""

    def __init__(self, category: str) -> None:
        super().__init__(category)
        self.category = category

    def __str__(self) -> str:
        return f"Unknown category: {self.category!r}"


class PersistenceReadError(DrillboardError):
    """Stored snapshot could not be parsed into a task list."""


class SummaryServiceError(DrillboardError, RuntimeError):
    """External summary service failed or is not configured."""
