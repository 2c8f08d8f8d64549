# src/drillboard/tasks/task_store.py

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from ..core.ports import SnapshotRepo
from ..errors import PersistenceReadError, TaskNotFoundError
from .categories import DRILL_CATEGORIES, Category
from .lifecycle import apply_edit, apply_move, new_task
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class TaskBoard:
    """
    Owner of the task list.

    All mutation goes through create/edit/delete/move:
    - the new list is computed in full
    - the whole list is rewritten to the snapshot slot
    - only then is the new list swapped in
    If the transition or the write raises, the in-memory list is left untouched.

    Every operation takes an optional explicit `now` (epoch seconds);
    otherwise the injected clock is used.
    """

    def __init__(
        self,
        repo: SnapshotRepo,
        *,
        clock: Clock = time.time,
        registry: tuple[Category, ...] = DRILL_CATEGORIES,
    ) -> None:
        self._repo = repo
        self._clock = clock
        self._registry = registry
        self._tasks: list[Task] = []

    # ---- loading / persistence ----

    def load(self) -> int:
        """
        Read the snapshot once (startup). Corrupt data means "no saved data".

        Returns the number of tasks loaded.
        """
        try:
            records = self._repo.load()
        except PersistenceReadError:
            logger.exception("Stored task snapshot is unreadable; starting with an empty board.")
            self._tasks = []
            return 0

        loaded: list[Task] = []
        for raw in records:
            try:
                loaded.append(Task.from_record(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed task record id=%s", raw.get("id"))
        self._tasks = loaded
        logger.info("TaskBoard loaded tasks=%d", len(loaded))
        return len(loaded)

    def _commit(self, tasks: list[Task]) -> None:
        # Persist first: a failed write must leave the in-memory list as it was.
        self._repo.save([t.to_record() for t in tasks])
        self._tasks = tasks

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else float(now)

    def _index_of(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        raise TaskNotFoundError(task_id)

    # ---- queries ----

    def list_tasks(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Task:
        return self._tasks[self._index_of(task_id)]

    def by_status(self, status: TaskStatus) -> list[Task]:
        return [t for t in self._tasks if t.status == status]

    def resolve_id(self, prefix: str) -> str:
        """
        Resolve a full id or a unique id prefix (console convenience).

        Ambiguous or unknown prefixes raise TaskNotFoundError.
        """
        prefix = (prefix or "").strip()
        if not prefix:
            raise TaskNotFoundError(prefix)
        matches = [t.id for t in self._tasks if t.id.startswith(prefix)]
        if prefix in matches:
            return prefix
        if len(matches) != 1:
            raise TaskNotFoundError(prefix)
        return matches[0]

    def __len__(self) -> int:
        return len(self._tasks)

    # ---- lifecycle operations ----

    def create(
        self,
        title: str,
        category: str,
        quantity: float,
        description: str | None = None,
        *,
        now: float | None = None,
    ) -> Task:
        task = new_task(
            title,
            category,
            quantity,
            description,
            now=self._now(now),
            registry=self._registry,
        )
        self._commit([*self._tasks, task])
        logger.debug("Task created id=%s category=%s qty=%s", task.id, task.category, task.quantity)
        return task

    def edit(
        self,
        task_id: str,
        changes: Mapping[str, Any],
        *,
        now: float | None = None,
    ) -> Task:
        idx = self._index_of(task_id)
        updated = apply_edit(self._tasks[idx], changes, now=self._now(now), registry=self._registry)
        tasks = list(self._tasks)
        tasks[idx] = updated
        self._commit(tasks)
        logger.debug("Task edited id=%s fields=%s", task_id, sorted(changes))
        return updated

    def delete(self, task_id: str) -> Task:
        idx = self._index_of(task_id)
        removed = self._tasks[idx]
        self._commit(self._tasks[:idx] + self._tasks[idx + 1 :])
        logger.debug("Task deleted id=%s", task_id)
        return removed

    def move(
        self,
        task_id: str,
        new_status: TaskStatus,
        *,
        now: float | None = None,
    ) -> Task:
        idx = self._index_of(task_id)
        old = self._tasks[idx]
        moved = apply_move(old, new_status, now=self._now(now))
        tasks = list(self._tasks)
        tasks[idx] = moved
        self._commit(tasks)
        logger.debug("Task moved id=%s %s -> %s", task_id, old.status, moved.status)
        return moved
