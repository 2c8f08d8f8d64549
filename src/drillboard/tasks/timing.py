# src/drillboard/tasks/timing.py

"""Elapsed-time helpers. All of them take an explicit `now` (epoch seconds)."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .task_models import Task, TaskStatus


def duration_label(start: float, end: float) -> str:
    """Compact label: "2d 3h", "3h 5m" or "7m". Negative spans clamp to 0."""
    total_minutes = int(max(0.0, end - start) // 60)
    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)
    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def wait_duration(task: Task, now: float) -> float:
    """Seconds between creation and start (or now, while still pending)."""
    end = task.started_at if task.started_at is not None else now
    return max(0.0, end - task.created_at)


def execution_duration(task: Task, now: float) -> float | None:
    """Seconds between start and completion (or now); None if never started."""
    if task.started_at is None:
        return None
    end = task.completed_at if task.completed_at is not None else now
    return max(0.0, end - task.started_at)


@dataclass(frozen=True, slots=True)
class CriticalTask:
    task: Task
    elapsed: float


def critical_tasks(tasks: Iterable[Task], now: float, limit: int = 3) -> list[CriticalTask]:
    """
    Unfinished tasks that have been waiting the longest.

    Pending tasks count from creation; in-progress ones from their start
    (falling back to creation when no start was recorded).
    """
    out: list[CriticalTask] = []
    for t in tasks:
        if t.status == TaskStatus.DONE:
            continue
        if t.status == TaskStatus.PENDING or t.started_at is None:
            since = t.created_at
        else:
            since = t.started_at
        out.append(CriticalTask(task=t, elapsed=now - since))
    out.sort(key=lambda c: c.elapsed, reverse=True)
    return out[: max(0, limit)]
