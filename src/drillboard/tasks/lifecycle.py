# src/drillboard/tasks/lifecycle.py

"""
Task lifecycle transitions.

Pure functions: every operation takes the current Task plus an explicit `now`
and returns a new Task. Nothing here touches storage or reads a clock.

Move side effects (status is never forbidden, only the side effects differ):
- same status        -> only updated_at changes
- pending -> in_progress -> started_at = now (unless already set)
- * -> done          -> completed_at = now (not before started_at),
                        started_at backfilled if missing
- * -> pending       -> started_at and completed_at cleared
- done -> in_progress -> completed_at cleared, started_at kept
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from .categories import DRILL_CATEGORIES, Category, find_category
from .task_models import Task, TaskStatus

EDITABLE_FIELDS = frozenset({"title", "category", "quantity", "description", "status"})


def _check_quantity(quantity: Any) -> float:
    q = float(quantity)
    if not math.isfinite(q) or q < 0:
        raise ValueError(f"quantity must be a finite non-negative number, got {q}")
    return q


def new_task(
    title: str,
    category: str,
    quantity: float,
    description: str | None = None,
    *,
    now: float,
    task_id: str | None = None,
    registry: tuple[Category, ...] = DRILL_CATEGORIES,
) -> Task:
    cat = find_category(category, registry)
    return Task(
        id=task_id or str(uuid.uuid4()),
        title=(title or "").strip(),
        category=cat.name,
        quantity=_check_quantity(quantity),
        unit=cat.unit,
        status=TaskStatus.PENDING,
        created_at=now,
        updated_at=now,
        description=(description or "").strip() or None,
    )


def apply_move(task: Task, new_status: TaskStatus, *, now: float) -> Task:
    new_status = TaskStatus(new_status)
    # Timestamps never precede creation, even with a skewed caller clock.
    ts = max(now, task.created_at)
    old = task.status

    if new_status == old:
        return replace(task, updated_at=ts)

    started_at = task.started_at
    completed_at = task.completed_at

    if new_status == TaskStatus.DONE:
        if started_at is None:
            started_at = ts
        # completed_at >= started_at, even when `now` is earlier than the start
        completed_at = max(ts, started_at)
    elif new_status == TaskStatus.PENDING:
        started_at = None
        completed_at = None
    elif old == TaskStatus.PENDING:
        if started_at is None:
            started_at = ts
    else:
        # done -> in_progress
        completed_at = None

    return replace(
        task,
        status=new_status,
        updated_at=ts,
        started_at=started_at,
        completed_at=completed_at,
    )


def apply_edit(
    task: Task,
    changes: Mapping[str, Any],
    *,
    now: float,
    registry: tuple[Category, ...] = DRILL_CATEGORIES,
) -> Task:
    """
    Apply field changes and bump updated_at.

    A changed category re-resolves the unit from the registry. An explicit
    status different from the current one goes through apply_move so that the
    lifecycle timestamps stay consistent.
    """
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"unknown task fields: {', '.join(sorted(unknown))}")

    fields: dict[str, Any] = {}
    if "title" in changes:
        fields["title"] = str(changes["title"] or "").strip()
    if "quantity" in changes:
        fields["quantity"] = _check_quantity(changes["quantity"])
    if "description" in changes:
        fields["description"] = str(changes["description"] or "").strip() or None
    if "category" in changes:
        cat = find_category(str(changes["category"]), registry)
        fields["category"] = cat.name
        fields["unit"] = cat.unit

    ts = max(now, task.created_at)
    edited = replace(task, updated_at=ts, **fields)

    status = changes.get("status")
    if status is not None and TaskStatus(status) != edited.status:
        edited = apply_move(edited, TaskStatus(status), now=now)
    return edited
