# src/drillboard/tasks/task_models.py

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - Any status is reachable from any other; only the timestamp side effects
      differ (see tasks/lifecycle.py).
    - Snapshots written by the earlier web board used Spanish values; they are
      still accepted when loading.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        legacy = _LEGACY_STATUS.get(raw)
        if legacy is not None:
            return legacy
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


_LEGACY_STATUS: dict[str, TaskStatus] = {
    "POR_HACER": TaskStatus.PENDING,
    "EN_PROGRESO": TaskStatus.IN_PROGRESS,
    "COMPLETADO": TaskStatus.DONE,
}


class MeasureUnit(StrEnum):
    METERS = "m"
    HOURS = "hrs"
    UNITS = "und"
    PERCENTAGE = "%"


@dataclass(slots=True)
class Task:
    id: str
    title: str
    category: str
    quantity: float
    # Stored per task so history survives registry changes.
    unit: MeasureUnit
    status: TaskStatus
    created_at: float
    updated_at: float

    description: str | None = None
    started_at: float | None = None
    completed_at: float | None = None

    def to_record(self) -> dict[str, Any]:
        data = asdict(self)
        data["unit"] = self.unit.value
        data["status"] = self.status.value
        return data

    @classmethod
    def from_record(cls, raw: dict[str, Any]) -> Task:
        """
        Build a Task from a persisted record.

        Raises KeyError/TypeError/ValueError on records missing required fields;
        the store decides whether to skip them.
        """
        created_at = float(raw["created_at"])
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            category=str(raw["category"]),
            quantity=float(raw.get("quantity") or 0.0),
            unit=MeasureUnit(raw["unit"]),
            status=TaskStatus.from_db(raw.get("status")),
            created_at=created_at,
            updated_at=float(raw.get("updated_at") or created_at),
            description=raw.get("description") or None,
            started_at=_opt_float(raw.get("started_at")),
            completed_at=_opt_float(raw.get("completed_at")),
        )


def _opt_float(v: Any) -> float | None:
    if v is None or v == "":
        return None
    return float(v)
