# src/drillboard/reports/aggregator.py

"""
Report aggregation over a date range.

Everything here is a pure function of (tasks, start, end): the same inputs
always give the same report. Dates are interpreted in local time and the range
is inclusive at day granularity (00:00:00.000 .. 23:59:59.999).
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any

from ..tasks.task_models import MeasureUnit, Task, TaskStatus

DateLike = date | str

_DAY_START = time(0, 0, 0, 0)
_DAY_END = time(23, 59, 59, 999000)

DRILLING_MARKERS = ("perforación",)
LOGGING_MARKERS = ("logueo", "mapeo")


@dataclass(frozen=True, slots=True)
class ConsolidatedReportItem:
    category: str
    unit: MeasureUnit
    total_quantity: float
    task_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "unit": self.unit.value,
            "totalQuantity": self.total_quantity,
            "taskCount": self.task_count,
        }


@dataclass(frozen=True, slots=True)
class ReportKpis:
    drilling_meters: str
    logging_meters: str
    completed_count: int
    avg_hours: str
    created_count: int


@dataclass(frozen=True, slots=True)
class Report:
    start: date
    end: date
    items: list[ConsolidatedReportItem]
    kpis: ReportKpis

    def as_rows(self) -> list[dict[str, Any]]:
        return [i.to_dict() for i in self.items]


def to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def day_bounds(start: DateLike, end: DateLike) -> tuple[float, float]:
    """Local start-of-day of `start` and end-of-day of `end`, as epoch seconds."""
    lo = datetime.combine(to_date(start), _DAY_START).timestamp()
    hi = datetime.combine(to_date(end), _DAY_END).timestamp()
    return lo, hi


def default_period(today: date) -> tuple[date, date]:
    """First and last day of `today`'s month."""
    last = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last)


def completed_in_range(tasks: Iterable[Task], start: DateLike, end: DateLike) -> list[Task]:
    lo, hi = day_bounds(start, end)
    return [
        t
        for t in tasks
        if t.status == TaskStatus.DONE
        and t.completed_at is not None
        and lo <= t.completed_at <= hi
    ]


def _group(done: Sequence[Task]) -> list[ConsolidatedReportItem]:
    # dicts keep insertion order, so ties below keep encounter order
    totals: dict[tuple[str, MeasureUnit], list[float]] = {}
    for t in done:
        acc = totals.setdefault((t.category, t.unit), [0.0, 0])
        acc[0] += t.quantity
        acc[1] += 1

    items = [
        ConsolidatedReportItem(category=cat, unit=unit, total_quantity=qty, task_count=int(n))
        for (cat, unit), (qty, n) in totals.items()
    ]
    items.sort(key=lambda i: i.total_quantity, reverse=True)
    return items


def consolidate(
    tasks: Iterable[Task], start: DateLike, end: DateLike
) -> list[ConsolidatedReportItem]:
    """
    Totals per (category, unit) of tasks completed in the range.

    Grouping includes the unit so quantities of different units are never summed.
    Sorted by total_quantity descending (stable).
    """
    return _group(completed_in_range(tasks, start, end))


def _matches(category: str, markers: tuple[str, ...]) -> bool:
    low = category.lower()
    return any(m in low for m in markers)


def _meters(done: Iterable[Task], markers: tuple[str, ...]) -> float:
    return sum(
        t.quantity for t in done if t.unit == MeasureUnit.METERS and _matches(t.category, markers)
    )


def compute_kpis(tasks: Sequence[Task], start: DateLike, end: DateLike) -> ReportKpis:
    lo, hi = day_bounds(start, end)
    done = completed_in_range(tasks, start, end)

    durations = [t.completed_at - t.created_at for t in done if t.completed_at is not None]
    if durations:
        avg_hours = f"{sum(durations) / len(durations) / 3600.0:.1f}"
    else:
        avg_hours = "0"

    created = sum(1 for t in tasks if lo <= t.created_at <= hi)

    return ReportKpis(
        drilling_meters=f"{_meters(done, DRILLING_MARKERS):.2f}",
        logging_meters=f"{_meters(done, LOGGING_MARKERS):.2f}",
        completed_count=len(done),
        avg_hours=avg_hours,
        created_count=created,
    )


def build_report(tasks: Iterable[Task], start: DateLike, end: DateLike) -> Report:
    snapshot = list(tasks)
    return Report(
        start=to_date(start),
        end=to_date(end),
        items=consolidate(snapshot, start, end),
        kpis=compute_kpis(snapshot, start, end),
    )
