# tests/test_task_store.py

from __future__ import annotations

import sqlite3

import pytest

from drillboard.errors import InvalidCategoryError, TaskNotFoundError
from drillboard.tasks.task_models import MeasureUnit, TaskStatus
from drillboard.tasks.task_store import TaskBoard

from .fakes import FailingSaveRepo, FakeClock, MemorySnapshotRepo


def test_create_persists_full_snapshot(board: TaskBoard, repo: MemorySnapshotRepo, clock: FakeClock) -> None:
    a = board.create("DDH-01", "Perforación HQ", 42.5)
    b = board.create("Mapeo caja 3", "mapeo_geo", 12, "bancos 1-3")

    assert [t.id for t in board.list_tasks()] == [a.id, b.id]
    assert len(repo.saves) == 2
    assert [r["id"] for r in repo.saves[-1]] == [a.id, b.id]
    assert repo.saves[-1][0]["unit"] == "m"
    assert repo.saves[-1][0]["status"] == "pending"
    assert a.created_at == clock.now


def test_invalid_category_leaves_board_untouched(board: TaskBoard, repo: MemorySnapshotRepo) -> None:
    with pytest.raises(InvalidCategoryError):
        board.create("x", "Voladura", 1)
    assert len(board) == 0
    assert repo.saves == []


def test_move_uses_clock_and_explicit_now(board: TaskBoard, clock: FakeClock) -> None:
    t = board.create("DDH-01", "Perforación PQ", 10)
    clock.advance(3600)
    started = board.move(t.id, TaskStatus.IN_PROGRESS)
    assert started.started_at == clock.now

    done = board.move(t.id, TaskStatus.DONE, now=clock.now + 120)
    assert done.completed_at == clock.now + 120
    assert board.get(t.id).status == TaskStatus.DONE


def test_edit_and_delete(board: TaskBoard, repo: MemorySnapshotRepo, clock: FakeClock) -> None:
    t = board.create("Charla", "Charla de Seguridad", 0.5)
    clock.advance(60)
    edited = board.edit(t.id, {"quantity": 1, "category": "Muestreo"})
    assert edited.unit == MeasureUnit.UNITS
    assert edited.updated_at == clock.now
    assert edited.created_at == t.created_at

    removed = board.delete(t.id)
    assert removed.id == t.id
    assert len(board) == 0
    assert repo.records == []


def test_unknown_id_raises_not_found_without_side_effects(board: TaskBoard, repo: MemorySnapshotRepo) -> None:
    board.create("DDH-01", "Perforación PQ", 10)
    saves = len(repo.saves)
    for op in (
        lambda: board.move("missing", TaskStatus.DONE),
        lambda: board.edit("missing", {"title": "x"}),
        lambda: board.delete("missing"),
        lambda: board.get("missing"),
    ):
        with pytest.raises(TaskNotFoundError):
            op()
    assert len(board) == 1
    assert len(repo.saves) == saves


def test_resolve_id_by_unique_prefix(board: TaskBoard) -> None:
    t = board.create("DDH-01", "Perforación PQ", 10)
    assert board.resolve_id(t.id[:8]) == t.id
    assert board.resolve_id(t.id) == t.id
    with pytest.raises(TaskNotFoundError):
        board.resolve_id("zzzz-not-there")
    with pytest.raises(TaskNotFoundError):
        board.resolve_id("")


def test_load_round_trips_through_repo(repo: MemorySnapshotRepo, clock: FakeClock) -> None:
    first = TaskBoard(repo, clock=clock)
    t = first.create("DDH-01", "Perforación NQ", 33)
    first.move(t.id, TaskStatus.DONE)

    second = TaskBoard(repo, clock=clock)
    assert second.load() == 1
    loaded = second.get(t.id)
    assert loaded == first.get(t.id)


def test_corrupt_snapshot_falls_back_to_empty(clock: FakeClock) -> None:
    board = TaskBoard(MemorySnapshotRepo(corrupt=True), clock=clock)
    assert board.load() == 0
    assert board.list_tasks() == []


def test_malformed_records_are_skipped(clock: FakeClock) -> None:
    good = {
        "id": "ok",
        "title": "DDH",
        "category": "Perforación PQ",
        "quantity": 5,
        "unit": "m",
        "status": "COMPLETADO",
        "created_at": 1000.0,
        "updated_at": 2000.0,
        "started_at": 1500.0,
        "completed_at": 2000.0,
    }
    bad = {"id": "broken", "title": "no category"}
    board = TaskBoard(MemorySnapshotRepo([good, bad]), clock=clock)
    assert board.load() == 1
    assert board.get("ok").status == TaskStatus.DONE


def test_stored_unit_survives_registry_changes(repo: MemorySnapshotRepo, clock: FakeClock) -> None:
    repo.records = [
        {
            "id": "legacy",
            "title": "old",
            "category": "Perforación PQ",
            "quantity": 3,
            "unit": "hrs",
            "status": "done",
            "created_at": 10.0,
            "completed_at": 20.0,
            "started_at": 15.0,
        }
    ]
    board = TaskBoard(repo, clock=clock)
    board.load()
    assert board.get("legacy").unit == MeasureUnit.HOURS


def test_failed_write_leaves_board_unchanged(clock: FakeClock) -> None:
    repo = FailingSaveRepo(
        [
            {
                "id": "kept",
                "title": "DDH-01",
                "category": "Perforación PQ",
                "quantity": 5,
                "unit": "m",
                "status": "pending",
                "created_at": 1000.0,
            }
        ]
    )
    board = TaskBoard(repo, clock=clock)
    assert board.load() == 1
    before = board.list_tasks()

    with pytest.raises(sqlite3.OperationalError):
        board.create("x", "Muestreo", 1)
    with pytest.raises(sqlite3.OperationalError):
        board.move("kept", TaskStatus.DONE)
    with pytest.raises(sqlite3.OperationalError):
        board.edit("kept", {"title": "renamed"})
    with pytest.raises(sqlite3.OperationalError):
        board.delete("kept")

    assert len(board) == 1
    assert board.list_tasks() == before
    assert board.get("kept").status == TaskStatus.PENDING
