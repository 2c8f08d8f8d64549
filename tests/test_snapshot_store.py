# tests/test_snapshot_store.py

from __future__ import annotations

from pathlib import Path

import pytest

from drillboard.errors import PersistenceReadError
from drillboard.tasks.snapshot_store import DEFAULT_STORAGE_KEY, SnapshotStore
from drillboard.tasks.task_models import TaskStatus
from drillboard.tasks.task_store import TaskBoard

from .fakes import FakeClock, write_raw_slot


def test_missing_slot_loads_as_empty(tmp_path: Path) -> None:
    store = SnapshotStore(tmp_path / "tasks.sqlite3")
    assert store.load() == []


def test_save_replaces_whole_slot(tmp_path: Path) -> None:
    store = SnapshotStore(tmp_path / "tasks.sqlite3", key="k1")
    store.save([{"id": "a"}, {"id": "b"}])
    store.save([{"id": "c", "category": "Perforación PQ"}])
    assert store.load() == [{"id": "c", "category": "Perforación PQ"}]


def test_slots_are_isolated_by_key(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    SnapshotStore(db, key="one").save([{"id": "a"}])
    assert SnapshotStore(db, key="two").load() == []
    assert SnapshotStore(db, key="one").load() == [{"id": "a"}]


@pytest.mark.parametrize("raw", ["{not json", '{"id": "a"}', "42"])
def test_unparsable_slot_raises_read_error(tmp_path: Path, raw: str) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = SnapshotStore(db)
    write_raw_slot(db, DEFAULT_STORAGE_KEY, raw)
    with pytest.raises(PersistenceReadError):
        store.load()


def test_board_recovers_from_corrupt_sqlite_slot(tmp_path: Path) -> None:
    store = SnapshotStore(tmp_path / "tasks.sqlite3", key="slot")
    write_raw_slot(tmp_path / "tasks.sqlite3", "slot", "[{broken")
    clock = FakeClock(1_740_000_000.0)

    board = TaskBoard(store, clock=clock)
    assert board.load() == 0

    t = board.create("DDH-01", "Perforación PQ", 12)
    board.move(t.id, TaskStatus.DONE)

    reloaded = TaskBoard(SnapshotStore(tmp_path / "tasks.sqlite3", key="slot"), clock=clock)
    assert reloaded.load() == 1
    assert reloaded.get(t.id).status == TaskStatus.DONE


def test_blank_key_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        SnapshotStore(tmp_path / "tasks.sqlite3", key="  ")
