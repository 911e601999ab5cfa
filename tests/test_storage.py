import json
from pathlib import Path

import pytest

from bullseye import session as ss
from bullseye.exceptions import PersistenceCorrupt
from bullseye.models import PersistedSnapshot, Shot
from bullseye.storage import InMemorySnapshotStore, JsonFileSnapshotStore, SnapshotStore


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def sample_state():
    state = ss.start(18, 3, now_ms=1000)
    state = ss.record_shot(state, Shot(x=50, y=50, ring=10, inner_ten=True, arrow_index=1))
    state = ss.record_shot(state, Shot(x=10, y=10, ring=0, arrow_index=2))
    state = ss.record_shot(state, Shot(x=50, y=62.5, ring=8))
    return ss.advance_end(state)


# ---------------------------------------------------------
# Save / load
# ---------------------------------------------------------

def test_load_empty_store(store):
    assert store.load() is None


def test_save_then_load(store, clock):
    state = sample_state()

    saved = store.save(state)
    loaded = store.load()

    assert saved.saved_at_ms == clock.now_ms
    assert loaded == saved
    assert loaded.state.current_end_index == 1


def test_save_overwrites_previous(store):
    store.save(ss.start(18, 3))
    store.save(sample_state())

    assert len(store.load().state.ends) == 2


def test_snapshot_wire_shape(store, clock):
    store.save(sample_state())

    data = json.loads(store.raw)

    assert data["distanceMeters"] == 18
    assert data["arrowsPerEnd"] == 3
    assert data["currentEndIndex"] == 1
    assert data["savedAtEpochMillis"] == clock.now_ms
    assert [s["ringValue"] for s in data["ends"][0]] == ["X", "M", 8]
    assert data["ends"][0][0]["arrowIndex"] == 1
    assert "arrowIndex" not in data["ends"][0][2]
    assert data["ends"][1] == []


# ---------------------------------------------------------
# Staleness
# ---------------------------------------------------------

def test_snapshot_31_minutes_old_is_dropped(store, clock):
    store.save(sample_state())
    clock.advance_minutes(31)

    assert store.load() is None
    assert store.raw is None


def test_snapshot_29_minutes_old_is_kept(store, clock):
    store.save(sample_state())
    clock.advance_minutes(29)

    assert store.load() is not None
    assert store.raw is not None


def test_snapshot_exactly_30_minutes_old_is_kept(store, clock):
    store.save(sample_state())
    clock.advance_minutes(30)

    assert store.load() is not None


# ---------------------------------------------------------
# Corrupt snapshots
# ---------------------------------------------------------

@pytest.mark.parametrize("raw", [
    "{not json",
    "[]",
    "null",
    json.dumps({"distanceMeters": 18}),
    json.dumps({
        "distanceMeters": 18, "arrowsPerEnd": 3, "ends": [[]],
        "currentEndIndex": 4, "savedAtEpochMillis": 1,
    }),
    json.dumps({
        "distanceMeters": 18, "arrowsPerEnd": 3,
        "ends": [[{"x": 50, "y": 50, "ringValue": "Q"}]],
        "currentEndIndex": 0, "savedAtEpochMillis": 1,
    }),
    json.dumps({
        "distanceMeters": 18, "arrowsPerEnd": 3,
        "ends": [[{"x": 50, "y": 50, "ringValue": 9}] * 4],
        "currentEndIndex": 0, "savedAtEpochMillis": 1,
    }),
    '{"distanceMeters": 18, "arrowsPerEnd": 3, "ends": [[]], '
    '"currentEndIndex": 0, "savedAtEpochMillis": Infinity}',
    '{"distanceMeters": Infinity, "arrowsPerEnd": 3, "ends": [[]], '
    '"currentEndIndex": 0, "savedAtEpochMillis": 1}',
    '{"distanceMeters": 18, "arrowsPerEnd": 3, "ends": [[]], '
    '"currentEndIndex": NaN, "savedAtEpochMillis": 1}',
])
def test_corrupt_snapshot_is_discarded(clock, raw):
    store = InMemorySnapshotStore(raw=raw, now_ms=clock)

    assert store.load() is None
    assert store.raw is None


def test_decode_raises_persistence_corrupt():
    with pytest.raises(PersistenceCorrupt):
        SnapshotStore.decode("{}")


def test_unsupported_schema_version_is_corrupt():
    data = PersistedSnapshot(sample_state(), 5).to_dict()
    data["schemaVersion"] = 99

    with pytest.raises(PersistenceCorrupt):
        SnapshotStore.decode(json.dumps(data))


# ---------------------------------------------------------
# Clear
# ---------------------------------------------------------

def test_clear(store):
    store.save(sample_state())

    store.clear()
    store.clear()

    assert store.load() is None


# ---------------------------------------------------------
# JSON file store
# ---------------------------------------------------------

def test_file_store_roundtrip(tmp_path, clock):
    path = tmp_path / "nested" / "state.json"
    store = JsonFileSnapshotStore(path, now_ms=clock)

    store.save(sample_state())

    assert path.exists()
    assert JsonFileSnapshotStore(path, now_ms=clock).load().state == sample_state()


def test_file_store_missing_file(tmp_path, clock):
    store = JsonFileSnapshotStore(tmp_path / "none.json", now_ms=clock)

    assert store.load() is None
    store.clear()


def test_file_store_corrupt_file_is_removed(tmp_path, clock):
    path = tmp_path / "state.json"
    path.write_bytes(b"\xff\xfe garbage")
    store = JsonFileSnapshotStore(path, now_ms=clock)

    assert store.load() is None
    assert not path.exists()


def test_file_store_stale_file_is_removed(tmp_path, clock):
    path = tmp_path / "state.json"
    store = JsonFileSnapshotStore(path, now_ms=clock)
    store.save(sample_state())

    clock.advance_minutes(45)

    assert store.load() is None
    assert not path.exists()


def test_file_store_write_leaves_no_temp_file(tmp_path, clock):
    path = tmp_path / "state.json"
    store = JsonFileSnapshotStore(path, now_ms=clock)

    store.save(ss.start(18, 3))
    store.save(sample_state())

    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


def test_file_store_failed_write_keeps_previous_snapshot(tmp_path, clock, monkeypatch):
    path = tmp_path / "state.json"
    store = JsonFileSnapshotStore(path, now_ms=clock)
    store.save(sample_state())

    def fail_replace(self, target):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "replace", fail_replace)

    with pytest.raises(OSError):
        store.save(ss.start(30, 6))

    monkeypatch.undo()
    assert store.load().state == sample_state()
