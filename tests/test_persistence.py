"""Tests for scene serialization and storage."""

import json
import logging

import pytest

from roomviewer.scene.bounds import AABB
from roomviewer.scene.registry import PlacedObject, PlacementRegistry
from roomviewer.scene.room import RoomVolume
from roomviewer.scene.transform import Transform3D
from roomviewer.storage import persistence
from roomviewer.storage.persistence import SceneEntry, SceneStorage, SerializedScene
from roomviewer.storage.store import JsonFileStore, MemoryPayloadStore, MemoryStore, PayloadStore


@pytest.fixture
def payloads() -> MemoryPayloadStore:
    return MemoryPayloadStore()


@pytest.fixture
def registry(payloads) -> PlacementRegistry:
    """Registry with two objects whose payloads are stored."""
    registry = PlacementRegistry()
    for name, payload, transform in [
        ("chair", b"chair-bytes", Transform3D(position=(1.0, 0.0, 2.0), rotation=(0.0, 0.5, 0.0))),
        ("table", b"table-bytes", Transform3D(position=(-3.0, 0.0, 4.0), scale=(2.0, 1.0, 2.0))),
    ]:
        obj = PlacedObject(
            name=name,
            transform=transform,
            bounds_local=AABB.from_extents([1.0, 1.0, 1.0]),
            payload_ref=payloads.put(payload, "glb"),
            file_type="glb",
        )
        registry.add(obj)
    return registry


class TestSave:
    """Test serializing a registry."""

    def test_save_entries(self, registry):
        scene = persistence.save(registry)

        assert [e.id for e in scene.entries] == [i for i, _ in registry.list()]
        assert scene.entries[0].name == "chair"
        assert scene.entries[0].rotation == (0.0, 0.5, 0.0)
        assert scene.entries[1].scale == (2.0, 1.0, 2.0)

    def test_save_records_room(self, registry):
        scene = persistence.save(registry, RoomVolume())
        assert scene.room == (20.0, 10.0, 20.0)

    def test_json_format(self, registry):
        data = json.loads(persistence.dumps(persistence.save(registry)))

        assert data["version"] == "1.0"
        assert len(data["entries"]) == 2
        entry = data["entries"][0]
        for key in ("id", "position", "rotation", "scale", "payload_ref"):
            assert key in entry
        assert entry["position"] == [1.0, 0.0, 2.0]


class TestRoundTrip:
    """Test save -> load reconstructs the same scene."""

    def test_round_trip(self, registry, payloads):
        text = persistence.dumps(persistence.save(registry))
        requests = persistence.load(persistence.loads(text), payloads)

        original = dict(registry.list())
        assert [r.id for r in requests] == list(original)
        for request in requests:
            obj = original[request.id]
            assert request.transform.is_close(obj.transform)
            assert request.payload == payloads.get(obj.payload_ref)
            assert request.name == obj.name

    def test_round_trip_preserves_lock(self, registry, payloads):
        object_id, _ = registry.list()[0]
        registry.set_locked(object_id, True)

        requests = persistence.load(persistence.save(registry), payloads)

        assert requests[0].locked is True
        assert requests[1].locked is False

    def test_dropped_payload_reference_skipped(self, registry, payloads, caplog):
        data = json.loads(persistence.dumps(persistence.save(registry)))
        dropped_id = data["entries"][0]["id"]
        del data["entries"][0]["payload_ref"]

        with caplog.at_level(logging.WARNING):
            requests = persistence.load(persistence.loads(json.dumps(data)), payloads)

        assert [r.id for r in requests] == [data["entries"][1]["id"]]
        assert dropped_id in caplog.text

    def test_unresolvable_payload_skipped(self, registry, payloads):
        scene = persistence.save(registry)
        scene.entries[1].payload_ref = "deadbeefdeadbeef"

        requests = persistence.load(scene, payloads)

        assert [r.id for r in requests] == [scene.entries[0].id]

    def test_duplicate_entry_skipped(self, registry, payloads):
        scene = persistence.save(registry)
        scene.entries.append(scene.entries[0].model_copy())

        requests = persistence.load(scene, payloads)

        assert len(requests) == 2


class TestLoads:
    """Test decoding damaged scene documents."""

    def test_invalid_json(self):
        scene = persistence.loads("{not json")
        assert scene.entries == []

    def test_not_an_object(self):
        assert persistence.loads("[1, 2, 3]").entries == []

    def test_entries_not_a_list(self):
        assert persistence.loads('{"entries": 5}').entries == []

    def test_malformed_entry_skipped(self):
        text = json.dumps({
            "entries": [
                {"id": "obj_1", "position": [0, 0, 0], "rotation": [0, 0, 0], "payload_ref": "a"},
                {"id": "obj_2", "position": "left"},
                {"position": [0, 0, 0], "rotation": [0, 0, 0]},
            ]
        })

        scene = persistence.loads(text)

        assert [e.id for e in scene.entries] == ["obj_1"]

    def test_non_finite_entry_skipped(self):
        text = json.dumps({
            "entries": [
                {"id": "obj_1", "position": [float("inf"), 0, 0], "rotation": [0, 0, 0]},
                {"id": "obj_2", "position": [0, 0, 0], "rotation": [0, float("nan"), 0]},
                {"id": "obj_3", "position": [1, 0, 1], "rotation": [0, 0, 0]},
            ]
        })

        scene = persistence.loads(text)

        assert [e.id for e in scene.entries] == ["obj_3"]

    def test_malformed_header_keeps_entries(self):
        text = json.dumps({
            "version": 3,
            "room": "big",
            "entries": [{"id": "obj_1", "position": [0, 0, 0], "rotation": [0, 0, 0]}],
        })

        scene = persistence.loads(text)

        assert [e.id for e in scene.entries] == ["obj_1"]


class TestSceneStorage:
    """Test SceneStorage with real stores."""

    def test_write_and_read(self, tmp_path, registry, payloads):
        storage = SceneStorage(JsonFileStore(tmp_path / "store.json"), payloads, key="scene")

        assert storage.write(registry, RoomVolume()) is True
        requests = storage.read()

        assert [r.id for r in requests] == [i for i, _ in registry.list()]

    def test_read_empty(self, payloads):
        assert SceneStorage(MemoryStore(), payloads).read() == []

    def test_write_failure_is_logged(self, registry, payloads, caplog):
        class FullStore(MemoryStore):
            def set_item(self, key, value):
                raise OSError("quota exceeded")

        storage = SceneStorage(FullStore(), payloads)

        with caplog.at_level(logging.WARNING):
            assert storage.write(registry) is False
        assert "quota exceeded" in caplog.text

    def test_clear(self, registry, payloads):
        store = MemoryStore()
        storage = SceneStorage(store, payloads, key="scene")
        storage.write(registry)

        storage.clear()

        assert store.get_item("scene") is None


class TestStores:
    """Test key-value and payload stores."""

    def test_json_file_store(self, tmp_path):
        store = JsonFileStore(tmp_path / "nested" / "store.json")
        assert store.get_item("a") is None

        store.set_item("a", "1")
        store.set_item("b", "2")
        store.remove_item("a")

        reopened = JsonFileStore(tmp_path / "nested" / "store.json")
        assert reopened.get_item("a") is None
        assert reopened.get_item("b") == "2"

    def test_json_file_store_corrupt_file(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{broken")

        store = JsonFileStore(path)

        assert store.get_item("a") is None
        store.set_item("a", "1")
        assert store.get_item("a") == "1"

    def test_payload_store(self, tmp_path):
        store = PayloadStore(tmp_path / "payloads")

        ref = store.put(b"model-bytes", "glb")

        assert ref in store
        assert store.put(b"model-bytes", "glb") == ref
        assert store.get(ref) == b"model-bytes"
        assert (tmp_path / "payloads" / f"{ref}.glb").exists()

    def test_payload_store_missing(self, tmp_path):
        store = PayloadStore(tmp_path / "payloads")
        assert store.get("0123456789abcdef") is None
        assert store.get(None) is None
        assert store.get("../escape") is None

    def test_payload_store_discard(self, tmp_path):
        store = PayloadStore(tmp_path)
        ref = store.put(b"x", "stl")

        assert store.discard(ref) is True
        assert store.discard(ref) is False
        assert ref not in store

    def test_scene_entry_transform(self):
        entry = SceneEntry(id="obj_1", position=(1.0, 2.0, 3.0), rotation=(0.0, 0.1, 0.0))
        assert entry.transform == Transform3D(position=(1.0, 2.0, 3.0), rotation=(0.0, 0.1, 0.0))

    def test_serialized_scene_defaults(self):
        scene = SerializedScene()
        assert scene.entries == []
        assert scene.room is None
