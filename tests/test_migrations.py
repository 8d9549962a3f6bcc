import itertools
import json

import pytest

from picker_core.schemas import CURRENT_VERSION, DEFAULT_GROUP_TITLE
from store.backends import MemoryBackend
from store.migrations import STORAGE_KEY, load_root, migrate_record
from store.repository import PickerStore


def _ids(prefix: str = "id"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


def _stored(backend: MemoryBackend) -> dict[str, object]:
    raw = backend.get(STORAGE_KEY)
    assert raw is not None
    return json.loads(raw)


def test_empty_store_initializes_default_group() -> None:
    backend = MemoryBackend()

    root = load_root(backend, id_factory=_ids())

    assert list(root.groups) == ["id-1"]
    group = root.current_group()
    assert group is not None
    assert group.title == DEFAULT_GROUP_TITLE
    assert group.cycles == 1
    assert root.version == CURRENT_VERSION
    assert _stored(backend)["currentGroupId"] == "id-1"


def test_flat_v1_record_is_wrapped_into_default_group() -> None:
    legacy = {"students": [{"id": "a", "name": "Al", "picks": []}], "history": []}
    backend = MemoryBackend({STORAGE_KEY: json.dumps(legacy)})

    root = load_root(backend, id_factory=_ids("g"))

    assert root.version == CURRENT_VERSION
    assert list(root.groups) == ["g-1"]
    group = root.current_group()
    assert group is not None
    assert group.cycles == 1
    assert [(s.id, s.name) for s in group.students] == [("a", "Al")]
    stored = _stored(backend)
    assert stored["version"] == CURRENT_VERSION
    assert "students" not in stored


def test_explicit_version_1_is_migrated_and_picks_default() -> None:
    legacy = {"version": 1, "students": [{"id": "a", "name": "Al"}]}
    backend = MemoryBackend({STORAGE_KEY: json.dumps(legacy)})

    root = load_root(backend, id_factory=_ids())

    group = root.current_group()
    assert group is not None
    assert group.students[0].picks == []
    assert group.history == []


def test_v3_group_without_cycles_gets_default() -> None:
    legacy = {
        "groups": {
            "g1": {
                "id": "g1",
                "title": "Maths",
                "students": [{"id": "s1", "name": "Bo", "picks": [5]}],
                "history": [{"id": "s1", "name": "Bo", "timestamp": 5}],
            },
            "g2": {"id": "g2", "title": "Art", "cycles": 3, "students": [], "history": []},
        },
        "currentGroupId": "g1",
        "version": 3,
    }
    backend = MemoryBackend({STORAGE_KEY: json.dumps(legacy)})

    root = load_root(backend)

    assert root.version == CURRENT_VERSION
    assert root.groups["g1"].cycles == 1
    assert root.groups["g2"].cycles == 3
    assert root.groups["g1"].title == "Maths"
    assert root.groups["g1"].students[0].picks == [5]
    assert root.current_group_id == "g1"
    stored = _stored(backend)
    assert stored["version"] == CURRENT_VERSION
    assert stored["groups"]["g1"]["cycles"] == 1


@pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", '{"version": "five"}', '"text"'])
def test_corrupt_record_resets_and_persists(raw: str) -> None:
    backend = MemoryBackend({STORAGE_KEY: raw})

    root = load_root(backend, id_factory=_ids())

    assert list(root.groups) == ["id-1"]
    assert root.groups["id-1"].title == DEFAULT_GROUP_TITLE
    assert _stored(backend)["currentGroupId"] == "id-1"


def test_invalid_group_shape_resets() -> None:
    record = {
        "groups": {"g1": {"id": "g1", "students": [{"name": "no id"}]}},
        "currentGroupId": "g1",
        "version": 5,
    }
    backend = MemoryBackend({STORAGE_KEY: json.dumps(record)})

    root = load_root(backend, id_factory=_ids())

    assert list(root.groups) == ["id-1"]


def test_stale_current_group_is_repaired() -> None:
    record = {
        "groups": {"g1": {"id": "g1", "title": "A", "cycles": 1, "students": [], "history": []}},
        "currentGroupId": "gone",
        "version": 5,
    }
    backend = MemoryBackend({STORAGE_KEY: json.dumps(record)})

    root = load_root(backend)

    assert root.current_group_id == "g1"
    assert _stored(backend)["currentGroupId"] == "g1"


def test_missing_groups_gets_generated_current_id() -> None:
    backend = MemoryBackend({STORAGE_KEY: json.dumps({"version": 5})})

    root = load_root(backend, id_factory=_ids("fresh"))

    assert root.groups == {}
    assert root.current_group_id == "fresh-1"
    assert root.current_group() is None


def test_current_record_is_not_rewritten() -> None:
    record = {
        "groups": {"g1": {"id": "g1", "title": "A", "cycles": 2, "students": [], "history": []}},
        "currentGroupId": "g1",
        "version": 5,
    }
    raw = json.dumps(record)
    backend = MemoryBackend({STORAGE_KEY: raw})

    _ = load_root(backend)

    assert backend.get(STORAGE_KEY) == raw


def test_load_is_idempotent() -> None:
    legacy = {"students": [{"id": "a", "name": "Al", "picks": [1]}], "history": []}
    backend = MemoryBackend({STORAGE_KEY: json.dumps(legacy)})

    first = load_root(backend, id_factory=_ids())
    second = load_root(backend, id_factory=_ids("other"))

    assert first.to_dict() == second.to_dict()


def test_migrate_record_does_not_mutate_input() -> None:
    record = {"groups": {"g1": {"id": "g1", "title": "A"}}, "currentGroupId": "g1", "version": 2}

    migrated, changed = migrate_record(record)

    assert changed is True
    assert migrated["groups"]["g1"]["cycles"] == 1
    assert "cycles" not in record["groups"]["g1"]
    assert record["version"] == 2


@pytest.mark.parametrize("stored_cycles", ["0", "-3"])
def test_v3_group_with_string_cycles_is_clamped(stored_cycles: str) -> None:
    legacy = {
        "groups": {
            "g1": {"id": "g1", "title": "Maths", "cycles": stored_cycles, "students": [], "history": []}
        },
        "currentGroupId": "g1",
        "version": 3,
    }
    store = PickerStore(MemoryBackend({STORAGE_KEY: json.dumps(legacy)}))

    assert store.current_cycles() == 1
    stored = json.loads(store.backend.get(STORAGE_KEY) or "{}")
    assert stored["groups"]["g1"]["cycles"] == 1


def test_migrate_record_leaves_current_record_groups_untouched() -> None:
    record = {"groups": {"g1": {"title": "A", "cycles": 2}}, "currentGroupId": "g1", "version": 5}

    migrated, changed = migrate_record(record)

    assert changed is True
    assert migrated["groups"]["g1"]["id"] == "g1"
    assert "id" not in record["groups"]["g1"]
    assert migrated["groups"] is not record["groups"]


def test_migrate_record_rejects_non_mapping() -> None:
    with pytest.raises(ValueError):
        _ = migrate_record(["not", "a", "record"])
