import pytest
from pydantic import ValidationError

from picker_core.schemas import CURRENT_VERSION, Group, HistoryEntry, Root, Student


def test_root_serializes_with_stored_field_names() -> None:
    root = Root(
        groups={"g1": Group(id="g1", title="Class A", students=[Student(id="s1", name="Al")])},
        current_group_id="g1",
    )

    payload = root.to_dict()

    assert payload["currentGroupId"] == "g1"
    assert payload["version"] == CURRENT_VERSION
    assert "current_group_id" not in payload
    assert Root.from_json(root.to_json()).to_dict() == payload


def test_root_loads_from_stored_dict() -> None:
    data: dict[str, object] = {
        "groups": {
            "g1": {
                "id": "g1",
                "title": "Class A",
                "cycles": 2,
                "students": [{"id": "s1", "name": "Al", "picks": [1000, 2000]}],
                "history": [{"id": "s1", "name": "Al", "timestamp": 2000}],
            }
        },
        "currentGroupId": "g1",
        "version": 5,
    }

    root = Root.from_dict(data)

    assert root.to_dict() == data
    group = root.current_group()
    assert group is not None
    assert group.students[0].pick_count == 2


def test_group_cycles_are_clamped() -> None:
    assert Group(id="g", cycles=0).cycles == 1
    assert Group(id="g", cycles=-4).cycles == 1
    assert Group(id="g", cycles=None).cycles == 1
    assert Group(id="g", cycles=3).cycles == 3
    assert Group.from_dict({"id": "g", "cycles": "0"}).cycles == 1
    assert Group.from_dict({"id": "g", "cycles": "-2"}).cycles == 1
    assert Group.from_dict({"id": "g", "cycles": "4"}).cycles == 4


def test_group_drops_duplicate_student_ids() -> None:
    group = Group(
        id="g",
        students=[
            Student(id="s1", name="First"),
            Student(id="s1", name="Second"),
            Student(id="s2", name="Other"),
        ],
    )

    assert [s.name for s in group.students] == ["First", "Other"]


def test_current_group_missing_returns_none() -> None:
    root = Root(groups={}, current_group_id="nope")

    assert root.current_group() is None


def test_history_entry_requires_timestamp() -> None:
    with pytest.raises(ValidationError):
        _ = HistoryEntry.from_dict({"id": "s1", "name": "Al"})
