"""
Picker store: group and student management, pick history and selection.

Every operation reloads the whole record from the backend, works on it in
memory and writes the whole record back. Nothing is cached between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from picker_core.schemas import Group, HistoryEntry, Root, Student, new_id, now_ms
from picker_core.selection import (
    IndexProvider,
    SelectionStrategy,
    make_strategy,
    secure_random_index,
)

from .backends import KeyValueBackend
from .migrations import STORAGE_KEY, IdFactory, load_root, save_root

logger = logging.getLogger(__name__)


def _clear_counts(group: Group) -> None:
    for student in group.students:
        student.picks = []
    group.history = []


def _append_pick(group: Group, student: Student, timestamp: int) -> HistoryEntry:
    student.picks.append(timestamp)
    entry = HistoryEntry(id=student.id, name=student.name, timestamp=timestamp)
    group.history.append(entry)
    return entry.model_copy()


class PickerStore:
    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        storage_key: str = STORAGE_KEY,
        policy: str = "cycle_limited",
        index_provider: IndexProvider | None = None,
        id_factory: IdFactory | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.backend: KeyValueBackend = backend
        self.storage_key: str = storage_key
        self.strategy: SelectionStrategy = make_strategy(policy)
        self.index_provider: IndexProvider = index_provider or secure_random_index
        self.id_factory: IdFactory = id_factory or new_id
        self.clock: Callable[[], int] = clock or now_ms

    def load(self) -> Root:
        return load_root(self.backend, self.storage_key, self.id_factory)

    def save(self, root: Root) -> None:
        save_root(self.backend, root, self.storage_key)

    # Groups

    def current_group(self) -> Group | None:
        return self.load().current_group()

    def all_groups(self) -> list[Group]:
        return list(self.load().groups.values())

    def create_group(self, title: str, cycles: int = 1) -> Group:
        root = self.load()
        group_id = self.id_factory()
        group = Group(id=group_id, title=title.strip(), cycles=max(1, cycles))
        root.groups[group_id] = group
        self.save(root)
        return group

    def delete_group(self, group_id: str) -> bool:
        root = self.load()
        if len(root.groups) <= 1:
            logger.warning("Refusing to delete the last remaining group")
            return False
        if group_id not in root.groups:
            return False
        del root.groups[group_id]
        if root.current_group_id == group_id:
            root.current_group_id = next(iter(root.groups))
        self.save(root)
        return True

    def set_current_group(self, group_id: str) -> bool:
        root = self.load()
        if group_id not in root.groups:
            return False
        root.current_group_id = group_id
        self.save(root)
        return True

    def rename_group(self, group_id: str, title: str) -> bool:
        root = self.load()
        group = root.groups.get(group_id)
        if group is None:
            return False
        group.title = title.strip()
        self.save(root)
        return True

    def copy_group(self, source_id: str, title: str) -> Group | None:
        """Duplicate a group's roster under ``title``.

        Students get fresh ids and empty pick lists; the cycle cap is copied
        and the history starts empty.
        """
        root = self.load()
        source = root.groups.get(source_id)
        if source is None:
            return None
        group_id = self.id_factory()
        group = Group(
            id=group_id,
            title=title.strip(),
            cycles=source.cycles,
            students=[Student(id=self.id_factory(), name=s.name) for s in source.students],
        )
        root.groups[group_id] = group
        self.save(root)
        return group

    def set_cycles(self, group_id: str, cycles: int) -> bool:
        root = self.load()
        group = root.groups.get(group_id)
        if group is None:
            return False
        group.cycles = max(1, cycles)
        self.save(root)
        return True

    def current_cycles(self) -> int:
        group = self.current_group()
        return group.cycles if group is not None else 1

    # Students in the current group

    def students(self) -> list[Student]:
        group = self.current_group()
        return list(group.students) if group is not None else []

    def history(self) -> list[HistoryEntry]:
        group = self.current_group()
        return list(group.history) if group is not None else []

    def add_student(self, name: str) -> Student | None:
        root = self.load()
        group = root.current_group()
        if group is None:
            return None
        student = Student(id=self.id_factory(), name=name.strip())
        group.students.append(student)
        self.save(root)
        return student

    def delete_student(self, student_id: str) -> bool:
        root = self.load()
        group = root.current_group()
        if group is None:
            return False
        remaining = [s for s in group.students if s.id != student_id]
        if len(remaining) == len(group.students):
            return False
        group.students = remaining
        self.save(root)
        return True

    def rename_student(self, student_id: str, name: str) -> bool:
        root = self.load()
        group = root.current_group()
        if group is None:
            return False
        student = group.find_student(student_id)
        if student is None:
            return False
        student.name = name.strip()
        for entry in group.history:
            if entry.id == student_id:
                entry.name = student.name
        self.save(root)
        return True

    def clear_all(self) -> bool:
        root = self.load()
        group = root.current_group()
        if group is None:
            return False
        group.students = []
        group.history = []
        self.save(root)
        return True

    def reset_counts(self) -> bool:
        root = self.load()
        group = root.current_group()
        if group is None:
            return False
        _clear_counts(group)
        self.save(root)
        return True

    # Picks

    def record_pick(self, student_id: str) -> HistoryEntry | None:
        root = self.load()
        group = root.current_group()
        if group is None:
            return None
        student = group.find_student(student_id)
        if student is None:
            return None
        entry = _append_pick(group, student, self.clock())
        self.save(root)
        return entry

    def pick(self) -> HistoryEntry | None:
        """Select the next student with the configured policy and record it."""
        root = self.load()
        group = root.current_group()
        if group is None:
            return None
        decision = self.strategy.select(group, self.index_provider)
        if decision is None:
            return None
        if decision.reset_first:
            _clear_counts(group)
        student = group.find_student(decision.student_id)
        if student is None:
            return None
        entry = _append_pick(group, student, self.clock())
        self.save(root)
        return entry
