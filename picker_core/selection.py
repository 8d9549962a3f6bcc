from __future__ import annotations

import logging
import os
import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from typing_extensions import override

from .schemas import Group, Student

logger = logging.getLogger(__name__)

IndexProvider: TypeAlias = Callable[[int], int]


def secure_random_index(n: int) -> int:
    """Uniform index in ``[0, n)`` drawn from the OS CSPRNG.

    A 32-bit value is reduced modulo ``n``; the bias this introduces is
    negligible for roster sizes. Falls back to ``random.random`` when the
    platform has no OS randomness source.
    """
    if n < 1:
        raise ValueError("pool size must be positive")
    try:
        value = int.from_bytes(os.urandom(4), "little")
    except NotImplementedError:
        return int(random.random() * n)
    return value % n


def seeded_index_provider(seed: int | random.Random | None = None) -> IndexProvider:
    rng = seed if isinstance(seed, random.Random) else random.Random(seed)

    def _provider(n: int) -> int:
        if n < 1:
            raise ValueError("pool size must be positive")
        return rng.randrange(n)

    return _provider


@dataclass(frozen=True)
class PickDecision:
    student_id: str
    reset_first: bool = False


def _draw(pool: list[Student], index_provider: IndexProvider) -> Student:
    return pool[index_provider(len(pool))]


class SelectionStrategy(ABC):
    name: str = ""

    @abstractmethod
    def select(self, group: Group, index_provider: IndexProvider) -> PickDecision | None:
        raise NotImplementedError


class FairSelection(SelectionStrategy):
    """Uniform draw among the students with the fewest picks."""

    name = "fair"

    @override
    def select(self, group: Group, index_provider: IndexProvider) -> PickDecision | None:
        students = group.students
        if not students:
            return None
        min_count = min(student.pick_count for student in students)
        pool = [student for student in students if student.pick_count == min_count]
        chosen = _draw(pool, index_provider)
        logger.debug(f"Fair pick from pool of {len(pool)} at count {min_count}: {chosen.id}")
        return PickDecision(student_id=chosen.id)


class CycleLimitedSelection(SelectionStrategy):
    """Pure random draw among students still under the group's cycle cap.

    Once everyone has reached the cap the group's counts and history are
    reset and the draw is made among all students.
    """

    name = "cycle_limited"

    @override
    def select(self, group: Group, index_provider: IndexProvider) -> PickDecision | None:
        students = group.students
        if not students:
            return None
        cycles = max(1, group.cycles)
        counts = [student.pick_count for student in students]
        if all(count >= cycles for count in counts):
            return self._reset_and_draw(group, index_provider)

        eligible = [student for student in students if student.pick_count < cycles]
        if not eligible:
            return self._reset_and_draw(group, index_provider)

        chosen = _draw(eligible, index_provider)
        logger.debug(f"Cycle-limited pick from {len(eligible)} eligible: {chosen.id}")
        return PickDecision(student_id=chosen.id)

    def _reset_and_draw(self, group: Group, index_provider: IndexProvider) -> PickDecision:
        logger.info(f"All cycles exhausted in group {group.id}; resetting counts")
        chosen = _draw(list(group.students), index_provider)
        return PickDecision(student_id=chosen.id, reset_first=True)


POLICIES: dict[str, type[SelectionStrategy]] = {
    FairSelection.name: FairSelection,
    CycleLimitedSelection.name: CycleLimitedSelection,
}


def make_strategy(policy: str) -> SelectionStrategy:
    try:
        strategy_cls = POLICIES[policy]
    except KeyError:
        raise ValueError(f"Unknown selection policy: {policy}") from None
    return strategy_cls()
