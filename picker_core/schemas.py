from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Mapping
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

CURRENT_VERSION = 5
DEFAULT_GROUP_TITLE = "Default Group"

TBaseSchema = TypeVar("TBaseSchema", bound="BaseSchema")


def new_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class BaseSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_json(cls: type[TBaseSchema], data: str) -> TBaseSchema:
        return cls.model_validate_json(data)

    @classmethod
    def from_dict(cls: type[TBaseSchema], data: Mapping[str, object]) -> TBaseSchema:
        return cls.model_validate(data)


class Student(BaseSchema):
    id: str
    name: str
    picks: list[int] = Field(default_factory=list)

    @property
    def pick_count(self) -> int:
        return len(self.picks)


class HistoryEntry(BaseSchema):
    id: str
    name: str
    timestamp: int


class Group(BaseSchema):
    id: str
    title: str = DEFAULT_GROUP_TITLE
    cycles: int = 1
    students: list[Student] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)

    @field_validator("cycles", mode="before")
    @classmethod
    def default_cycles(cls, value: object) -> object:
        if value is None:
            return 1
        if isinstance(value, float):
            return int(value)
        return value

    @field_validator("cycles")
    @classmethod
    def clamp_cycles(cls, value: int) -> int:
        return max(1, value)

    @model_validator(mode="after")
    def drop_duplicate_students(self) -> "Group":
        seen: set[str] = set()
        unique: list[Student] = []
        for student in self.students:
            if student.id in seen:
                logger.warning(f"Dropping duplicate student id {student.id} in group {self.id}")
                continue
            seen.add(student.id)
            unique.append(student)
        if len(unique) != len(self.students):
            self.students = unique
        return self

    def find_student(self, student_id: str) -> Student | None:
        for student in self.students:
            if student.id == student_id:
                return student
        return None


class Root(BaseSchema):
    groups: dict[str, Group] = Field(default_factory=dict)
    current_group_id: str = Field(alias="currentGroupId")
    version: int = CURRENT_VERSION

    def current_group(self) -> Group | None:
        return self.groups.get(self.current_group_id)
