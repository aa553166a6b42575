"""School catalog: grades, classes and subjects."""

from uuid import UUID

from pydantic import Field

from schoolportal.core.db import MongoModel


class Grade(MongoModel):
    """Year level, e.g. name '5', level 5."""

    name: str
    level: int


class SchoolClass(MongoModel):
    """Class group within a grade."""

    name: str  # e.g. "5A"
    capacity: int
    grade_id: UUID
    supervisor_id: UUID | None = None  # Teacher in charge


class Subject(MongoModel):
    name: str
    teacher_ids: list[UUID] = Field(default_factory=list)
