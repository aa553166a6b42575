import re
from typing import Any, Protocol

from pymongo.asynchronous.database import AsyncDatabase

from schoolportal.core.modules.school.models import Grade, SchoolClass, Subject


class SchoolStore(Protocol):
    async def create_indexes(self) -> None: ...

    async def list_grades(self) -> list[Grade]:
        """All grades ordered by level."""
        ...

    async def list_classes(self) -> list[SchoolClass]:
        """All classes ordered by name."""
        ...

    async def list_subjects(self, search: str | None, limit: int, offset: int) -> list[Subject]:
        """Subjects ordered by name, optionally matching search case-insensitively."""
        ...

    async def count_subjects(self, search: str | None) -> int: ...

    async def has_subject_named(self, name: str) -> bool: ...

    async def insert_subject(self, subject: Subject) -> None: ...


def subject_filter(search: str | None) -> dict[str, Any]:
    if not search:
        return {}
    return {"name": {"$regex": re.escape(search), "$options": "i"}}


class MongoSchoolStore:
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._grades = database.get_collection("grades")
        self._classes = database.get_collection("classes")
        self._subjects = database.get_collection("subjects")

    async def create_indexes(self) -> None:
        await self._grades.create_index([("level", 1)], unique=True)
        await self._classes.create_index([("name", 1)], unique=True)
        await self._subjects.create_index([("name", 1)], unique=True)

    async def list_grades(self) -> list[Grade]:
        return await Grade.list_cursor(self._grades.find().sort("level", 1))

    async def list_classes(self) -> list[SchoolClass]:
        return await SchoolClass.list_cursor(self._classes.find().sort("name", 1))

    async def list_subjects(self, search: str | None, limit: int, offset: int) -> list[Subject]:
        cursor = self._subjects.find(subject_filter(search)).sort("name", 1).skip(offset).limit(limit)
        return await Subject.list_cursor(cursor)

    async def count_subjects(self, search: str | None) -> int:
        return await self._subjects.count_documents(subject_filter(search))

    async def has_subject_named(self, name: str) -> bool:
        return await self._subjects.count_documents({"name": name}, limit=1) > 0

    async def insert_subject(self, subject: Subject) -> None:
        await self._subjects.insert_one(subject.to_mongo())
