from uuid import UUID

from schoolportal.core.core import Service
from schoolportal.core.modules.school.models import Grade, SchoolClass, Subject
from schoolportal.core.modules.user.models import UserType
from schoolportal.core.pagination import PaginationResult
from schoolportal.core.stores import Stores
from schoolportal.errors import ValidationError


class SchoolService(Service):
    """Read access to the school catalog."""

    def __init__(self, stores: Stores) -> None:
        super().__init__(stores)
        self._store = stores.school

    async def on_start(self) -> None:
        await self._store.create_indexes()

    async def list_grades(self) -> list[Grade]:
        return await self._store.list_grades()

    async def list_classes(self) -> list[SchoolClass]:
        return await self._store.list_classes()

    async def list_subjects(self, search: str | None = None, limit: int = 10, offset: int = 0) -> PaginationResult[Subject]:
        total = await self._store.count_subjects(search)
        items = await self._store.list_subjects(search, limit, offset)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def create_subject(self, name: str, teacher_ids: list[UUID]) -> Subject:
        """Create a subject taught by the given teachers."""
        name = name.strip()
        if not name:
            raise ValidationError("Subject name is required")
        if await self._store.has_subject_named(name):
            raise ValidationError(f"Subject '{name}' already exists")

        users = self.core.services.user
        for teacher_id in teacher_ids:
            if not users.has_user(teacher_id) or users.get_user(teacher_id).user_type != UserType.TEACHER:
                raise ValidationError(f"Teacher '{teacher_id}' not found")

        subject = Subject(name=name, teacher_ids=list(dict.fromkeys(teacher_ids)))
        await self._store.insert_subject(subject)
        return subject
