from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from schoolportal.core.modules.school.models import Grade, SchoolClass, Subject
from schoolportal.core.pagination import PaginationResult
from schoolportal.web.deps import AppDep, AuthTokenDep
from schoolportal.web.openapi import ErrorResponse

router = APIRouter(tags=["school"])


class CreateSubjectRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Subject name")
    teacher_ids: list[UUID] = Field(default_factory=list, description="Teachers of the subject")


@router.get(
    "/grades",
    summary="List grades",
    operation_id="listGrades",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_grades(app: AppDep, auth_token: AuthTokenDep) -> list[Grade]:
    return await app.list_grades(auth_token)


@router.get(
    "/classes",
    summary="List classes",
    operation_id="listClasses",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_classes(app: AppDep, auth_token: AuthTokenDep) -> list[SchoolClass]:
    return await app.list_classes(auth_token)


@router.get(
    "/subjects",
    summary="List subjects",
    operation_id="listSubjects",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_subjects(
    app: AppDep,
    auth_token: AuthTokenDep,
    search: Annotated[str | None, Query(description="Case-insensitive name filter")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 10,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[Subject]:
    return await app.list_subjects(auth_token, search, limit, offset)


@router.post(
    "/subjects",
    summary="Create subject",
    description="Create a subject. Only accessible by admin users.",
    operation_id="createSubject",
    status_code=201,
    responses={
        201: {"description": "Subject created"},
        400: {"model": ErrorResponse, "description": "Invalid request"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not allowed to create subjects"},
    },
)
async def create_subject(request: CreateSubjectRequest, app: AppDep, auth_token: AuthTokenDep) -> Subject:
    return await app.create_subject(auth_token, request.name, request.teacher_ids)
