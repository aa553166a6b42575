from fastapi import APIRouter
from pydantic import BaseModel, Field

from schoolportal.core.modules.user.models import UserType, UserView
from schoolportal.web.deps import AppDep, AuthTokenDep
from schoolportal.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


class CreateUserRequest(BaseModel):
    """Request to create a new account."""

    username: str = Field(..., min_length=1, description="Username for the new user")
    password: str = Field(..., min_length=1, description="Password for the new user")
    user_type: UserType = Field(..., description="Role of the new user")
    name: str = Field(..., min_length=1, description="First name")
    surname: str = Field(..., min_length=1, description="Last name")
    email: str | None = Field(None, description="Contact email")


@router.post(
    "/users",
    summary="Create new user",
    description="Create a new account of any role. Only accessible by admin users.",
    operation_id="createUser",
    responses={
        201: {"description": "User created successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        400: {"model": ErrorResponse, "description": "Invalid request"},
    },
    status_code=201,
)
async def create_user(create_data: CreateUserRequest, app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.create_user(
        auth_token,
        create_data.username,
        create_data.password,
        create_data.user_type,
        create_data.name,
        create_data.surname,
        create_data.email,
    )
