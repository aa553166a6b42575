"""Browser entry points that answer with redirects."""

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from schoolportal.web.deps import AppDep, OptionalAuthTokenDep

router = APIRouter(tags=["pages"])


@router.get(
    "/",
    summary="Landing redirect",
    description="Redirect to the caller's area (/admin, /teacher, /student, /parent) or to /sign-in.",
    operation_id="landing",
    status_code=307,
    response_class=RedirectResponse,
    responses={307: {"description": "Redirect to the landing area"}},
)
async def landing(app: AppDep, auth_token: OptionalAuthTokenDep) -> RedirectResponse:
    destination = await app.get_landing(auth_token)
    return RedirectResponse(destination.value, status_code=307)
