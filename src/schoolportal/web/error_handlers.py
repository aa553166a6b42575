import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from schoolportal.core.modules.access.landing import Landing
from schoolportal.errors import AccessDeniedError, AuthenticationError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def is_api_request(request: Request) -> bool:
    """API routes answer with JSON errors; page routes redirect."""
    return request.url.path.startswith("/api/")


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"error": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


def redirect_to_sign_in() -> RedirectResponse:
    return RedirectResponse(Landing.UNAUTHENTICATED.value, status_code=307)


async def user_error_handler(request: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, AuthenticationError | AccessDeniedError) and not is_api_request(request):
        return redirect_to_sign_in()

    if isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500) without leaking details."""
    logger.exception("unexpected_error", path=request.url.path, method=request.method, error=str(exc))
    if not is_api_request(request):
        return redirect_to_sign_in()
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
