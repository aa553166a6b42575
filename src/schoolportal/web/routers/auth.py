from uuid import UUID

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, Field

from schoolportal.core.modules.session.models import SessionSummary
from schoolportal.core.modules.user.models import UserType, UserView
from schoolportal.web.deps import (
    SESSION_COOKIE,
    AppDep,
    AuthTokenDep,
    ConfigDep,
    OptionalAuthTokenDep,
    get_client_ip,
)
from schoolportal.web.openapi import ErrorResponse, SuccessResponse

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Authentication request."""

    username: str = Field(..., min_length=1, description="Username for authentication")
    password: str = Field(..., min_length=1, description="Password for authentication")
    user_type: UserType | None = Field(None, description="Role the login form is for; other roles are rejected")


class LoginResponse(BaseModel):
    """Authentication response."""

    user: UserView = Field(..., description="Authenticated user")
    token: str = Field(..., description="Session token for subsequent requests")


class SessionIdentity(BaseModel):
    id: UUID = Field(..., description="User ID")
    user_type: UserType = Field(..., description="Role of the account")
    username: str = Field(..., description="Username")


class SessionInfoResponse(BaseModel):
    """The caller's identity and active sessions."""

    user: SessionIdentity
    current_session_id: UUID = Field(..., description="ID of the session making this request")
    active_sessions: list[SessionSummary] = Field(..., description="Unexpired sessions, newest first")
    session_count: int = Field(..., description="Number of active sessions", ge=0)


class TerminateSessionsRequest(BaseModel):
    """Which of the caller's other sessions to end."""

    session_ids: list[UUID] | None = Field(None, description="Sessions to end; the current one is always kept")
    terminate_all: bool = Field(False, description="End every session except the current one")


class TerminateSessionsResponse(BaseModel):
    terminated_count: int = Field(..., description="Number of sessions ended", ge=0)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1, description="Email of the account")


class ForgotPasswordResponse(BaseModel):
    success: bool = Field(True, description="Always true")
    message: str = Field(..., description="Same text whether or not the email is known")


class VerifyResetCodeRequest(BaseModel):
    email: str = Field(..., min_length=1, description="Email the code was sent to")
    code: str = Field(..., min_length=1, description="6-digit verification code")


class VerifyResetCodeResponse(BaseModel):
    success: bool = Field(True, description="Always true")
    reset_token: str = Field(..., description="One-time token for reset-password")


class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1, description="Email of the account")
    reset_token: str = Field(..., min_length=1, description="Token from verify-reset-code")
    new_password: str = Field(..., min_length=1, description="New password")


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with username and password to receive a session token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(
    login_data: LoginRequest, request: Request, response: Response, app: AppDep, config: ConfigDep
) -> LoginResponse:
    """Authenticate user and create session."""
    user, session = await app.login(
        login_data.username,
        login_data.password,
        login_data.user_type,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    # Set cookie for browser-based clients
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.token,
        httponly=True,
        samesite="lax",
        secure=config.secure_cookies,
        expires=session.expires_at,
    )

    return LoginResponse(user=user, token=session.token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Destroy the current session. Succeeds even when there is no session.",
    operation_id="logout",
    responses={
        200: {"description": "Logged out"},
        500: {"model": ErrorResponse, "description": "Session store failure"},
    },
)
async def logout(app: AppDep, auth_token: OptionalAuthTokenDep, response: Response) -> SuccessResponse:
    await app.logout(auth_token)
    response.delete_cookie(SESSION_COOKIE)
    return SuccessResponse()


@router.get(
    "/auth/me",
    summary="Get current user",
    description="Get the profile of the currently authenticated user.",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_me(app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.get_current_user(auth_token)


@router.get(
    "/auth/session-info",
    summary="Get session information",
    description="Get the caller's identity and all of their active sessions.",
    operation_id="getSessionInfo",
    responses={
        200: {"description": "Session information"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_session_info(app: AppDep, auth_token: AuthTokenDep) -> SessionInfoResponse:
    session, active = await app.get_session_info(auth_token)
    return SessionInfoResponse(
        user=SessionIdentity(id=session.user_id, user_type=session.user_type, username=session.username),
        current_session_id=session.session_id,
        active_sessions=active,
        session_count=len(active),
    )


@router.post(
    "/auth/terminate-sessions",
    summary="Terminate other sessions",
    description="End selected sessions, or all sessions except the current one.",
    operation_id="terminateSessions",
    responses={
        200: {"description": "Sessions terminated"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def terminate_sessions(
    request: TerminateSessionsRequest, app: AppDep, auth_token: AuthTokenDep
) -> TerminateSessionsResponse:
    count = await app.terminate_sessions(auth_token, request.session_ids, request.terminate_all)
    return TerminateSessionsResponse(terminated_count=count)


@router.post(
    "/auth/forgot-password",
    summary="Request password reset",
    description="Send a verification code to the email if an account uses it. The response is the same either way.",
    operation_id="forgotPassword",
    responses={
        200: {"description": "Request accepted"},
        400: {"model": ErrorResponse, "description": "Invalid email format"},
    },
)
async def forgot_password(data: ForgotPasswordRequest, request: Request, app: AppDep) -> ForgotPasswordResponse:
    await app.request_password_reset(data.email, get_client_ip(request), request.headers.get("user-agent"))
    return ForgotPasswordResponse(message="If an account with this email exists, a verification code has been sent.")


@router.post(
    "/auth/verify-reset-code",
    summary="Verify reset code",
    description="Exchange the emailed verification code for a reset token.",
    operation_id="verifyResetCode",
    responses={
        200: {"description": "Code accepted"},
        400: {"model": ErrorResponse, "description": "Invalid or expired code"},
    },
)
async def verify_reset_code(data: VerifyResetCodeRequest, app: AppDep) -> VerifyResetCodeResponse:
    reset_token = await app.verify_reset_code(data.email, data.code)
    return VerifyResetCodeResponse(reset_token=reset_token)


@router.post(
    "/auth/reset-password",
    summary="Reset password",
    description="Set a new password with a reset token. Ends every session of the account.",
    operation_id="resetPassword",
    responses={
        200: {"description": "Password changed"},
        400: {"model": ErrorResponse, "description": "Invalid token or password"},
    },
)
async def reset_password(data: ResetPasswordRequest, request: Request, app: AppDep) -> SuccessResponse:
    await app.reset_password(
        data.email, data.reset_token, data.new_password, get_client_ip(request), request.headers.get("user-agent")
    )
    return SuccessResponse()
