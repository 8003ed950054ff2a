"""User authentication routes."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Request, Response

from gcopy_auth.dependencies import get_auth_service, get_client_descriptor
from gcopy_auth.schemas import (
    EmailCodeRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshResponse,
    ShareCodeLoginResponse,
    ShareCodeRequest,
    UserResponse,
)
from gcopy_auth.services.auth import AuthService
from gcopy_auth.services.notifier import ClientDescriptor
from gcopy_auth.services.session_state import LoginType

router = APIRouter(prefix="/api/v1/user", tags=["user"])

_errors = {
    401: {"model": MessageResponse},
    422: {"model": MessageResponse},
    500: {"model": MessageResponse},
}

Auth = Annotated[AuthService, Depends(get_auth_service)]


@router.post("/email_code", response_model=MessageResponse, responses=_errors)
def email_code(
    body: EmailCodeRequest,
    request: Request,
    response: Response,
    auth: Auth,
    client: Annotated[ClientDescriptor, Depends(get_client_descriptor)],
    accept_language: Annotated[Optional[str], Header()] = None,
):
    """Mail a verification code to the given address."""
    auth.request_email_code(request, response, body.email, accept_language, client)
    return MessageResponse(message="Success")


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    responses=_errors,
)
def login(body: LoginRequest, request: Request, response: Response, auth: Auth):
    """Log in with an email address and its verification code."""
    identity = auth.submit_email_code(request, response, body.email, body.code)
    if identity.mode is LoginType.CODE:
        return LoginResponse(share_code=identity.subject, login_type=identity.mode.value)
    return LoginResponse(email=identity.subject)


@router.post("/share_code", response_model=ShareCodeLoginResponse, responses=_errors)
def share_code_login(body: ShareCodeRequest, request: Request, response: Response, auth: Auth):
    """Join or create a share code group."""
    identity = auth.submit_share_code(request, response, body.code)
    return ShareCodeLoginResponse(share_code=identity.subject, logged_in=True)


@router.post("/share_code/refresh", response_model=RefreshResponse, responses=_errors)
def refresh_share_code(request: Request, auth: Auth):
    """Extend how long the session's share code can be joined."""
    code, _ = auth.refresh_share_code(request)
    return RefreshResponse(
        share_code=code,
        expires_in=int(auth.share_code_ttl.total_seconds()),
    )


@router.get("/logout", response_model=MessageResponse, responses=_errors)
def logout(request: Request, response: Response, auth: Auth):
    """Clear the session."""
    auth.logout(request, response)
    return MessageResponse(message="Success")


@router.get(
    "",
    response_model=UserResponse,
    response_model_exclude_none=True,
    responses={404: {"model": MessageResponse}, 500: {"model": MessageResponse}},
)
def get_user(request: Request, response: Response, auth: Auth):
    """Return the session's identity."""
    identity = auth.current_identity(request, response)
    if identity.mode is LoginType.CODE:
        return UserResponse(share_code=identity.subject, login_type=identity.mode.value)
    return UserResponse(email=identity.subject, login_type=identity.mode.value)
