"""User account API endpoints."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from account_service.config import get_settings
from account_service.dependencies import CurrentUser, get_current_user, get_users_service
from account_service.errors import InvalidVerifyToken
from account_service.rate_limit import limiter
from account_service.schemas.user import (
    CreateUserRequest,
    MessageResponse,
    ResetPasswordRequest,
    UserResponse,
    UserStatisticsResponse,
)
from account_service.services.users import UsersService

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=201)
@limiter.limit("5/minute")
def register(
    request: Request,
    body: CreateUserRequest,
    service: UsersService = Depends(get_users_service),
) -> UserResponse:
    """Register a new local account."""
    user = service.register(body.username, body.email, body.password)
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse)
def me(
    user: CurrentUser = Depends(get_current_user),
    service: UsersService = Depends(get_users_service),
) -> UserResponse:
    """Profile of the authenticated user."""
    return UserResponse.model_validate(service.find_one(user.user_id))


@router.post("/send-verify-email", response_model=MessageResponse, status_code=202)
@limiter.limit("3/minute")
def send_verify_email(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    service: UsersService = Depends(get_users_service),
) -> MessageResponse:
    """Queue a verification e-mail for the authenticated user."""
    return MessageResponse(**service.add_verify_email_event(user.user_id))


@router.get("/verify-email/{token}")
def verify_email(token: str, service: UsersService = Depends(get_users_service)) -> RedirectResponse:
    """Verify an e-mail address from the link in the verification e-mail."""
    frontend_url = get_settings().FRONTEND_URL.rstrip("/")
    try:
        service.verify_email(token)
    except InvalidVerifyToken:
        return RedirectResponse(url=f"{frontend_url}/verify-email/failure", status_code=302)
    return RedirectResponse(url=f"{frontend_url}/verify-email/success", status_code=302)


@router.patch("/reset-password", response_model=UserResponse)
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    user: CurrentUser = Depends(get_current_user),
    service: UsersService = Depends(get_users_service),
) -> UserResponse:
    """Change the authenticated user's password."""
    updated = service.change_password(user.user_id, body.old_password, body.new_password)
    return UserResponse.model_validate(updated)


@router.get("/statistics", response_model=UserStatisticsResponse)
def statistics(service: UsersService = Depends(get_users_service)) -> UserStatisticsResponse:
    """Login activity statistics."""
    return UserStatisticsResponse(**service.get_statistics())
