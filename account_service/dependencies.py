"""FastAPI dependencies: service wiring, bearer authentication and cookies."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from account_service.config import get_settings
from account_service.database import get_db
from account_service.errors import InvalidToken
from account_service.services.jwt import TokenClass, TokenSigner, get_token_signer
from account_service.services.mail import VerificationMailQueue, get_mail_queue
from account_service.services.oauth import GoogleOAuthProvider, OAuthIdentityLinker, get_google_provider
from account_service.services.passwords import PasswordHasher, get_password_hasher
from account_service.services.sessions import SessionManager
from account_service.services.statistics import LoginStatsRecorder, get_login_stats_recorder
from account_service.services.user_store import UserStore
from account_service.services.users import UsersService

REFRESH_COOKIE_NAME = "refreshToken"
OAUTH_STATE_COOKIE_NAME = "oauth_state"
OAUTH_STATE_MAX_AGE = 10 * 60  # 10 minutes


@dataclass
class CurrentUser:
    """Authenticated user context."""

    user_id: str
    username: str


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_session_manager(
    store: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    signer: TokenSigner = Depends(get_token_signer),
    stats: LoginStatsRecorder = Depends(get_login_stats_recorder),
) -> SessionManager:
    return SessionManager(store, hasher, signer, stats)


def get_google_linker(
    store: UserStore = Depends(get_user_store),
    sessions: SessionManager = Depends(get_session_manager),
    provider: GoogleOAuthProvider = Depends(get_google_provider),
) -> OAuthIdentityLinker:
    return OAuthIdentityLinker(store, sessions, provider.name)


def get_users_service(
    store: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    mail_queue: VerificationMailQueue = Depends(get_mail_queue),
) -> UsersService:
    return UsersService(store, hasher, mail_queue)


def get_current_user(
    request: Request,
    signer: TokenSigner = Depends(get_token_signer),
) -> CurrentUser:
    """Validate the Bearer access token. Raises 401 if missing or invalid."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        claims = signer.verify(auth_header[7:], expected_class=TokenClass.ACCESS)
    except InvalidToken as e:
        raise HTTPException(status_code=401, detail=e.detail) from None

    return CurrentUser(user_id=claims.subject_id, username=claims.username)


def set_refresh_cookie(response: Response, token: str) -> None:
    """Store the refresh token in an http-only cookie scoped to the auth routes."""
    settings = get_settings()
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.APP_ENV == "production",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        path="/api/v1/auth",
    )


def clear_refresh_cookie(response: Response) -> None:
    """Clear the refresh token cookie."""
    response.delete_cookie(key=REFRESH_COOKIE_NAME, path="/api/v1/auth")
