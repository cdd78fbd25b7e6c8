"""Authentication API endpoints."""

import logging
import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse

from account_service.config import get_settings
from account_service.dependencies import (
    OAUTH_STATE_COOKIE_NAME,
    OAUTH_STATE_MAX_AGE,
    REFRESH_COOKIE_NAME,
    clear_refresh_cookie,
    get_google_linker,
    get_session_manager,
    set_refresh_cookie,
)
from account_service.errors import AccountError, OAuthExchangeError
from account_service.rate_limit import limiter
from account_service.schemas.auth import LoginRequest, RefreshTokenRequest, TokenPairResponse
from account_service.services.oauth import GoogleOAuthProvider, OAuthIdentityLinker, get_google_provider
from account_service.services.sessions import SessionManager

logger = logging.getLogger("account_service")

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenPairResponse)
@limiter.limit("10/minute")
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    sessions: SessionManager = Depends(get_session_manager),
) -> TokenPairResponse:
    """Authenticate with e-mail and password and receive a token pair."""
    tokens = sessions.login(body.email, body.password)
    set_refresh_cookie(response, tokens.refresh_token)
    return TokenPairResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/refresh-token", response_model=TokenPairResponse)
@limiter.limit("30/minute")
def refresh_token(
    request: Request,
    response: Response,
    body: RefreshTokenRequest | None = None,
    sessions: SessionManager = Depends(get_session_manager),
) -> TokenPairResponse:
    """Rotate the refresh token (from the body or the cookie) into a new token pair."""
    presented = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE_NAME)
    tokens = sessions.refresh_token(presented)
    set_refresh_cookie(response, tokens.refresh_token)
    return TokenPairResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    body: RefreshTokenRequest | None = None,
    sessions: SessionManager = Depends(get_session_manager),
) -> dict:
    """Revoke the presented refresh token and clear the cookie."""
    presented = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE_NAME)
    sessions.revoke(presented)
    clear_refresh_cookie(response)
    return {"detail": "Logged out"}


@router.get("/google")
def google_authorize(provider: GoogleOAuthProvider = Depends(get_google_provider)) -> RedirectResponse:
    """Redirect to Google's consent screen."""
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(url=provider.authorization_url(state), status_code=302)
    response.set_cookie(
        key=OAUTH_STATE_COOKIE_NAME,
        value=state,
        httponly=True,
        samesite="lax",
        max_age=OAUTH_STATE_MAX_AGE,
    )
    return response


@router.get("/google/callback")
def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    provider: GoogleOAuthProvider = Depends(get_google_provider),
    linker: OAuthIdentityLinker = Depends(get_google_linker),
) -> RedirectResponse:
    """Finish the Google handshake and hand the token pair to the frontend."""
    frontend_url = get_settings().FRONTEND_URL.rstrip("/")
    failure = RedirectResponse(url=f"{frontend_url}/login/failure", status_code=302)
    failure.delete_cookie(OAUTH_STATE_COOKIE_NAME)

    expected_state = request.cookies.get(OAUTH_STATE_COOKIE_NAME)
    profile = None
    if code and state and expected_state and secrets.compare_digest(state, expected_state):
        try:
            profile = provider.exchange_code(code)
        except OAuthExchangeError as e:
            logger.warning("Google handshake failed: %s", e.detail)
    else:
        logger.warning("Google callback rejected: missing code or state mismatch")

    try:
        tokens = linker.oauth_login(profile)
    except AccountError as e:
        logger.warning("Google login failed: %s", e.detail)
        return failure

    if tokens.access_token is None:
        return failure

    query = urlencode({"accessToken": tokens.access_token, "refreshToken": tokens.refresh_token})
    response = RedirectResponse(url=f"{frontend_url}/login/google/callback?{query}", status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE_NAME)
    set_refresh_cookie(response, tokens.refresh_token)
    return response
