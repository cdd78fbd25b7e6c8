"""OAuth providers and linking of external identities to local accounts."""

import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlencode

import requests
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from account_service.config import get_settings
from account_service.errors import AccountError, AuthOperationFailed, OAuthExchangeError
from account_service.models import User
from account_service.services.jwt import TokenPair
from account_service.services.sessions import SessionManager
from account_service.services.user_store import UserStore

logger = logging.getLogger("account_service.oauth")


@dataclass(frozen=True)
class ExternalProfile:
    """Identity returned by an OAuth provider after a successful handshake."""

    provider_id: str
    email: str
    username: str


class OAuthProvider(Protocol):
    name: str

    def authorization_url(self, state: str) -> str: ...

    def exchange_code(self, code: str) -> ExternalProfile: ...


class GoogleOAuthProvider:
    """Authorization-code flow against Google's OAuth 2.0 endpoints."""

    name = "google"
    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
    SCOPES = ("openid", "email", "profile")

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, timeout: float = 10.0) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.SCOPES),
            "state": state,
            "prompt": "select_account",
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> ExternalProfile:
        """Trade an authorization code for the user's Google profile."""
        try:
            token_resp = requests.post(
                self.TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                },
                timeout=self.timeout,
            )
            if token_resp.status_code != 200:
                logger.error("Google token exchange failed: %s %s", token_resp.status_code, token_resp.text)
                raise OAuthExchangeError()
            access_token = token_resp.json().get("access_token")
            if not access_token:
                raise OAuthExchangeError()

            info_resp = requests.get(
                self.USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
            if info_resp.status_code != 200:
                logger.error("Google userinfo request failed: %s", info_resp.status_code)
                raise OAuthExchangeError()
            info = info_resp.json()
        except requests.RequestException as e:
            logger.exception("Google OAuth request failed")
            raise OAuthExchangeError() from e

        if not info.get("sub") or not info.get("email"):
            raise OAuthExchangeError("Google profile is missing an id or email")
        if info.get("email_verified") is False:
            raise OAuthExchangeError("Google email address is not verified")

        return ExternalProfile(
            provider_id=str(info["sub"]),
            email=info["email"],
            username=info.get("name") or info["email"].split("@")[0],
        )


class OAuthIdentityLinker:
    """Merges an external identity into the local account with the same e-mail.

    One e-mail is one account regardless of how it signs in. A first login
    creates an OAuth-only user; a login for an existing e-mail links the
    provider and, when the local account was never verified, turns it into an
    OAuth-only account by dropping its password.
    """

    def __init__(self, store: UserStore, sessions: SessionManager, provider_name: str) -> None:
        self.store = store
        self.sessions = sessions
        self.provider_name = provider_name

    def oauth_login(self, profile: ExternalProfile | None) -> TokenPair:
        """Link ``profile`` to a local user and issue tokens for it.

        Returns an empty pair when no profile came back from the handshake.
        """
        if profile is None:
            return TokenPair.empty()

        try:
            user = self.store.find_by_email(profile.email)
            if user is None:
                user = self._create_user(profile)
            if user is not None:
                self._link_existing(user, profile)
            return self.sessions.login(profile.email, None, is_oauth_bypass=True)
        except AccountError:
            raise
        except SQLAlchemyError as e:
            logger.exception("%s login failed for provider id %s", self.provider_name, profile.provider_id)
            raise AuthOperationFailed() from e

    def _create_user(self, profile: ExternalProfile) -> User | None:
        """Create an OAuth-only user with its provider link.

        Returns None on success. When a concurrent callback created the
        account first, returns that account so it goes through linking.
        """
        try:
            with self.store.atomic():
                user = self.store.create(
                    email=profile.email,
                    username=profile.username,
                    password_hash=None,
                    is_verified=True,
                )
                self.store.create_provider_link(self.provider_name, profile.provider_id, user.id)
        except IntegrityError as e:
            existing = self.store.find_by_email(profile.email)
            if existing is None:
                raise AuthOperationFailed() from e
            logger.info("User for %s provider id %s created concurrently", self.provider_name, profile.provider_id)
            return existing
        logger.info("Created user %s from %s login", user.id, self.provider_name)
        return None

    def _link_existing(self, user: User, profile: ExternalProfile) -> None:
        user_id = user.id
        links = self.store.find_provider_links(user_id)
        if any(link.oauth_provider == self.provider_name for link in links):
            return

        try:
            with self.store.atomic():
                self.store.create_provider_link(self.provider_name, profile.provider_id, user_id)
                if not user.is_verified:
                    self.store.update(user_id, is_verified=True, password_hash=None, email_verify_token=None)
        except IntegrityError as e:
            link = self.store.find_provider_link(self.provider_name, profile.provider_id)
            if link is None or link.user_id != user_id:
                logger.warning(
                    "Cannot link %s provider id %s to user %s",
                    self.provider_name,
                    profile.provider_id,
                    user_id,
                )
                raise AuthOperationFailed() from e
            logger.info("Provider link for user %s created concurrently", user_id)
            return
        logger.info("Linked %s identity to user %s", self.provider_name, user_id)


_google_provider: GoogleOAuthProvider | None = None


def get_google_provider() -> GoogleOAuthProvider:
    """Get singleton Google provider configured from settings."""
    global _google_provider
    if _google_provider is None:
        settings = get_settings()
        _google_provider = GoogleOAuthProvider(
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            redirect_uri=settings.google_redirect_uri,
        )
    return _google_provider
