"""Login, token rotation and refresh."""

import logging

from jose import JWTError
from sqlalchemy.exc import SQLAlchemyError

from account_service.errors import (
    AuthOperationFailed,
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidToken,
    NotFound,
    SubjectNotFound,
)
from account_service.services.jwt import TokenClass, TokenPair, TokenSigner
from account_service.services.passwords import PasswordHasher
from account_service.services.statistics import LoginStatsRecorder
from account_service.services.user_store import UserStore

logger = logging.getLogger("account_service.sessions")


class SessionManager:
    """Issues and rotates the token pair of a user.

    A user has exactly one valid refresh token at a time: the value stored on
    the user row. Issuing a new pair overwrites it, so every earlier refresh
    token stops working. Concurrent logins are last-writer-wins.
    """

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        signer: TokenSigner,
        stats: LoginStatsRecorder,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.signer = signer
        self.stats = stats

    def login(self, email: str, password: str | None, is_oauth_bypass: bool = False) -> TokenPair:
        """Check credentials and issue a fresh token pair.

        ``is_oauth_bypass`` skips the password check for users already
        authenticated by an OAuth provider. Unknown e-mail and wrong password
        raise the same InvalidCredentials; only the log tells them apart.
        """
        try:
            user = self.store.find_by_email(email)
        except SQLAlchemyError as e:
            logger.exception("User lookup failed during login")
            raise AuthOperationFailed() from e

        if user is None:
            logger.info("Login rejected: unknown email")
            raise InvalidCredentials()

        if not is_oauth_bypass:
            if user.password_hash is None:
                logger.info("Login rejected: user %s has no local password", user.id)
                raise InvalidCredentials()
            if not self.hasher.verify(password, user.password_hash):
                logger.info("Login rejected: wrong password for user %s", user.id)
                raise InvalidCredentials()

        user_id = user.id
        tokens = self.generate_and_rotate_tokens(user_id)
        self.stats.record(user_id)
        logger.info("User %s logged in%s", user_id, " via OAuth" if is_oauth_bypass else "")
        return tokens

    def generate_and_rotate_tokens(self, user_id: str) -> TokenPair:
        """Sign a new access/refresh pair and store the refresh token on the user."""
        try:
            user = self.store.find_by_id(user_id)
            if user is None:
                logger.error("User %s vanished before token generation", user_id)
                raise SubjectNotFound()

            access_token = self.signer.sign(user.id, user.username, TokenClass.ACCESS)
            refresh_token = self.signer.sign(user.id, user.username, TokenClass.REFRESH)
            self.store.update(user.id, refresh_token=refresh_token)
        except SubjectNotFound:
            raise
        except NotFound as e:
            raise SubjectNotFound() from e
        except (SQLAlchemyError, JWTError) as e:
            logger.exception("Token rotation failed for user %s", user_id)
            raise AuthOperationFailed() from e

        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def refresh_token(self, presented: str | None) -> TokenPair:
        """Exchange the current refresh token for a new pair.

        Only the most recently issued refresh token is accepted; expired,
        rotated-away or forged tokens raise InvalidRefreshToken.
        """
        if not presented:
            raise InvalidRefreshToken()

        try:
            claims = self.signer.verify(presented, expected_class=TokenClass.REFRESH)
        except InvalidToken as e:
            logger.info("Refresh rejected: %s", e.detail)
            raise InvalidRefreshToken() from e

        try:
            user = self.store.find_by_refresh_token(presented)
        except SQLAlchemyError as e:
            logger.exception("Refresh token lookup failed")
            raise AuthOperationFailed() from e

        if user is None or user.id != claims.subject_id:
            logger.info("Refresh rejected: token for subject %s is not the current one", claims.subject_id)
            raise InvalidRefreshToken()

        return self.generate_and_rotate_tokens(user.id)

    def revoke(self, presented: str | None) -> bool:
        """Forget the stored refresh token matching ``presented``. Returns True if one was cleared."""
        if not presented:
            return False
        try:
            user = self.store.find_by_refresh_token(presented)
            if user is None:
                return False
            user_id = user.id
            self.store.update(user_id, refresh_token=None)
        except SQLAlchemyError as e:
            logger.exception("Refresh token revocation failed")
            raise AuthOperationFailed() from e
        logger.info("Refresh token revoked for user %s", user_id)
        return True
