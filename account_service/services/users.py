"""User registration, e-mail verification, password change and statistics."""

import logging
import secrets
from datetime import timedelta

from account_service.errors import (
    EmailAlreadyExists,
    EmailAlreadyVerified,
    InvalidOldPassword,
    InvalidVerifyToken,
    NotFound,
    PasswordUnchanged,
)
from account_service.models import User
from account_service.services.mail import VerificationMailQueue
from account_service.services.passwords import PasswordHasher
from account_service.services.statistics import utc_today
from account_service.services.user_store import UserStore

logger = logging.getLogger("account_service.users")


def _public_view(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "is_verified": user.is_verified,
        "login_times": user.login_times,
        "has_password": user.password_hash is not None,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


class UsersService:
    """Account management outside of the login flow."""

    def __init__(self, store: UserStore, hasher: PasswordHasher, mail_queue: VerificationMailQueue) -> None:
        self.store = store
        self.hasher = hasher
        self.mail_queue = mail_queue

    def find_one(self, user_id: str) -> dict:
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFound()
        return _public_view(user)

    def register(self, username: str, email: str, password: str) -> dict:
        """Create a local account with an unverified e-mail address."""
        if self.store.find_by_email(email) is not None:
            raise EmailAlreadyExists()

        user = self.store.create(
            username=username.strip(),
            email=email,
            password_hash=self.hasher.hash(password),
            is_verified=False,
            email_verify_token=secrets.token_urlsafe(32),
        )
        logger.info("Registered user %s", user.id)
        return _public_view(user)

    def add_verify_email_event(self, user_id: str) -> dict:
        """Queue a verification e-mail. Refuses, without queueing, once the address is verified."""
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFound()
        if user.is_verified:
            raise EmailAlreadyVerified()

        token = user.email_verify_token
        if not token:
            token = secrets.token_urlsafe(32)
            self.store.update(user.id, email_verify_token=token)

        self.mail_queue.enqueue(user.email, user.username, token)
        return {"message": "Email sent"}

    def verify_email(self, email_verify_token: str) -> dict:
        """Mark the owner of ``email_verify_token`` verified and consume the token."""
        user = self.store.find_by_verify_token(email_verify_token)
        if user is None:
            raise InvalidVerifyToken()
        self.store.update(user.id, is_verified=True, email_verify_token=None)
        logger.info("Verified email for user %s", user.id)
        return {"message": "Email verified successfully"}

    def change_password(self, user_id: str, old_password: str | None, new_password: str) -> dict:
        """Set a new password.

        Accounts created through OAuth have no password yet and may set one
        without ``old_password``.
        """
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFound()

        if user.password_hash is not None:
            if not self.hasher.verify(old_password, user.password_hash):
                raise InvalidOldPassword()
            if self.hasher.verify(new_password, user.password_hash):
                raise PasswordUnchanged()

        user = self.store.update(user.id, password_hash=self.hasher.hash(new_password))
        logger.info("Password changed for user %s", user.id)
        return _public_view(user)

    def get_statistics(self) -> dict:
        """User count, today's logins and the mean daily logins over the last seven days."""
        today = utc_today()
        return {
            "users_count": self.store.count_users(),
            "today_login_times": self.store.daily_login_times(today),
            "last_7_days_avg_login_times": self.store.average_login_times(today - timedelta(days=6), today),
        }
