"""Tests for the users service."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from account_service.errors import (
    EmailAlreadyExists,
    EmailAlreadyVerified,
    InvalidOldPassword,
    InvalidVerifyToken,
    NotFound,
    PasswordUnchanged,
)
from account_service.services.statistics import utc_today
from account_service.services.user_store import UserStore
from account_service.services.users import UsersService


class TestRegister:
    def test_register_creates_unverified_user(self, users_service: UsersService, store: UserStore, hasher):
        view = users_service.register("bob", "b@x.com", "Secret1!")

        assert view["email"] == "b@x.com"
        assert view["is_verified"] is False
        assert view["has_password"] is True
        assert view["login_times"] == 0
        user = store.find_by_id(view["id"])
        assert user.email_verify_token
        assert hasher.verify("Secret1!", user.password_hash)

    def test_duplicate_email(self, users_service: UsersService, test_user: dict):
        with pytest.raises(EmailAlreadyExists) as exc_info:
            users_service.register("alice2", "a@x.com", "Secret1!")
        assert exc_info.value.status_code == 409

    def test_find_one_missing(self, users_service: UsersService):
        with pytest.raises(NotFound):
            users_service.find_one("missing")


class TestVerificationEmail:
    def test_enqueues_job(self, users_service: UsersService, mail_queue: MagicMock, store: UserStore):
        view = users_service.register("bob", "b@x.com", "Secret1!")
        token = store.find_by_id(view["id"]).email_verify_token

        assert users_service.add_verify_email_event(view["id"]) == {"message": "Email sent"}
        mail_queue.enqueue.assert_called_once_with("b@x.com", "bob", token)

    def test_already_verified_never_enqueues(self, users_service: UsersService, mail_queue: MagicMock, test_user: dict):
        """Repeated requests for a verified user fail the same way and queue nothing."""
        for _ in range(2):
            with pytest.raises(EmailAlreadyVerified) as exc_info:
                users_service.add_verify_email_event(test_user["user_id"])
            assert exc_info.value.detail == "Email already verified"
        mail_queue.enqueue.assert_not_called()

    def test_missing_token_is_regenerated(self, users_service: UsersService, mail_queue: MagicMock, store: UserStore):
        user = store.create(email="c@x.com", username="carol", password_hash=None, is_verified=False)

        users_service.add_verify_email_event(user.id)

        token = store.find_by_id(user.id).email_verify_token
        assert token
        mail_queue.enqueue.assert_called_once_with("c@x.com", "carol", token)

    def test_verify_email_consumes_token(self, users_service: UsersService, store: UserStore):
        view = users_service.register("bob", "b@x.com", "Secret1!")
        token = store.find_by_id(view["id"]).email_verify_token

        assert users_service.verify_email(token) == {"message": "Email verified successfully"}

        user = store.find_by_id(view["id"])
        assert user.is_verified is True
        assert user.email_verify_token is None
        with pytest.raises(InvalidVerifyToken):
            users_service.verify_email(token)

    def test_verify_unknown_token(self, users_service: UsersService):
        with pytest.raises(InvalidVerifyToken):
            users_service.verify_email("bogus")


class TestChangePassword:
    def test_change_password(self, users_service: UsersService, sessions, test_user: dict):
        users_service.change_password(test_user["user_id"], "Secret1!", "Changed2@")

        assert sessions.login("a@x.com", "Changed2@").access_token

    def test_wrong_old_password(self, users_service: UsersService, test_user: dict):
        with pytest.raises(InvalidOldPassword):
            users_service.change_password(test_user["user_id"], "wrong", "Changed2@")

    def test_same_password_rejected(self, users_service: UsersService, test_user: dict):
        with pytest.raises(PasswordUnchanged):
            users_service.change_password(test_user["user_id"], "Secret1!", "Secret1!")

    def test_oauth_user_sets_first_password(self, users_service: UsersService, store: UserStore):
        user = store.create(email="o@x.com", username="oauth", password_hash=None, is_verified=True)

        view = users_service.change_password(user.id, None, "Fresh3#x")

        assert view["has_password"] is True


class TestStatistics:
    def test_empty_statistics(self, users_service: UsersService):
        assert users_service.get_statistics() == {
            "users_count": 0,
            "today_login_times": 0,
            "last_7_days_avg_login_times": 0.0,
        }

    def test_statistics_window(self, users_service: UsersService, store: UserStore, test_user: dict):
        today = utc_today()
        for _ in range(3):
            store.increment_login_counters(test_user["user_id"], today)
        store.increment_login_counters(test_user["user_id"], today - timedelta(days=6))
        # Outside the seven-day window.
        for _ in range(10):
            store.increment_login_counters(test_user["user_id"], today - timedelta(days=7))

        stats = users_service.get_statistics()

        assert stats["users_count"] == 1
        assert stats["today_login_times"] == 3
        assert stats["last_7_days_avg_login_times"] == 2.0
