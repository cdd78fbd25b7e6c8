"""Tests for password hashing."""

from account_service.services.passwords import PasswordHasher


class TestPasswordHasher:
    def test_hash_verifies(self, hasher: PasswordHasher):
        password_hash = hasher.hash("Secret1!")
        assert password_hash != "Secret1!"
        assert hasher.verify("Secret1!", password_hash) is True

    def test_wrong_password(self, hasher: PasswordHasher):
        assert hasher.verify("wrong", hasher.hash("Secret1!")) is False

    def test_salt_differs_per_call(self, hasher: PasswordHasher):
        assert hasher.hash("Secret1!") != hasher.hash("Secret1!")

    def test_cost_factor_is_applied(self):
        password_hash = PasswordHasher(rounds=10).hash("Secret1!")
        assert password_hash.startswith("$2b$10$")

    def test_malformed_hash_returns_false(self, hasher: PasswordHasher):
        """A corrupt hash never raises."""
        assert hasher.verify("Secret1!", "not-a-bcrypt-hash") is False

    def test_missing_values_return_false(self, hasher: PasswordHasher):
        assert hasher.verify(None, hasher.hash("Secret1!")) is False
        assert hasher.verify("Secret1!", None) is False
        assert hasher.verify("", "") is False
