"""Password hashing with bcrypt."""

import bcrypt

from account_service.config import get_settings


class PasswordHasher:
    """Salted one-way hashing of user passwords."""

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Hash a password with a fresh random salt."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str | None, password_hash: str | None) -> bool:
        """Check a password against a stored hash.

        Returns False for a missing password, a missing hash, or a hash bcrypt
        cannot parse.
        """
        if not plaintext or not password_hash:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False


_password_hasher: PasswordHasher | None = None


def get_password_hasher() -> PasswordHasher:
    """Get singleton password hasher instance."""
    global _password_hasher
    if _password_hasher is None:
        _password_hasher = PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)
    return _password_hasher
