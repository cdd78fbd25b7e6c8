"""JWT token signing and verification."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from account_service.config import get_settings
from account_service.errors import InvalidToken, TokenExpired


class TokenClass(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a token."""

    subject_id: str
    username: str
    token_class: TokenClass
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token handed to the client once."""

    access_token: str | None
    refresh_token: str | None

    @classmethod
    def empty(cls) -> "TokenPair":
        return cls(access_token=None, refresh_token=None)


class TokenSigner:
    """Signs and verifies access and refresh tokens with one shared secret."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=1),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = {TokenClass.ACCESS: access_ttl, TokenClass.REFRESH: refresh_ttl}

    def sign(self, subject_id: str, username: str, token_class: TokenClass) -> str:
        """Create a signed token of the given class for a user."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": subject_id,
            "username": username,
            "type": token_class.value,
            "iat": now,
            "exp": now + self.ttl[token_class],
            # Two tokens signed in the same second must still differ.
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """Decode a token, raising TokenExpired or InvalidToken."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpired() from e
        except JWTError as e:
            raise InvalidToken() from e

    def verify(self, token: str, expected_class: TokenClass | None = None) -> TokenClaims:
        """Verify a token and return its claims.

        When ``expected_class`` is given, a token of the other class is rejected.
        """
        payload = self.decode(token)
        try:
            claims = TokenClaims(
                subject_id=str(payload["sub"]),
                username=payload["username"],
                token_class=TokenClass(payload["type"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise InvalidToken() from e

        if expected_class is not None and claims.token_class is not expected_class:
            raise InvalidToken()
        return claims


_token_signer: TokenSigner | None = None


def get_token_signer() -> TokenSigner:
    """Get singleton token signer configured from settings."""
    global _token_signer
    if _token_signer is None:
        settings = get_settings()
        _token_signer = TokenSigner(
            secret_key=settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
    return _token_signer
