"""Domain errors raised by the account services.

Each error carries the HTTP status the routers answer with and a ``detail``
that is safe to show to clients. The original cause, when there is one, is
chained on the exception and only ever logged.
"""


class AccountError(Exception):
    """Base class for all account service errors."""

    status_code: int = 400
    default_detail: str = "Account operation failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidCredentials(AccountError):
    status_code = 401
    default_detail = "Invalid email or password"


class InvalidRefreshToken(AccountError):
    status_code = 401
    default_detail = "Invalid refresh token"


class NotFound(AccountError):
    status_code = 404
    default_detail = "User not found"


class SubjectNotFound(NotFound):
    """An already authenticated subject no longer exists."""

    status_code = 500
    default_detail = "Internal server error"


class AuthOperationFailed(AccountError):
    status_code = 500
    default_detail = "Authentication failed"


class EmailAlreadyExists(AccountError):
    status_code = 409
    default_detail = "Email already exists"


class EmailAlreadyVerified(AccountError):
    default_detail = "Email already verified"


class InvalidVerifyToken(AccountError):
    default_detail = "Invalid token"


class InvalidOldPassword(AccountError):
    default_detail = "Invalid old password"


class PasswordUnchanged(AccountError):
    default_detail = "New password cannot be same as old password"


class InvalidToken(AccountError):
    """Bearer token failed signature or claim checks."""

    status_code = 401
    default_detail = "Invalid or expired token"


class TokenExpired(InvalidToken):
    default_detail = "Token has expired"


class OAuthExchangeError(AccountError):
    """The OAuth provider rejected the authorization code or returned no usable profile."""

    status_code = 401
    default_detail = "OAuth handshake failed"
