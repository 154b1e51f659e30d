"""Tagged outcome of an authentication attempt.

Authentication components return an AuthResult instead of raising, so that
every terminal outcome is explicit at the call site.
"""

from dataclasses import dataclass
from enum import Enum

from domain.model.principal import Principal


class AuthErrorCode(str, Enum):
    INVALID_CREDENTIALS = 'invalid_credentials'
    ACCOUNT_DISABLED = 'account_disabled'
    DIRECTORY_ERROR = 'directory_error'

    @property
    def message(self) -> str:
        """User-facing message. Never carries internal detail."""
        return _MESSAGES[self]


_MESSAGES = {
    AuthErrorCode.INVALID_CREDENTIALS: 'Invalid email or password',
    AuthErrorCode.ACCOUNT_DISABLED: 'Account is deactivated',
    AuthErrorCode.DIRECTORY_ERROR: 'Authentication is temporarily unavailable',
}


@dataclass(frozen=True)
class AuthResult:
    principal: Principal | None = None
    error: AuthErrorCode | None = None

    def __post_init__(self):
        if (self.principal is None) == (self.error is None):
            raise ValueError("AuthResult must carry exactly one of principal or error")

    @classmethod
    def success(cls, principal: Principal) -> 'AuthResult':
        return cls(principal=principal)

    @classmethod
    def failure(cls, error: AuthErrorCode) -> 'AuthResult':
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.principal is not None
