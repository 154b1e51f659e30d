"""Domain-level exceptions.

Adapters and services raise these errors to express storage failures and
business rule violations. Route handlers catch them and map to appropriate
HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""

    def __init__(self, message: str = "Duplicate entity", field: str | None = None):
        self.field = field
        super().__init__(message)


class PermissionDeniedError(DomainError):
    """Caller lacks permission for the requested action."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class DirectoryError(DomainError):
    """The user directory (persistent store) failed."""


class SessionStoreError(DomainError):
    """The session backend failed."""


class IdentityProviderError(DomainError):
    """The federated login handshake failed or returned an unusable profile."""
