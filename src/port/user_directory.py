from datetime import datetime
from typing import Any, Protocol

from domain.model.user import User


class UserDirectory(Protocol):
    """Protocol defining the interface for user record storage.

    Implementations raise DirectoryError when the backing store fails and
    DuplicateError when a create would violate email or provider_id uniqueness.
    A missing record is not an error: lookups return None.
    """
    def get_by_email(self, email: str) -> User | None:
        """Find a user by (normalized) email. Return User or None if not found."""
        ...

    def get_by_provider_id(self, provider_id: str) -> User | None:
        """Find a user by federated provider id. Return User or None if not found."""
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def create(
        self,
        email: str,
        first_name: str,
        last_name: str,
        *,
        password_hash: str | None = None,
        provider_id: str | None = None,
        avatar: str | None = None,
        role: str = 'buyer',
        is_active: bool = True,
        is_email_verified: bool = False,
        last_login: datetime | None = None,
    ) -> User:
        """Insert a new user atomically. Raise DuplicateError if email or provider_id is taken."""
        ...

    def update(self, user_id: str, **attributes: Any) -> User | None:
        """Apply attributes in a single write and return the updated User.

        last_login never moves backwards. Return None if the user no longer exists.
        """
        ...

    def find_many(
        self,
        skip: int = 0,
        limit: int = 20,
        role: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> tuple[list[User], int]:
        """List users newest first with the total count matching the filters.

        search is a case-insensitive substring match on email, first and last name.
        """
        ...
