from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    BUYER = 'buyer'
    ADMIN = 'admin'


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup (case-insensitive uniqueness)."""
    return email.strip().lower()


@dataclass
class User:
    """Domain model representing a storefront user."""
    id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime
    role: Role = Role.BUYER
    is_active: bool = True
    is_email_verified: bool = False
    password_hash: str | None = None
    provider_id: str | None = None
    avatar: str | None = None
    last_login: datetime | None = None

    @property
    def has_local_credential(self) -> bool:
        return bool(self.password_hash)
