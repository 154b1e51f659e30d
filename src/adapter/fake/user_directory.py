"""In-memory implementation of UserDirectory for testing.

Thread-safe: create() is an atomic insert-if-absent on email and provider_id,
matching the unique indexes of the MongoDB implementation.
"""

import threading
import uuid
from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import Any

from domain.model.errors import DirectoryError, DuplicateError
from domain.model.user import Role, User, normalize_email

_MUTABLE_FIELDS = {f.name for f in fields(User)} - {'id', 'created_at'}


class FakeUserDirectory:
    def __init__(self):
        self.store: dict[str, User] = {}
        self.fail_with: Exception | None = None
        self._lock = threading.Lock()

    def _check_available(self):
        if self.fail_with is not None:
            raise DirectoryError(str(self.fail_with)) from self.fail_with

    # ── write operations ─────────────────────────────────────

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
        self._check_available()
        email = normalize_email(email)
        with self._lock:
            for existing in self.store.values():
                if existing.email == email:
                    raise DuplicateError("Email already registered", field='email')
                if provider_id is not None and existing.provider_id == provider_id:
                    raise DuplicateError("Provider id already linked", field='provider_id')

            now = datetime.now(timezone.utc)
            user = User(
                id=uuid.uuid4().hex,
                email=email,
                first_name=first_name,
                last_name=last_name,
                created_at=now,
                updated_at=now,
                role=Role(role),
                is_active=is_active,
                is_email_verified=is_email_verified,
                password_hash=password_hash,
                provider_id=provider_id,
                avatar=avatar,
                last_login=last_login,
            )
            self.store[user.id] = user
            return replace(user)

    def update(self, user_id: str, **attributes: Any) -> User | None:
        self._check_available()
        unknown = set(attributes) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user attributes: {sorted(unknown)}")

        with self._lock:
            user = self.store.get(user_id)
            if not user:
                return None

            changes = dict(attributes)
            last_login = changes.pop('last_login', None)
            if last_login is not None and (user.last_login is None or last_login > user.last_login):
                changes['last_login'] = last_login
            if 'role' in changes:
                changes['role'] = Role(changes['role'])
            if 'email' in changes:
                changes['email'] = normalize_email(changes['email'])
                if any(u.email == changes['email'] and u.id != user_id for u in self.store.values()):
                    raise DuplicateError("Email already registered", field='email')
            provider_id = changes.get('provider_id')
            if provider_id is not None and any(
                u.provider_id == provider_id and u.id != user_id for u in self.store.values()
            ):
                raise DuplicateError("Provider id already linked", field='provider_id')

            changes['updated_at'] = datetime.now(timezone.utc)
            updated = replace(user, **changes)
            self.store[user_id] = updated
            return replace(updated)

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        self._check_available()
        email = normalize_email(email)
        with self._lock:
            for user in self.store.values():
                if user.email == email:
                    return replace(user)
        return None

    def get_by_provider_id(self, provider_id: str) -> User | None:
        self._check_available()
        with self._lock:
            for user in self.store.values():
                if user.provider_id == provider_id:
                    return replace(user)
        return None

    def get_by_id(self, user_id: str) -> User | None:
        self._check_available()
        with self._lock:
            user = self.store.get(user_id)
            return replace(user) if user else None

    def find_many(
        self,
        skip: int = 0,
        limit: int = 20,
        role: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> tuple[list[User], int]:
        self._check_available()
        with self._lock:
            results = [replace(u) for u in self.store.values()]

        if role:
            results = [u for u in results if u.role == Role(role)]
        if is_active is not None:
            results = [u for u in results if u.is_active == is_active]
        if search:
            needle = search.lower()
            results = [
                u for u in results
                if needle in u.email or needle in u.first_name.lower() or needle in u.last_name.lower()
            ]

        results.sort(key=lambda u: u.created_at, reverse=True)
        total = len(results)
        return results[skip:skip + limit], total
