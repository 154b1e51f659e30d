"""Auth service — local account lifecycle around the login components.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.
"""

import logging
import re
from datetime import datetime, timezone

from domain.model.errors import NotFoundError, ValidationError
from domain.model.principal import Principal
from domain.model.user import Role, User, normalize_email
from port.password_hasher import PasswordHasher
from port.user_directory import UserDirectory

logger = logging.getLogger(__name__)

# bcrypt ignores (or rejects) input past 72 bytes
MAX_PASSWORD_BYTES = 72


def validate_password(password: str) -> None:
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password must be at most 72 bytes")
    if not re.search(r"[A-Z]", password):
        raise ValidationError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValidationError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValidationError("Password must contain at least one number")


def register(
    directory: UserDirectory,
    hasher: PasswordHasher,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
) -> User:
    """Register a new local (password) account.

    The new account is a buyer with an unverified email and counts as logged in.

    Raises:
        DuplicateError: email already registered
        ValidationError: password does not meet strength requirements
        DirectoryError: directory unavailable
    """
    validate_password(password)

    user = directory.create(
        email=normalize_email(email),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        password_hash=hasher.hash(password),
        role=Role.BUYER.value,
        is_email_verified=False,
        last_login=datetime.now(timezone.utc),
    )
    logger.info("User registered", extra={"userId": user.id, "method": "local"})
    return user


def record_login(directory: UserDirectory, principal: Principal) -> None:
    """Advance last_login after a successful local login.

    Raises:
        DirectoryError: directory unavailable
    """
    directory.update(principal.id, last_login=datetime.now(timezone.utc))
    logger.info("User logged in", extra={"userId": principal.id, "method": "local"})


def change_password(
    directory: UserDirectory,
    hasher: PasswordHasher,
    user_id: str,
    current_password: str,
    new_password: str,
) -> None:
    """Replace the password of an account that already has one.

    Raises:
        NotFoundError: user no longer exists
        ValidationError: account has no password, current password wrong,
            or new password too weak
    """
    user = directory.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not user.has_local_credential:
        raise ValidationError("Account signs in with Google and has no password to change")
    if not hasher.verify(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")

    validate_password(new_password)
    directory.update(user_id, password_hash=hasher.hash(new_password))
    logger.info("Password changed", extra={"userId": user_id})


def update_profile(
    directory: UserDirectory,
    user_id: str,
    first_name: str | None = None,
    last_name: str | None = None,
    avatar: str | None = None,
) -> User:
    """Update display fields on the caller's own record.

    Email, role, status and linked identities are not editable here.

    Raises:
        ValidationError: nothing to change, or a name is blank after trimming
        NotFoundError: user no longer exists
        DirectoryError: directory unavailable
    """
    changes = {}
    if first_name is not None:
        changes['first_name'] = first_name.strip()
    if last_name is not None:
        changes['last_name'] = last_name.strip()
    if avatar is not None:
        changes['avatar'] = avatar.strip() or None
    if not changes:
        raise ValidationError("No profile changes supplied")
    if any(len(changes[k]) < 2 for k in ('first_name', 'last_name') if k in changes):
        raise ValidationError("Names must be at least 2 characters long")

    user = directory.update(user_id, **changes)
    if user is None:
        raise NotFoundError("User not found")
    logger.info("Profile updated", extra={"userId": user_id, "fields": sorted(changes)})
    return user
