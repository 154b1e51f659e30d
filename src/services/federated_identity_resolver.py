"""Reconcile an identity-provider profile with the user directory.

Resolution order is fixed and acts as the tie-break policy:

1. provider id  -> returning federated user; advance last_login
2. email        -> same person, new channel; link provider id to the existing
                   account (avatar only if it has none) and advance last_login
                   in one directory write
3. create       -> new verified buyer account

Creation relies on the directory's unique indexes for atomicity. When a
concurrent request wins the insert, the loser sees DuplicateError and runs the
lookup tiers once more instead of failing.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from domain.model.auth_result import AuthErrorCode, AuthResult
from domain.model.errors import DirectoryError, DuplicateError
from domain.model.principal import Principal
from domain.model.provider_profile import ProviderProfile
from domain.model.user import Role, User
from port.user_directory import UserDirectory

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FederatedIdentityResolver:
    def __init__(self, directory: UserDirectory, clock: Callable[[], datetime] = _utcnow):
        self.directory = directory
        self.clock = clock

    def resolve(self, profile: ProviderProfile) -> AuthResult:
        log_extra = {"providerId": profile.provider_id}
        try:
            try:
                return self._lookup(profile) or self._create(profile)
            except DuplicateError as e:
                logger.warning(
                    "Federated login lost a uniqueness race, retrying lookup",
                    extra={**log_extra, "field": e.field},
                )

            result = self._lookup(profile)
            if result is None:
                logger.error("Federated login unresolved after uniqueness conflict", extra=log_extra)
                return AuthResult.failure(AuthErrorCode.DIRECTORY_ERROR)
            return result
        except DuplicateError as e:
            logger.error(
                "Federated login hit a second uniqueness conflict",
                extra={**log_extra, "field": e.field},
            )
            return AuthResult.failure(AuthErrorCode.DIRECTORY_ERROR)
        except DirectoryError:
            logger.error("Federated login aborted: directory unavailable", extra=log_extra)
            return AuthResult.failure(AuthErrorCode.DIRECTORY_ERROR)

    def _lookup(self, profile: ProviderProfile) -> AuthResult | None:
        """Tiers 1 and 2. Return None when neither matches."""
        user = self.directory.get_by_provider_id(profile.provider_id)
        if user is not None:
            if not user.is_active:
                return self._disabled(user)
            updated = self.directory.update(user.id, last_login=self.clock())
            if updated is not None:
                logger.info(
                    "User logged in",
                    extra={"userId": updated.id, "method": "google", "tier": "provider_id"},
                )
                return AuthResult.success(Principal.from_user(updated))

        user = self.directory.get_by_email(profile.email)
        if user is None:
            return None
        if not user.is_active:
            return self._disabled(user)

        updated = self.directory.update(user.id, **self._link_changes(user, profile))
        if updated is None:
            return None
        logger.info(
            "Linked federated identity to existing account",
            extra={"userId": updated.id, "method": "google", "tier": "email"},
        )
        return AuthResult.success(Principal.from_user(updated))

    def _link_changes(self, user: User, profile: ProviderProfile) -> dict:
        changes = {'provider_id': profile.provider_id, 'last_login': self.clock()}
        if not user.avatar and profile.avatar_url:
            changes['avatar'] = profile.avatar_url
        return changes

    def _create(self, profile: ProviderProfile) -> AuthResult:
        """Tier 3. Raises DuplicateError when a concurrent request created the user first."""
        user = self.directory.create(
            email=profile.email,
            first_name=profile.first_name,
            last_name=profile.last_name,
            provider_id=profile.provider_id,
            avatar=profile.avatar_url,
            role=Role.BUYER.value,
            is_active=True,
            is_email_verified=True,
            last_login=self.clock(),
        )
        logger.info(
            "User registered",
            extra={"userId": user.id, "method": "google", "tier": "created"},
        )
        return AuthResult.success(Principal.from_user(user))

    def _disabled(self, user: User) -> AuthResult:
        logger.info(
            "Login rejected",
            extra={"userId": user.id, "method": "google", "reason": AuthErrorCode.ACCOUNT_DISABLED.value},
        )
        return AuthResult.failure(AuthErrorCode.ACCOUNT_DISABLED)
