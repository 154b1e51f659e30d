"""Local email/password login.

Lookup -> status check -> password check. Unknown email, wrong password and
accounts without a local password all end in INVALID_CREDENTIALS so a caller
cannot tell them apart. No state is mutated here.
"""

import logging

from domain.model.auth_result import AuthErrorCode, AuthResult
from domain.model.errors import DirectoryError
from domain.model.principal import Principal
from port.password_hasher import PasswordHasher
from port.user_directory import UserDirectory

logger = logging.getLogger(__name__)


class CredentialVerifier:
    def __init__(self, directory: UserDirectory, hasher: PasswordHasher):
        self.directory = directory
        self.hasher = hasher

    def _equalize_timing(self, password: str) -> None:
        # Exactly one verification, never a hash, so unknown emails cost the same as wrong passwords
        self.hasher.verify(password, self.hasher.dummy_hash)

    def verify(self, email: str, password: str) -> AuthResult:
        try:
            user = self.directory.get_by_email(email)
        except DirectoryError:
            logger.error("Credential check aborted: directory unavailable")
            return AuthResult.failure(AuthErrorCode.DIRECTORY_ERROR)

        if user is None:
            self._equalize_timing(password)
            logger.info("Login rejected", extra={"reason": AuthErrorCode.INVALID_CREDENTIALS.value})
            return AuthResult.failure(AuthErrorCode.INVALID_CREDENTIALS)

        if not user.is_active:
            logger.info("Login rejected", extra={"userId": user.id, "reason": AuthErrorCode.ACCOUNT_DISABLED.value})
            return AuthResult.failure(AuthErrorCode.ACCOUNT_DISABLED)

        if not user.password_hash:
            self._equalize_timing(password)
            logger.info("Login rejected", extra={"userId": user.id, "reason": AuthErrorCode.INVALID_CREDENTIALS.value})
            return AuthResult.failure(AuthErrorCode.INVALID_CREDENTIALS)

        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login rejected", extra={"userId": user.id, "reason": AuthErrorCode.INVALID_CREDENTIALS.value})
            return AuthResult.failure(AuthErrorCode.INVALID_CREDENTIALS)

        return AuthResult.success(Principal.from_user(user))
