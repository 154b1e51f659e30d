"""Session binding and per-request principal rehydration.

Only the user id is stored in a session. Every resolve() reads the user from
the directory again, so role changes and account deactivation apply on the
very next request instead of living in a cached session payload.
"""

import logging
import os
import secrets

from domain.model.principal import Principal
from port.session_store import SessionStore
from port.user_directory import UserDirectory

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = int(os.getenv('SESSION_TTL_SECONDS', str(7 * 24 * 3600)))


class SessionPrincipalStore:
    def __init__(
        self,
        directory: UserDirectory,
        sessions: SessionStore,
        ttl_seconds: int = SESSION_TTL_SECONDS,
    ):
        self.directory = directory
        self.sessions = sessions
        self.ttl_seconds = ttl_seconds

    def bind(self, principal: Principal) -> str:
        """Start a session for principal and return its opaque token."""
        token = secrets.token_urlsafe(32)
        self.sessions.save(token, principal.id, self.ttl_seconds)
        logger.debug("Session bound", extra={"userId": principal.id})
        return token

    def resolve(self, token: str | None) -> Principal | None:
        """Return the session's principal, or None for an anonymous caller.

        Raises:
            SessionStoreError: session backend failed
            DirectoryError: user directory failed
        """
        if not token:
            return None

        user_id = self.sessions.get(token)
        if not user_id:
            return None

        user = self.directory.get_by_id(user_id)
        if user is None:
            logger.info("Session refers to a missing user, discarding", extra={"userId": user_id})
            self.sessions.delete(token)
            return None

        return Principal.from_user(user)

    def unbind(self, token: str | None) -> None:
        if token:
            self.sessions.delete(token)
