"""In-memory implementation of SessionStore for testing."""

from datetime import datetime, timedelta, timezone


class FakeSessionStore:
    def __init__(self):
        self.sessions: dict[str, tuple[str, datetime]] = {}

    def save(self, token: str, user_id: str, ttl_seconds: int) -> None:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        self.sessions[token] = (user_id, expires_at)

    def get(self, token: str) -> str | None:
        entry = self.sessions.get(token)
        if not entry:
            return None
        user_id, expires_at = entry
        if expires_at <= datetime.now(timezone.utc):
            del self.sessions[token]
            return None
        return user_id

    def delete(self, token: str) -> None:
        self.sessions.pop(token, None)

    def ping(self) -> bool:
        return True
