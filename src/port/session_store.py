from typing import Protocol


class SessionStore(Protocol):
    """Server-side session storage. Each session holds exactly one value: a user id."""
    def save(self, token: str, user_id: str, ttl_seconds: int) -> None: ...
    def get(self, token: str) -> str | None: ...
    def delete(self, token: str) -> None: ...
    def ping(self) -> bool: ...
