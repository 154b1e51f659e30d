from typing import Protocol

from domain.model.provider_profile import ProviderProfile


class IdentityProvider(Protocol):
    """Federated login handshake (OAuth 2.0 authorization-code flow)."""
    @property
    def configured(self) -> bool: ...
    def authorization_url(self, state: str) -> str: ...
    def fetch_profile(self, code: str) -> ProviderProfile: ...
