from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderProfile:
    """Identity asserted by an external identity provider."""
    provider_id: str
    email: str
    first_name: str = ''
    last_name: str = ''
    avatar_url: str | None = None
