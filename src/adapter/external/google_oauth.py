"""Google OAuth 2.0 adapter.

Implements IdentityProvider with the authorization-code flow: build the
consent URL, exchange the returned code for an access token, then read the
OpenID Connect userinfo endpoint into a ProviderProfile.
"""

import logging
import os
from urllib.parse import urlencode

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from domain.model.errors import IdentityProviderError
from domain.model.provider_profile import ProviderProfile

logger = logging.getLogger(__name__)

GOOGLE_CLIENT_ID = os.getenv('GOOGLE_CLIENT_ID', '')
GOOGLE_CLIENT_SECRET = os.getenv('GOOGLE_CLIENT_SECRET', '')
GOOGLE_CALLBACK_URL = os.getenv('GOOGLE_CALLBACK_URL', '')

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = ("openid", "profile", "email")
API_TIMEOUT_SECONDS = 10.0


class GoogleOAuthAdapter:
    def __init__(
        self,
        client_id: str = GOOGLE_CLIENT_ID,
        client_secret: str = GOOGLE_CLIENT_SECRET,
        callback_url: str = GOOGLE_CALLBACK_URL,
        transport: httpx.BaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.callback_url)

    def authorization_url(self, state: str) -> str:
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.callback_url,
            'response_type': 'code',
            'scope': ' '.join(SCOPES),
            'state': state,
            'prompt': 'select_account',
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def fetch_profile(self, code: str) -> ProviderProfile:
        """Exchange an authorization code and return the caller's profile.

        Raises:
            IdentityProviderError: the exchange failed or the profile has no email
        """
        try:
            with httpx.Client(timeout=API_TIMEOUT_SECONDS, transport=self._transport) as client:
                access_token = self._exchange_code(client, code)
                response = _get_userinfo(client, access_token)
                response.raise_for_status()
                userinfo = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Google OAuth HTTP error",
                extra={"status_code": e.response.status_code, "url": str(e.request.url)},
            )
            raise IdentityProviderError("Google sign-in failed") from e
        except httpx.RequestError as e:
            logger.warning("Google OAuth request error", extra={"error_type": type(e).__name__})
            raise IdentityProviderError("Google sign-in failed") from e

        return _to_profile(userinfo)

    def _exchange_code(self, client: httpx.Client, code: str) -> str:
        # Authorization codes are single-use; no retry here
        response = client.post(
            TOKEN_URL,
            data={
                'code': code,
                'client_id': self.client_id,
                'client_secret': self.client_secret,
                'redirect_uri': self.callback_url,
                'grant_type': 'authorization_code',
            },
            headers={'Accept': 'application/json'},
        )
        response.raise_for_status()
        access_token = response.json().get('access_token')
        if not access_token:
            raise IdentityProviderError("Token response did not include an access token")
        return access_token


@retry(
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=4),
    reraise=True,
)
def _get_userinfo(client: httpx.Client, access_token: str) -> httpx.Response:
    """Fetch userinfo with automatic retry on transient failures."""
    return client.get(USERINFO_URL, headers={'Authorization': f"Bearer {access_token}"})


def _to_profile(userinfo: dict) -> ProviderProfile:
    provider_id = userinfo.get('sub')
    email = userinfo.get('email')
    if not provider_id or not email:
        raise IdentityProviderError("Google profile is missing an id or email")

    return ProviderProfile(
        provider_id=str(provider_id),
        email=email,
        first_name=userinfo.get('given_name') or '',
        last_name=userinfo.get('family_name') or '',
        avatar_url=userinfo.get('picture') or None,
    )
