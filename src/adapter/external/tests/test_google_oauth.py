"""Unit tests for GoogleOAuthAdapter using httpx.MockTransport."""

import unittest
from urllib.parse import parse_qs, urlparse

import httpx

from adapter.external.google_oauth import (
    GoogleOAuthAdapter,
    TOKEN_URL,
    USERINFO_URL,
)
from domain.model.errors import IdentityProviderError


def _adapter(handler) -> GoogleOAuthAdapter:
    return GoogleOAuthAdapter(
        client_id='client-id',
        client_secret='client-secret',
        callback_url='http://localhost:8000/auth/google/callback',
        transport=httpx.MockTransport(handler),
    )


USERINFO = {
    'sub': '1098765',
    'email': 'carol@example.com',
    'email_verified': True,
    'given_name': 'Carol',
    'family_name': 'White',
    'picture': 'https://lh3.googleusercontent.com/a/photo',
}


class TestGoogleOAuthAdapter(unittest.TestCase):

    def test_authorization_url_carries_client_and_state(self):
        adapter = _adapter(lambda request: httpx.Response(500))

        url = urlparse(adapter.authorization_url('state-123'))
        params = parse_qs(url.query)

        self.assertEqual(url.netloc, 'accounts.google.com')
        self.assertEqual(params['client_id'], ['client-id'])
        self.assertEqual(params['state'], ['state-123'])
        self.assertEqual(params['response_type'], ['code'])
        self.assertEqual(params['redirect_uri'], ['http://localhost:8000/auth/google/callback'])
        self.assertIn('email', params['scope'][0].split())

    def test_configured(self):
        self.assertTrue(_adapter(lambda r: httpx.Response(200)).configured)
        self.assertFalse(GoogleOAuthAdapter(client_id='', client_secret='', callback_url='').configured)

    def test_fetch_profile(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == TOKEN_URL:
                seen['token_body'] = parse_qs(request.content.decode())
                return httpx.Response(200, json={'access_token': 'at-1', 'token_type': 'Bearer'})
            if str(request.url) == USERINFO_URL:
                seen['authorization'] = request.headers['Authorization']
                return httpx.Response(200, json=USERINFO)
            return httpx.Response(404)

        profile = _adapter(handler).fetch_profile('auth-code')

        self.assertEqual(seen['token_body']['code'], ['auth-code'])
        self.assertEqual(seen['token_body']['grant_type'], ['authorization_code'])
        self.assertEqual(seen['authorization'], 'Bearer at-1')
        self.assertEqual(profile.provider_id, '1098765')
        self.assertEqual(profile.email, 'carol@example.com')
        self.assertEqual(profile.first_name, 'Carol')
        self.assertEqual(profile.last_name, 'White')
        self.assertEqual(profile.avatar_url, USERINFO['picture'])

    def test_profile_without_picture(self):
        info = {k: v for k, v in USERINFO.items() if k != 'picture'}

        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={'access_token': 'at-1'})
            return httpx.Response(200, json=info)

        self.assertIsNone(_adapter(handler).fetch_profile('code').avatar_url)

    def test_rejected_code_raises(self):
        adapter = _adapter(lambda request: httpx.Response(400, json={'error': 'invalid_grant'}))

        with self.assertRaises(IdentityProviderError):
            adapter.fetch_profile('bad-code')

    def test_missing_access_token_raises(self):
        adapter = _adapter(lambda request: httpx.Response(200, json={}))

        with self.assertRaises(IdentityProviderError):
            adapter.fetch_profile('code')

    def test_profile_without_email_raises(self):
        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={'access_token': 'at-1'})
            return httpx.Response(200, json={'sub': '1'})

        with self.assertRaises(IdentityProviderError):
            _adapter(handler).fetch_profile('code')


if __name__ == '__main__':
    unittest.main()
