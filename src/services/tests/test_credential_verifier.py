"""Unit tests for CredentialVerifier — local email/password login."""

import unittest
from unittest.mock import MagicMock

from adapter.fake.user_directory import FakeUserDirectory
from adapter.security.bcrypt_hasher import BcryptPasswordHasher
from api.dependencies import get_credential_verifier
from domain.model.auth_result import AuthErrorCode
from domain.model.user import Role
from services.credential_verifier import CredentialVerifier


class TestCredentialVerifier(unittest.TestCase):

    def setUp(self):
        self.directory = FakeUserDirectory()
        self.hasher = BcryptPasswordHasher(rounds=4)
        self.verifier = CredentialVerifier(self.directory, self.hasher)
        self.alice = self.directory.create(
            'alice@example.com', 'Alice', 'Smith', password_hash=self.hasher.hash('Secret123!'),
        )

    def test_correct_password_returns_principal(self):
        result = self.verifier.verify('alice@example.com', 'Secret123!')

        self.assertTrue(result.ok)
        self.assertEqual(result.principal.id, self.alice.id)
        self.assertEqual(result.principal.role, Role.BUYER)

    def test_email_lookup_is_case_insensitive(self):
        result = self.verifier.verify('Alice@Example.com', 'Secret123!')

        self.assertTrue(result.ok)

    def test_wrong_password_and_unknown_email_are_indistinguishable(self):
        wrong = self.verifier.verify('alice@example.com', 'nope')
        unknown = self.verifier.verify('ghost@example.com', 'Secret123!')

        self.assertEqual(wrong, unknown)
        self.assertEqual(wrong.error, AuthErrorCode.INVALID_CREDENTIALS)

    def test_oauth_only_account_is_invalid_credentials(self):
        self.directory.create('g@example.com', 'G', 'User', provider_id='g-1')

        result = self.verifier.verify('g@example.com', 'anything')

        self.assertEqual(result.error, AuthErrorCode.INVALID_CREDENTIALS)

    def test_inactive_user_with_correct_password_is_disabled(self):
        self.directory.update(self.alice.id, is_active=False)

        result = self.verifier.verify('alice@example.com', 'Secret123!')

        self.assertEqual(result.error, AuthErrorCode.ACCOUNT_DISABLED)

    def test_does_not_touch_last_login(self):
        self.verifier.verify('alice@example.com', 'Secret123!')

        self.assertIsNone(self.directory.get_by_id(self.alice.id).last_login)

    def test_directory_failure_is_tagged_result(self):
        self.directory.fail_with = TimeoutError('mongo timed out')

        result = self.verifier.verify('alice@example.com', 'Secret123!')

        self.assertFalse(result.ok)
        self.assertEqual(result.error, AuthErrorCode.DIRECTORY_ERROR)

    def test_unknown_email_still_runs_a_hash_check(self):
        hasher = MagicMock()
        hasher.dummy_hash = 'dummy'
        hasher.verify.return_value = False
        verifier = CredentialVerifier(self.directory, hasher)

        verifier.verify('ghost@example.com', 'pw')

        hasher.verify.assert_called_once_with('pw', 'dummy')
        hasher.hash.assert_not_called()

    def test_fresh_verifiers_spend_equal_hash_work_on_both_paths(self):
        # The app builds a new verifier per request around one shared hasher
        hasher = MagicMock(wraps=self.hasher)
        hasher.dummy_hash = self.hasher.dummy_hash

        for _ in range(3):
            get_credential_verifier(directory=self.directory, hasher=hasher).verify('ghost@example.com', 'pw')
        unknown_ops = hasher.hash.call_count + hasher.verify.call_count
        hasher.reset_mock()

        for _ in range(3):
            get_credential_verifier(directory=self.directory, hasher=hasher).verify('alice@example.com', 'nope')
        wrong_ops = hasher.hash.call_count + hasher.verify.call_count

        self.assertEqual(unknown_ops, 3)
        self.assertEqual(unknown_ops, wrong_ops)

    def test_oauth_only_account_spends_one_verification(self):
        self.directory.create('g@example.com', 'G', 'User', provider_id='g-1')
        hasher = MagicMock(wraps=self.hasher)
        hasher.dummy_hash = self.hasher.dummy_hash

        CredentialVerifier(self.directory, hasher).verify('g@example.com', 'pw')

        self.assertEqual(hasher.verify.call_count, 1)
        hasher.hash.assert_not_called()


if __name__ == '__main__':
    unittest.main()
