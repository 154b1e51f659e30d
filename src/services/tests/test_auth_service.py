"""Unit tests for auth_service — registration, login bookkeeping, password and profile changes."""

import unittest

from adapter.fake.user_directory import FakeUserDirectory
from adapter.security.bcrypt_hasher import BcryptPasswordHasher
from domain.model.errors import DuplicateError, NotFoundError, ValidationError
from domain.model.principal import Principal
from domain.model.user import Role
from services import auth_service


class TestRegister(unittest.TestCase):

    def setUp(self):
        self.directory = FakeUserDirectory()
        self.hasher = BcryptPasswordHasher(rounds=4)

    def test_register_creates_local_buyer(self):
        user = auth_service.register(self.directory, self.hasher, ' Alice@Example.com', 'Secret123!', 'Alice', 'Smith')

        self.assertEqual(user.email, 'alice@example.com')
        self.assertEqual(user.role, Role.BUYER)
        self.assertFalse(user.is_email_verified)
        self.assertIsNone(user.provider_id)
        self.assertTrue(self.hasher.verify('Secret123!', user.password_hash))
        self.assertIsNotNone(user.last_login)

    def test_register_duplicate_email(self):
        auth_service.register(self.directory, self.hasher, 'a@example.com', 'Secret123!', 'Al', 'Ice')

        with self.assertRaises(DuplicateError):
            auth_service.register(self.directory, self.hasher, 'A@example.com', 'Secret123!', 'Al', 'Ice')

    def test_weak_passwords_rejected(self):
        for password in ('Short1', 'alllowercase1', 'ALLUPPERCASE1', 'NoDigitsHere', 'Ab1' + 'x' * 80):
            with self.subTest(password=password):
                with self.assertRaises(ValidationError):
                    auth_service.register(self.directory, self.hasher, 'a@example.com', password, 'Al', 'Ice')
        self.assertEqual(self.directory.store, {})


class TestRecordLogin(unittest.TestCase):

    def test_advances_last_login(self):
        directory = FakeUserDirectory()
        user = directory.create('a@example.com', 'A', 'A', password_hash='h')

        auth_service.record_login(directory, Principal.from_user(user))

        self.assertIsNotNone(directory.get_by_id(user.id).last_login)


class TestChangePassword(unittest.TestCase):

    def setUp(self):
        self.directory = FakeUserDirectory()
        self.hasher = BcryptPasswordHasher(rounds=4)
        self.user = auth_service.register(self.directory, self.hasher, 'a@example.com', 'Secret123!', 'Al', 'Ice')

    def test_change_password(self):
        auth_service.change_password(self.directory, self.hasher, self.user.id, 'Secret123!', 'Another456!')

        stored = self.directory.get_by_id(self.user.id)
        self.assertTrue(self.hasher.verify('Another456!', stored.password_hash))

    def test_wrong_current_password(self):
        with self.assertRaises(ValidationError):
            auth_service.change_password(self.directory, self.hasher, self.user.id, 'wrong', 'Another456!')

    def test_oauth_only_account_cannot_change_password(self):
        google_user = self.directory.create('g@example.com', 'G', 'U', provider_id='g-1')

        with self.assertRaises(ValidationError):
            auth_service.change_password(self.directory, self.hasher, google_user.id, 'x', 'Another456!')

    def test_missing_user(self):
        with self.assertRaises(NotFoundError):
            auth_service.change_password(self.directory, self.hasher, 'ghost', 'x', 'Another456!')


class TestUpdateProfile(unittest.TestCase):

    def setUp(self):
        self.directory = FakeUserDirectory()
        self.user = self.directory.create('a@example.com', 'Al', 'Ice', avatar='old.png')

    def test_updates_only_supplied_fields(self):
        user = auth_service.update_profile(self.directory, self.user.id, first_name='  Alice ')

        self.assertEqual(user.first_name, 'Alice')
        self.assertEqual(user.last_name, 'Ice')
        self.assertEqual(user.avatar, 'old.png')

    def test_blank_avatar_clears_it(self):
        user = auth_service.update_profile(self.directory, self.user.id, avatar='  ')

        self.assertIsNone(user.avatar)

    def test_nothing_to_change(self):
        with self.assertRaises(ValidationError):
            auth_service.update_profile(self.directory, self.user.id)

    def test_name_too_short_after_trim(self):
        with self.assertRaises(ValidationError):
            auth_service.update_profile(self.directory, self.user.id, last_name=' x ')

    def test_missing_user(self):
        with self.assertRaises(NotFoundError):
            auth_service.update_profile(self.directory, 'ghost', first_name='Alice')


if __name__ == '__main__':
    unittest.main()
