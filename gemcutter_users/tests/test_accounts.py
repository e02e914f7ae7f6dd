"""Tests for :mod:`gemcutter_users.accounts`."""

from unittest import TestCase, mock
import re

from .. import accounts, models, rubygems, web_hooks
from ..exceptions import EmailInvalid, HandleInvalid, NoSuchUser, \
    RegistrationFailed
from .util import temporary_db

API_KEY = re.compile(r'^[a-f0-9]{32}$')


class TestRegister(TestCase):
    """Tests for :func:`accounts.register`."""

    def test_register(self):
        """A new user gets a hashed password, an API key and a token."""
        with temporary_db() as session:
            user = accounts.register('nick@example.com', 'thepassword',
                                     handle='qrush')
            self.assertIsNotNone(user.user_id)
            self.assertEqual(user.handle, 'qrush')
            self.assertRegex(user.api_key, API_KEY)
            self.assertIsNotNone(user.confirmation_token)
            self.assertFalse(user.email_confirmed)

            db_user = session.query(models.DBUser).first()
            self.assertNotEqual(db_user.encrypted_password, 'thepassword')
            self.assertNotIn('thepassword', db_user.encrypted_password)

    def test_register_without_handle(self):
        """Handles are optional."""
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword')
            self.assertIsNone(user.handle)
            self.assertEqual(user.name, 'nick@example.com')

    def test_register_invalid_handle(self):
        """An invalid handle is rejected before anything is written."""
        with temporary_db() as session:
            with self.assertRaises(HandleInvalid):
                accounts.register('nick@example.com', 'thepassword',
                                  handle='1abc')
            self.assertEqual(session.query(models.DBUser).count(), 0)

    def test_register_taken_handle(self):
        with temporary_db():
            accounts.register('nick@example.com', 'thepassword',
                              handle='qrush')
            with self.assertRaises(HandleInvalid) as ctx:
                accounts.register('other@example.com', 'thepassword',
                                  handle='qrush')
            self.assertEqual(ctx.exception.errors, ['has already been taken'])

    def test_register_taken_email(self):
        with temporary_db():
            accounts.register('nick@example.com', 'thepassword')
            with self.assertRaises(RegistrationFailed):
                accounts.register('nick@example.com', 'otherpassword')

    def test_register_invalid_email(self):
        """An address without @ could be mistaken for a handle."""
        with temporary_db() as session:
            accounts.register('nick@example.com', 'thepassword',
                              handle='qrush')
            for email in ['qrush', '', None]:
                with self.assertRaises(EmailInvalid):
                    accounts.register(email, 'thepassword')
            self.assertEqual(session.query(models.DBUser).count(), 1)

    def test_api_keys_are_unique(self):
        with temporary_db():
            one = accounts.register('one@example.com', 'thepassword')
            two = accounts.register('two@example.com', 'thepassword')
            self.assertNotEqual(one.api_key, two.api_key)


class TestLookup(TestCase):
    """Tests for loading users."""

    def test_find_by_handle_or_email(self):
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword',
                                     handle='qrush')
            self.assertEqual(
                accounts.find_by_handle_or_email('nick@example.com'), user)
            self.assertEqual(accounts.find_by_handle_or_email('qrush'), user)
            self.assertIsNone(accounts.find_by_handle_or_email('bad'))

    def test_find_by_api_key(self):
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword')
            self.assertEqual(accounts.find_by_api_key(user.api_key), user)
            self.assertIsNone(accounts.find_by_api_key('f' * 32))
            self.assertIsNone(accounts.find_by_api_key(''))

    def test_exists(self):
        with temporary_db():
            accounts.register('nick@example.com', 'thepassword',
                              handle='qrush')
            self.assertTrue(accounts.does_handle_exist('qrush'))
            self.assertFalse(accounts.does_handle_exist('other'))
            self.assertTrue(accounts.does_email_exist('nick@example.com'))
            self.assertFalse(accounts.does_email_exist('bad@example.com'))

    def test_get_user_by_id(self):
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword')
            self.assertEqual(accounts.get_user_by_id(user.user_id), user)
            with self.assertRaises(NoSuchUser):
                accounts.get_user_by_id('9999')


class TestUpdate(TestCase):
    """Tests for changing handles and e-mail addresses."""

    def test_update_handle(self):
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword')
            user = accounts.update_handle(user, 'qrush')
            self.assertEqual(user.handle, 'qrush')
            self.assertEqual(user.name, 'qrush')

    def test_clear_handle(self):
        """Clearing the handle makes the e-mail address the name."""
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword',
                                     handle='qrush')
            user = accounts.update_handle(user, None)
            self.assertIsNone(user.handle)
            self.assertEqual(user.name, 'nick@example.com')

    def test_update_handle_invalid(self):
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword',
                                     handle='qrush')
            with self.assertRaises(HandleInvalid):
                accounts.update_handle(user, 'a')
            self.assertEqual(accounts.get_user_by_id(user.user_id).handle,
                             'qrush')

    def test_update_handle_taken(self):
        with temporary_db():
            accounts.register('one@example.com', 'thepassword',
                              handle='taken')
            user = accounts.register('two@example.com', 'thepassword')
            with self.assertRaises(HandleInvalid):
                accounts.update_handle(user, 'taken')

    def test_changed_email_needs_confirmation(self):
        """A new confirmation token is generated when the email changes."""
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword')
            user = accounts.confirm_email(user)
            self.assertIsNone(user.confirmation_token)
            self.assertTrue(user.email_confirmed)

            user = accounts.update_email(user, 'changed@example.com')
            self.assertEqual(user.email, 'changed@example.com')
            self.assertTrue(user.email_reset)
            self.assertFalse(user.email_confirmed)
            self.assertIsNotNone(user.confirmation_token)

    def test_unchanged_email(self):
        """Saving the same address does not reset confirmation."""
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword')
            user = accounts.confirm_email(user)
            user = accounts.update_email(user, 'nick@example.com')
            self.assertFalse(user.email_reset)
            self.assertIsNone(user.confirmation_token)

    def test_update_email_invalid(self):
        with temporary_db():
            accounts.register('one@example.com', 'thepassword',
                              handle='qrush')
            user = accounts.register('two@example.com', 'thepassword')
            with self.assertRaises(EmailInvalid):
                accounts.update_email(user, 'qrush')
            self.assertEqual(accounts.get_user_by_id(user.user_id).email,
                             'two@example.com')

    def test_update_email_taken(self):
        """Taking another user's address fails and changes nothing."""
        with temporary_db():
            accounts.register('one@example.com', 'thepassword')
            user = accounts.register('two@example.com', 'thepassword')
            with self.assertRaises(RegistrationFailed):
                accounts.update_email(user, 'one@example.com')
            user = accounts.get_user_by_id(user.user_id)
            self.assertEqual(user.email, 'two@example.com')
            self.assertFalse(user.email_reset)

    def test_update_email_taken_concurrently(self):
        """A duplicate caught by the database is reported the same way."""
        with temporary_db():
            accounts.register('one@example.com', 'thepassword')
            user = accounts.register('two@example.com', 'thepassword')
            with mock.patch(f'{accounts.__name__}.does_email_exist') as exists:
                exists.return_value = False
                with self.assertRaises(RegistrationFailed):
                    accounts.update_email(user, 'one@example.com')
            self.assertEqual(accounts.get_user_by_id(user.user_id).email,
                             'two@example.com')


class TestDelete(TestCase):
    """Tests for :func:`accounts.delete`."""

    def test_delete_cascades(self):
        """Ownerships, subscriptions and hooks go with the user."""
        with temporary_db() as session:
            user = accounts.register('nick@example.com', 'thepassword')
            rubygem = rubygems.create_rubygem('rails')
            rubygems.add_ownership(user, rubygem, approved=True)
            rubygems.add_subscription(user, rubygem)
            web_hooks.create_web_hook(user, 'http://example.com/hook',
                                      rubygem)
            web_hooks.create_web_hook(user, 'http://example.com/all')

            accounts.delete(user)

            self.assertEqual(session.query(models.DBUser).count(), 0)
            self.assertEqual(session.query(models.DBOwnership).count(), 0)
            self.assertEqual(session.query(models.DBSubscription).count(), 0)
            self.assertEqual(session.query(models.DBWebHook).count(), 0)
            self.assertEqual(session.query(models.DBRubygem).count(), 1)
            with self.assertRaises(NoSuchUser):
                accounts.get_user_by_id(user.user_id)


class TestIsImporter(TestCase):
    """Tests for :func:`accounts.is_importer`."""

    def test_importer(self):
        """True if the user is the configured RubyForge importer."""
        with temporary_db():
            user = accounts.register('importer@example.com', 'thepassword')
            self.assertTrue(accounts.is_importer(user, user.user_id))
            self.assertTrue(accounts.is_importer(user, int(user.user_id)))

    def test_not_importer(self):
        with temporary_db():
            user = accounts.register('nick@example.com', 'thepassword')
            self.assertFalse(accounts.is_importer(user, '42'))
            self.assertFalse(accounts.is_importer(user, None))
