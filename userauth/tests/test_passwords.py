"""Tests for :mod:`userauth.passwords`."""

from unittest import TestCase

from mimesis import Person

from .. import passwords


class TestPasswords(TestCase):
    """Passwords are hashed with bcrypt."""

    def test_check_password(self):
        """The right password matches its hash; others do not."""
        password = Person().password(length=16)
        encrypted = passwords.hash_password(password, rounds=4)
        self.assertNotEqual(encrypted, password)
        self.assertTrue(passwords.check_password(password, encrypted))
        self.assertFalse(passwords.check_password(password + 'x', encrypted))

    def test_salted(self):
        """The same password hashes differently each time."""
        self.assertNotEqual(passwords.hash_password('Secr3t!', rounds=4),
                            passwords.hash_password('Secr3t!', rounds=4))

    def test_long_password(self):
        """Passwords longer than 72 bytes are significant in full."""
        password = 'p' * 200
        encrypted = passwords.hash_password(password, rounds=4)
        self.assertTrue(passwords.check_password(password, encrypted))
        self.assertFalse(passwords.check_password('p' * 199 + 'q',
                                                  encrypted))

    def test_unicode_password(self):
        """Non-ASCII passwords are supported."""
        encrypted = passwords.hash_password('pässwörd', rounds=4)
        self.assertTrue(passwords.check_password('pässwörd', encrypted))

    def test_malformed_hash(self):
        """A malformed hash never matches."""
        self.assertFalse(passwords.check_password('Secr3t!', 'not-a-hash'))
        self.assertFalse(passwords.check_password('Secr3t!', 'hàsh'))
