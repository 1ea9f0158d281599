"""Tests for :mod:`userauth.domain`."""

from datetime import datetime, timedelta
from unittest import TestCase

from pytz import UTC

from .. import domain


class TestUser(TestCase):
    """Users are never represented with their credentials."""

    def setUp(self):
        """Create a user."""
        now = datetime.now(tz=UTC)
        self.user = domain.User(user_id='u-1', username='alice',
                                email='alice@example.com', created_at=now,
                                updated_at=now, password_hash='secret')

    def test_to_dict(self):
        """The password hash is not included; datetimes are strings."""
        data = domain.to_dict(self.user)
        self.assertNotIn('password_hash', data)
        self.assertEqual(data['username'], 'alice')
        self.assertEqual(data['created_at'], self.user.created_at.isoformat())
        self.assertIsNone(data['email_verified_at'])

    def test_verified(self):
        """A user is verified once ``email_verified_at`` is set."""
        self.assertFalse(self.user.verified)
        verified = self.user._replace(email_verified_at=datetime.now(tz=UTC))
        self.assertTrue(verified.verified)

    def test_not_a_namedtuple(self):
        """Anything else has no dict representation."""
        self.assertEqual(domain.to_dict(object()), {})


class TestSession(TestCase):
    """Sessions know when they expire."""

    def test_expiry(self):
        """A session is expired after its end time."""
        now = datetime.now(tz=UTC)
        live = domain.Session(token='t', user_id='u-1', start_time=now,
                              end_time=now + timedelta(seconds=60))
        self.assertFalse(live.expired)
        self.assertGreater(live.expires, 0)

        dead = live._replace(end_time=now - timedelta(seconds=1))
        self.assertTrue(dead.expired)
        self.assertEqual(dead.expires, 0)

    def test_auth_result(self):
        """The result of a login carries the token and its expiry."""
        now = datetime.now(tz=UTC)
        session = domain.Session(token='t', user_id='u-1', start_time=now,
                                 end_time=now + timedelta(seconds=60))
        result = domain.AuthResult.from_session(session)
        self.assertEqual(domain.to_dict(result), {
            'session_token': 't',
            'user_id': 'u-1',
            'expires_at': session.end_time.isoformat()
        })
