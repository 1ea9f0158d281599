"""
Authentication and session lifecycle.

The :class:`.Authenticator` is the only place where the durable user store
and the ephemeral session and verification stores are used together. There
is no transaction spanning those stores, so each operation orders its writes
such that a failure part-way through leaves the system in a safe state:

- create a user, then issue a verification code, then send it. A user whose
  code was never issued or delivered is unverified, which is safe.
- consume a verification code, then mark the user verified. A failure after
  consumption leaves the user unverified and the code spent.
- refresh by rotating the session in a single atomic step in the ephemeral
  store. The old token is never usable after the new one exists.

.. code-block:: python

   from flask import Flask
   from userauth import auth

   app = Flask('userauth')
   auth.init_app(app)

   with app.app_context():
       result = auth.current_authenticator().login('alice', 'Secr3t!')

"""

import secrets
from typing import Any, Dict, Optional

from flask import current_app

from . import domain, logging, passwords
from .exceptions import InvalidCredentials, InvalidSession, MissingUserData, \
    NoSuchUser, WeakPassword
from .services import keystore, mail, sessions, users, verification
from .services.mail import EmailNotifier
from .services.sessions import SessionStore
from .services.users import UserStore
from .services.verification import VerificationStore

logger = logging.getLogger(__name__)

EXTENSION = 'userauth'


class Authenticator(object):
    """Coordinates the user, session and verification stores."""

    def __init__(self, users: UserStore, sessions: SessionStore,
                 verifications: VerificationStore, notifier: EmailNotifier,
                 hash_cost: int = passwords.DEFAULT_COST,
                 min_password_length: int = 6,
                 max_password_length: int = 255) -> None:
        self.users = users
        self.sessions = sessions
        self.verifications = verifications
        self.notifier = notifier
        self.hash_cost = hash_cost
        self.min_password_length = min_password_length
        self.max_password_length = max_password_length
        # Checked against when the username is unknown, so that a failed
        # login costs the same either way.
        self._dummy_hash = passwords.hash_password(secrets.token_urlsafe(16),
                                                   hash_cost)

    def _check_password_policy(self, password: str) -> None:
        # Length is measured in UTF-8 bytes, not characters.
        length = len(password.encode('utf-8'))
        if length < self.min_password_length:
            raise WeakPassword('Password must be at least'
                               f' {self.min_password_length} characters.')
        if length > self.max_password_length:
            raise WeakPassword('Password cannot exceed'
                               f' {self.max_password_length} characters.',
                               too_long=True)

    def create_user(self, username: str, email: str,
                    password: str) -> domain.User:
        """
        Register a new user, and send them a verification code.

        Parameters
        ----------
        username : str
        email : str
        password : str

        Returns
        -------
        :class:`.domain.User`
            The new user, unverified.

        Raises
        ------
        :class:`.MissingUserData`
        :class:`.WeakPassword`
        :class:`.UsernameTaken`
        :class:`.EmailTaken`
        :class:`.Unavailable`

        """
        if not username:
            raise MissingUserData('Username cannot be empty.', 'username')
        if not email:
            raise MissingUserData('Email cannot be empty.', 'email')
        self._check_password_policy(password)

        password_hash = passwords.hash_password(password, self.hash_cost)
        user = self.users.create(username, email, password_hash)
        logger.info('Created user %s', user.user_id)

        # The user exists from here on. Failures to issue or deliver a code
        # leave them unverified, which they are anyway.
        try:
            code = self.verifications.issue(user.user_id)
        except Exception as e:
            logger.error('Could not issue verification code for user %s: %s',
                         user.user_id, e)
            return user
        try:
            self.notifier.send(user.email, code.code, username=user.username)
        except Exception as e:
            logger.error('Could not send verification e-mail for user %s: %s',
                         user.user_id, e)
        return user

    def login(self, username: str, password: str) -> domain.AuthResult:
        """
        Exchange a username and password for a new session.

        Raises
        ------
        :class:`.InvalidCredentials`
            Whether the username is unknown or the password is wrong.

        """
        user = self.users.get_user_by_username(username) if username else None
        if user is None or not user.password_hash:
            passwords.check_password(password or '', self._dummy_hash)
            logger.debug('Login failed: no such user')
            raise InvalidCredentials('Invalid username or password')
        if not passwords.check_password(password or '', user.password_hash):
            logger.debug('Login failed for user %s', user.user_id)
            raise InvalidCredentials('Invalid username or password')
        session = self.sessions.issue(user.user_id)
        logger.info('User %s logged in', user.user_id)
        return domain.AuthResult.from_session(session)

    def refresh(self, session_token: str) -> domain.AuthResult:
        """
        Replace a live session token with a new one.

        The old token is invalid as soon as this returns.

        Raises
        ------
        :class:`.InvalidSession`

        """
        self.sessions.resolve(session_token)
        session = self.sessions.rotate(session_token)
        return domain.AuthResult.from_session(session)

    def logout(self, session_token: str) -> bool:
        """End a session. Returns ``False`` if it was not live."""
        return self.sessions.revoke(session_token)

    def verify_email(self, user_id: str, verification_code: str) -> bool:
        """
        Mark a user's e-mail address verified, using up their code.

        Returns
        -------
        bool
            ``False`` if the code is wrong, expired or already used.

        Raises
        ------
        :class:`.NoSuchUser`

        """
        if self.users.get_user_by_id(user_id) is None:
            raise NoSuchUser('No such user')
        if not self.verifications.consume(user_id, verification_code):
            logger.debug('Verification failed for user %s', user_id)
            return False
        self.users.mark_email_verified(user_id)
        logger.info('Verified e-mail for user %s', user_id)
        return True

    def get_user(self, user_id: str) -> Optional[domain.User]:
        """Get a user by ID."""
        return self.users.get_user_by_id(user_id)

    def get_user_by_username(self, username: str) -> Optional[domain.User]:
        """Get a user by username."""
        return self.users.get_user_by_username(username)

    def current_user(self, session_token: str) -> domain.User:
        """Get the user to whom a live session belongs."""
        user_id = self.sessions.resolve(session_token)
        user = self.users.get_user_by_id(user_id)
        if user is None:
            logger.error('Session refers to missing user %s', user_id)
            raise InvalidSession('No such session')
        return user

    def is_available(self) -> Dict[str, bool]:
        """Report the health of each backing store."""
        return {'users': self.users.is_available(),
                'sessions': self.sessions.is_available()}

    def close(self) -> None:
        """Release connections held by the stores."""
        self.users.close()
        self.sessions.close()


def init_app(app: Any) -> None:
    """Build an :class:`.Authenticator` for ``app`` from its config."""
    users.init_app(app)
    sessions.init_app(app)
    verification.init_app(app)
    mail.init_app(app)
    app.config.setdefault('PASSWORD_HASH_COST', '12')
    app.config.setdefault('MIN_PASSWORD_LENGTH', '6')
    app.config.setdefault('MAX_PASSWORD_LENGTH', '255')

    config = app.config
    connection = keystore.get_redis(config)
    app.extensions[EXTENSION] = Authenticator(
        users=users.get_user_store(config),
        sessions=sessions.get_session_store(config, connection),
        verifications=verification.get_verification_store(config,
                                                          connection),
        notifier=mail.get_notifier(config),
        hash_cost=int(config['PASSWORD_HASH_COST']),
        min_password_length=int(config['MIN_PASSWORD_LENGTH']),
        max_password_length=int(config['MAX_PASSWORD_LENGTH'])
    )


def current_authenticator() -> Authenticator:
    """Get the :class:`.Authenticator` for the current application."""
    return current_app.extensions[EXTENSION]  # type: ignore
