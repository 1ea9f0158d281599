"""
Durable user store.

User records live in a relational database and are accessed through
SQLAlchemy. The database is the source of truth for credentials, and enforces
uniqueness of usernames and e-mail addresses; a constraint violation on create
surfaces as :class:`.UsernameTaken` or :class:`.EmailTaken`.
"""

import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Generator, Mapping, Optional

from pytz import UTC
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import DisconnectionError, IntegrityError, \
    OperationalError, TimeoutError as PoolTimeout
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session
from sqlalchemy.pool import StaticPool

from ... import domain, logging
from ...exceptions import UsernameTaken, EmailTaken, RegistrationFailed, \
    Unavailable
from .models import Base, DBUser

logger = logging.getLogger(__name__)


def now() -> datetime:
    """Get the current time in UTC."""
    return datetime.now(tz=UTC)


def _aware(t: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if t is not None and t.tzinfo is None:
        return t.replace(tzinfo=UTC)
    return t


def _to_domain(db_user: DBUser) -> domain.User:
    return domain.User(
        user_id=db_user.user_id,
        username=db_user.username,
        email=db_user.email,
        created_at=_aware(db_user.created_at),
        updated_at=_aware(db_user.updated_at),
        email_verified_at=_aware(db_user.email_verified_at),
        password_hash=db_user.password_hash
    )


class UserStore(object):
    """
    Reads and writes user records.

    The engine is thread safe and pools its connections; a new ORM session is
    opened for each operation and closed when it completes.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessionmaker = sessionmaker(bind=engine, autoflush=False,
                                          expire_on_commit=False)

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """Context manager for database transaction."""
        session = self._sessionmaker()
        try:
            yield session
            # The caller may have explicitly committed already, in order to
            # implement exception handling logic. We only want to commit here
            # if there is anything remaining that is not flushed.
            if session.new or session.dirty or session.deleted:
                session.commit()
        except (OperationalError, DisconnectionError, PoolTimeout) as e:
            # Refused or dropped connections, and pool checkout timeouts.
            logger.error('Database unavailable, rolling back: %s', e)
            session.rollback()
            raise Unavailable('Database unavailable') from e
        except Exception as e:
            logger.error('Commit failed, rolling back: %s', str(e))
            session.rollback()
            raise
        finally:
            session.close()

    def create(self, username: str, email: str,
               password_hash: str) -> domain.User:
        """
        Create a new user.

        Parameters
        ----------
        username : str
        email : str
        password_hash : str
            Already hashed; see :mod:`userauth.passwords`.

        Returns
        -------
        :class:`.domain.User`

        Raises
        ------
        :class:`.UsernameTaken`
            If the username is in use. Takes precedence over the e-mail.
        :class:`.EmailTaken`
            If the e-mail address is in use.
        :class:`.Unavailable`
            If the database could not be reached.

        """
        created = now()
        db_user = DBUser(
            user_id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=password_hash,
            created_at=created,
            updated_at=created
        )
        try:
            with self.transaction() as session:
                session.add(db_user)
                session.commit()
        except IntegrityError as e:
            logger.debug('Create user failed on a constraint: %s', e)
            if self.get_user_by_username(username) is not None:
                raise UsernameTaken('Username is already in use.') from e
            if self._email_exists(email):
                raise EmailTaken('Email is already in use.') from e
            raise RegistrationFailed('Could not create user') from e
        logger.debug('Created user %s', db_user.user_id)
        return _to_domain(db_user)

    def get_user_by_id(self, user_id: str) -> Optional[domain.User]:
        """Load a user by ID. Returns ``None`` if there is no such user."""
        with self.transaction() as session:
            db_user = session.query(DBUser) \
                .filter(DBUser.user_id == user_id) \
                .first()
        return _to_domain(db_user) if db_user is not None else None

    def get_user_by_username(self, username: str) -> Optional[domain.User]:
        """Load a user by (case-sensitive) username."""
        with self.transaction() as session:
            db_user = session.query(DBUser) \
                .filter(DBUser.username == username) \
                .first()
        return _to_domain(db_user) if db_user is not None else None

    def _email_exists(self, email: str) -> bool:
        with self.transaction() as session:
            data = session.query(DBUser.user_id) \
                .filter(DBUser.email == email) \
                .first()
        return data is not None

    def mark_email_verified(self, user_id: str) -> bool:
        """
        Record that a user has verified their e-mail address.

        Idempotent: a user who is already verified keeps the original
        timestamp.

        Returns
        -------
        bool
            Whether or not the record was changed.

        """
        verified = now()
        with self.transaction() as session:
            count = session.query(DBUser) \
                .filter(DBUser.user_id == user_id) \
                .filter(DBUser.email_verified_at.is_(None)) \
                .update({DBUser.email_verified_at: verified,
                         DBUser.updated_at: verified},
                        synchronize_session=False)
            session.commit()
        return bool(count)

    def is_available(self) -> bool:
        """Check our connection to the database."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text('SELECT 1'))
        except Exception as e:
            logger.error('Encountered an error talking to database: %s', e)
            return False
        return True

    def create_all(self) -> None:
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        """Drop all tables in the database."""
        Base.metadata.drop_all(self.engine)

    def close(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()


def init_app(app: Any) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('SQLALCHEMY_DATABASE_URI', 'sqlite:///userauth.db')
    app.config.setdefault('DATABASE_TIMEOUT', '5')


def connect_args(uri: str, timeout: int = 5) -> dict:
    """
    Driver arguments that bound how long a connection or statement may wait.

    Parameters
    ----------
    uri : str
        SQLAlchemy database URI.
    timeout : int
        Seconds.

    Returns
    -------
    dict

    """
    backend = make_url(uri).get_backend_name()
    if backend == 'sqlite':
        return {'check_same_thread': False, 'timeout': timeout}
    if backend == 'postgresql':
        return {'connect_timeout': timeout,
                'options': f'-c statement_timeout={timeout * 1000}'}
    if backend in ('mysql', 'mariadb'):
        return {'connect_timeout': timeout, 'read_timeout': timeout,
                'write_timeout': timeout}
    logger.warning('No driver timeouts known for %s databases', backend)
    return {}


def get_engine(uri: str, timeout: int = 5) -> Engine:
    """Create an engine for ``uri`` with bounded connection waits."""
    args = connect_args(uri, timeout)
    if make_url(uri).get_backend_name() == 'sqlite':
        if make_url(uri).database in (None, '', ':memory:'):
            # One shared connection, or every thread sees an empty database.
            return create_engine(uri, connect_args=args, poolclass=StaticPool)
        return create_engine(uri, connect_args=args)
    return create_engine(uri, connect_args=args, pool_pre_ping=True,
                         pool_timeout=timeout)


def get_user_store(config: Mapping) -> UserStore:
    """Get a new :class:`.UserStore` for the configured database."""
    uri = config.get('SQLALCHEMY_DATABASE_URI', 'sqlite:///userauth.db')
    timeout = int(config.get('DATABASE_TIMEOUT', '5'))
    return UserStore(get_engine(uri, timeout))
