"""
Internal service API for the ephemeral session store.

Used to issue, rotate, resolve and revoke session tokens.

Each session is a Redis hash at ``session:<token>`` carrying the user ID and
the start and end times, with a key TTL equal to the session duration. The
token itself is opaque: it is 32 bytes from :mod:`secrets`, and is only ever
meaningful as a key in this store.
"""

import secrets
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

import dateutil.parser
import redis
from pytz import UTC

from ... import domain, logging
from ...exceptions import ConfigurationError, InvalidSession, Unavailable

logger = logging.getLogger(__name__)

PREFIX = 'session:'

ROTATE = """
local user_id = redis.call('HGET', KEYS[1], 'user_id')
if not user_id then
  return false
end
redis.call('DEL', KEYS[1])
redis.call('HSET', KEYS[2], 'user_id', user_id,
           'start_time', ARGV[1], 'end_time', ARGV[2])
redis.call('EXPIRE', KEYS[2], ARGV[3])
return user_id
"""
"""
Read the old session, delete it, and write its successor.

Runs server-side as a single command, so no other client can observe (or
rotate) the old token once this has begun.
"""


def _key(token: str) -> str:
    return f'{PREFIX}{token}'


def _generate_token() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(object):
    """
    Manages sessions in Redis.

    In fact, the Redis instance is thread safe and connections are attached
    at the time a command is executed. This class simply provides a container
    for configuration and the registered rotation script.
    """

    def __init__(self, connection: redis.Redis, duration: int = 7200) -> None:
        self.r = connection
        self._duration = duration
        self._rotate = self.r.register_script(ROTATE)

    def _window(self, ttl: Optional[int]) -> tuple:
        ttl = ttl if ttl is not None else self._duration
        start_time = datetime.now(tz=UTC)
        return start_time, start_time + timedelta(seconds=ttl), ttl

    def issue(self, user_id: str, ttl: Optional[int] = None) \
            -> domain.Session:
        """
        Create a new session for a user.

        Parameters
        ----------
        user_id : str
        ttl : int
            Lifetime of the session in seconds. Defaults to the configured
            session duration.

        Returns
        -------
        :class:`.domain.Session`

        """
        start_time, end_time, ttl = self._window(ttl)
        session = domain.Session(token=_generate_token(), user_id=user_id,
                                 start_time=start_time, end_time=end_time)
        try:
            with self.r.pipeline(transaction=True) as pipe:
                pipe.hset(_key(session.token), mapping={
                    'user_id': user_id,
                    'start_time': start_time.isoformat(),
                    'end_time': end_time.isoformat()
                })
                pipe.expire(_key(session.token), ttl)
                pipe.execute()
        except (redis.exceptions.ConnectionError,
                redis.exceptions.TimeoutError) as e:
            raise Unavailable(f'Connection failed: {e}') from e
        logger.debug('Issued session for user %s', user_id)
        return session

    def load(self, token: str) -> domain.Session:
        """
        Load a live session by token.

        Raises
        ------
        :class:`.InvalidSession`
            If the token is unknown, malformed or expired. These cases are
            not distinguished.

        """
        if not token:
            raise InvalidSession('No session token')
        try:
            data = self.r.hgetall(_key(token))
        except (redis.exceptions.ConnectionError,
                redis.exceptions.TimeoutError) as e:
            raise Unavailable(f'Connection failed: {e}') from e
        if not data:
            raise InvalidSession('No such session')
        try:
            session = domain.Session(
                token=token,
                user_id=data['user_id'],
                start_time=dateutil.parser.parse(data['start_time']),
                end_time=dateutil.parser.parse(data['end_time'])
            )
        except (KeyError, ValueError, OverflowError) as e:
            logger.error('Session record is malformed: %s', e)
            raise InvalidSession('Session data malformed') from e
        # The key TTL and the recorded end time should agree; trust neither
        # one alone.
        if session.expired:
            raise InvalidSession('Session has expired')
        return session

    def resolve(self, token: str) -> str:
        """Get the ID of the user to whom a live session belongs."""
        return self.load(token).user_id

    def rotate(self, token: str, ttl: Optional[int] = None) \
            -> domain.Session:
        """
        Replace a live session with a new one for the same user.

        The old token stops resolving at the same moment that the new token
        starts to. If two callers rotate the same token concurrently, exactly
        one of them gets a new session.

        Raises
        ------
        :class:`.InvalidSession`
            If ``token`` is not a live session.

        """
        if not token:
            raise InvalidSession('No session token')
        start_time, end_time, ttl = self._window(ttl)
        new_token = _generate_token()
        try:
            user_id = self._rotate(
                keys=[_key(token), _key(new_token)],
                args=[start_time.isoformat(), end_time.isoformat(), ttl]
            )
        except (redis.exceptions.ConnectionError,
                redis.exceptions.TimeoutError) as e:
            raise Unavailable(f'Connection failed: {e}') from e
        if user_id is None:
            raise InvalidSession('No such session')
        if isinstance(user_id, bytes):
            user_id = user_id.decode('utf-8')
        logger.debug('Rotated session for user %s', user_id)
        return domain.Session(token=new_token, user_id=user_id,
                              start_time=start_time, end_time=end_time)

    def revoke(self, token: str) -> bool:
        """
        Delete a session.

        Returns
        -------
        bool
            ``True`` if the session existed, ``False`` otherwise.

        """
        if not token:
            return False
        try:
            return bool(self.r.delete(_key(token)))
        except (redis.exceptions.ConnectionError,
                redis.exceptions.TimeoutError) as e:
            raise Unavailable(f'Connection failed: {e}') from e

    def close(self) -> None:
        """Release the connections held by the Redis client."""
        self.r.close()

    def is_available(self) -> bool:
        """Check our connection to Redis."""
        try:
            return bool(self.r.ping())
        except Exception as e:
            logger.error('Encountered an error talking to Redis: %s', e)
            return False


def init_app(app: Any) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('REDIS_HOST', 'localhost')
    app.config.setdefault('REDIS_PORT', '6379')
    app.config.setdefault('REDIS_DATABASE', '0')
    app.config.setdefault('REDIS_TOKEN', None)
    app.config.setdefault('REDIS_TIMEOUT', '2')
    app.config.setdefault('SESSION_DURATION', '7200')


def get_session_store(config: Mapping,
                      connection: redis.Redis) -> SessionStore:
    """Get a new :class:`.SessionStore` on a Redis connection."""
    duration = int(config.get('SESSION_DURATION', '7200'))
    if duration <= 0:
        raise ConfigurationError('SESSION_DURATION must be positive')
    return SessionStore(connection, duration)
