"""
Single-use e-mail verification codes.

There is at most one live code per user, at ``verification:<user_id>``; a
newly issued code replaces its predecessor. Codes expire with the key TTL.
"""

import secrets
import string
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

import redis
from pytz import UTC

from .. import domain, logging
from ..exceptions import Unavailable

logger = logging.getLogger(__name__)

PREFIX = 'verification:'
ALPHABET = string.ascii_uppercase

CONSUME = """
local stored = redis.call('GET', KEYS[1])
if stored and stored == ARGV[1] then
  redis.call('DEL', KEYS[1])
  return 1
end
return 0
"""
"""Delete the code only if it matches, in a single server-side step."""


def _key(user_id: str) -> str:
    return f'{PREFIX}{user_id}'


class VerificationStore(object):
    """Issues and consumes verification codes in Redis."""

    def __init__(self, connection: redis.Redis, duration: int = 86400,
                 length: int = 6) -> None:
        self.r = connection
        self._duration = duration
        self._length = length
        self._consume = self.r.register_script(CONSUME)

    def _generate_code(self) -> str:
        return ''.join(secrets.choice(ALPHABET) for _ in range(self._length))

    def issue(self, user_id: str, ttl: Optional[int] = None) \
            -> domain.VerificationCode:
        """Generate and store a new code for ``user_id``."""
        ttl = ttl if ttl is not None else self._duration
        code = domain.VerificationCode(
            code=self._generate_code(),
            user_id=user_id,
            end_time=datetime.now(tz=UTC) + timedelta(seconds=ttl)
        )
        try:
            self.r.set(_key(user_id), code.code, ex=ttl)
        except (redis.exceptions.ConnectionError,
                redis.exceptions.TimeoutError) as e:
            raise Unavailable(f'Connection failed: {e}') from e
        logger.debug('Issued verification code for user %s', user_id)
        return code

    def consume(self, user_id: str, code: str) -> bool:
        """
        Use up a verification code.

        Returns ``False`` if the code does not match, has expired, or was
        never issued; the caller cannot tell which. A code that does not
        match leaves the live code in place.
        """
        if not code:
            return False
        try:
            result = self._consume(keys=[_key(user_id)], args=[code])
        except (redis.exceptions.ConnectionError,
                redis.exceptions.TimeoutError) as e:
            raise Unavailable(f'Connection failed: {e}') from e
        return int(result) == 1


def init_app(app: Any) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('VERIFICATION_CODE_DURATION', '86400')
    app.config.setdefault('VERIFICATION_CODE_LENGTH', '6')


def get_verification_store(config: Mapping,
                           connection: redis.Redis) -> VerificationStore:
    """Get a new :class:`.VerificationStore` on a Redis connection."""
    duration = int(config.get('VERIFICATION_CODE_DURATION', '86400'))
    length = int(config.get('VERIFICATION_CODE_LENGTH', '6'))
    return VerificationStore(connection, duration, length)
