"""Connection to the key-value store shared by sessions and codes."""

from typing import Mapping

import fakeredis
import redis

from .. import logging

logger = logging.getLogger(__name__)


def get_redis(config: Mapping) -> redis.Redis:
    """
    Get a Redis client for the configured node.

    The client is thread safe; connections are drawn from its pool at the
    time a command is executed. With ``REDIS_FAKE`` set, an in-process
    FakeRedis server is used instead.
    """
    if config.get('REDIS_FAKE', False):
        logger.warning('Using FakeRedis; sessions will not persist')
        return fakeredis.FakeRedis(decode_responses=True)

    host = config.get('REDIS_HOST', 'localhost')
    port = int(config.get('REDIS_PORT', '6379'))
    db = int(config.get('REDIS_DATABASE', '0'))
    token = config.get('REDIS_TOKEN', None)
    timeout = float(config.get('REDIS_TIMEOUT', '2'))
    logger.debug('New Redis connection at %s, port %s', host, port)
    return redis.Redis(host=host, port=port, db=db, password=token,
                       socket_timeout=timeout,
                       socket_connect_timeout=timeout,
                       decode_responses=True)
