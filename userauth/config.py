"""Flask configuration."""

import os

#################### Durable user store ####################
SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///userauth.db')
"""Database holding the ``users`` table."""

DATABASE_TIMEOUT = os.environ.get('DATABASE_TIMEOUT', '5')
"""Seconds to wait for a database connection before giving up."""

CREATE_DB = bool(int(os.environ.get('CREATE_DB', 0)))
"""If 1, create the schema when the application starts."""

#################### Ephemeral session/code store ####################
REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_TOKEN = os.environ.get('REDIS_TOKEN', None)
"""This is the token used in the AUTH procedure."""

REDIS_TIMEOUT = os.environ.get('REDIS_TIMEOUT', '2')
"""Socket and connect timeout, in seconds, for every Redis command."""

REDIS_FAKE = bool(int(os.environ.get('REDIS_FAKE', 0)))
"""Use the FakeRedis library instead of a redis service.

Useful for testing, dev, beta."""

#################### Sessions and verification ####################
SESSION_DURATION = os.environ.get('SESSION_DURATION', '7200')
"""Lifetime of a session token, in seconds. Refreshing issues a new one."""

VERIFICATION_CODE_DURATION = os.environ.get('VERIFICATION_CODE_DURATION',
                                            '86400')
VERIFICATION_CODE_LENGTH = os.environ.get('VERIFICATION_CODE_LENGTH', '6')

PASSWORD_HASH_COST = os.environ.get('PASSWORD_HASH_COST', '12')
"""bcrypt work factor."""

MIN_PASSWORD_LENGTH = os.environ.get('MIN_PASSWORD_LENGTH', '6')
MAX_PASSWORD_LENGTH = os.environ.get('MAX_PASSWORD_LENGTH', '255')

#################### Mail ####################
SMTP_HOST = os.environ.get('SMTP_HOST')
"""If not set, verification e-mails are not sent."""

SMTP_PORT = os.environ.get('SMTP_PORT', '587')
SMTP_USE_STARTTLS = bool(int(os.environ.get('SMTP_USE_STARTTLS', '1')))
SMTP_USERNAME = os.environ.get('SMTP_USERNAME')
SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD')
SMTP_TIMEOUT = os.environ.get('SMTP_TIMEOUT', '10')
VERIFICATION_EMAIL_SENDER = os.environ.get('VERIFICATION_EMAIL_SENDER',
                                           'userauth <noreply@localhost>')

#################### Minor configs ####################
LOGLEVEL = os.environ.get('LOGLEVEL', 20)
