"""
Password hashing and verification.

Passwords are hashed with bcrypt. bcrypt only considers the first 72 bytes of
its input, so the password is first reduced to a base64-encoded SHA-256
digest; this keeps long passphrases significant in full.
"""

import hashlib
from base64 import b64encode

import bcrypt

from . import logging

logger = logging.getLogger(__name__)

DEFAULT_COST = 12


def _prehash(password: str) -> bytes:
    return b64encode(hashlib.sha256(password.encode('utf-8')).digest())


def hash_password(password: str, rounds: int = DEFAULT_COST) -> str:
    """Generate a salted bcrypt hash of a password."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_prehash(password), salt).decode('ascii')


def check_password(password: str, encrypted: str) -> bool:
    """
    Check a password against an encrypted hash.

    The comparison is constant-time. A malformed hash never matches.
    """
    try:
        return bcrypt.checkpw(_prehash(password), encrypted.encode('ascii'))
    except (ValueError, UnicodeEncodeError) as e:
        logger.error('Stored password hash is malformed: %s', e)
        return False
