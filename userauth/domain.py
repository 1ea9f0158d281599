"""Defines user and session concepts for the userauth service."""

from typing import Any, NamedTuple, Optional
from datetime import datetime
from pytz import UTC

PRIVATE_FIELDS = frozenset({'password_hash'})
"""Fields that must never appear in an external representation."""


class User(NamedTuple):
    """Represents a registered user."""

    user_id: str
    """Unique, immutable identifier for the user."""

    username: str
    """Case-sensitive unique username."""

    email: str
    """The user's e-mail address. Unique across all users."""

    created_at: datetime
    """When the account was created."""

    updated_at: datetime
    """When the account record last changed."""

    email_verified_at: Optional[datetime] = None
    """When the e-mail address was verified; ``None`` if it has not been."""

    password_hash: Optional[str] = None
    """Opaque credential hash. Excluded from :func:`to_dict`."""

    @property
    def verified(self) -> bool:
        """Whether or not the user's e-mail address has been verified."""
        return self.email_verified_at is not None


class Session(NamedTuple):
    """Represents an authenticated session."""

    token: str
    """Opaque session token, also the key of the session in the store."""

    user_id: str
    """The user for which the session was created."""

    start_time: datetime
    """When this token was issued."""

    end_time: datetime
    """When the session expires unless it is refreshed."""

    @property
    def expired(self) -> bool:
        """Expired if the current time is later than :attr:`.end_time`."""
        return datetime.now(tz=UTC) >= self.end_time

    @property
    def expires(self) -> int:
        """
        Number of seconds until the session expires.

        If the session is already expired, returns 0.
        """
        duration = (self.end_time - datetime.now(tz=UTC)).total_seconds()
        return max(int(duration), 0)


class VerificationCode(NamedTuple):
    """A single-use code that proves control of an e-mail address."""

    code: str
    user_id: str
    end_time: datetime


class AuthResult(NamedTuple):
    """The result of a successful login or refresh."""

    session_token: str
    """Token to send as a bearer token on subsequent requests."""

    user_id: str
    expires_at: datetime

    @classmethod
    def from_session(cls, session: Session) -> 'AuthResult':
        """Build the result handed back to the caller for a new session."""
        return cls(session_token=session.token, user_id=session.user_id,
                   expires_at=session.end_time)


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a NamedTuple instance.

    This uses the built-in ``_asdict`` method on the instance, but also casts
    child NamedTuples (recursively) and datetimes so that the result can be
    serialized as JSON. Fields in :const:`PRIVATE_FIELDS` are dropped.

    Parameters
    ----------
    obj : tuple
        A NamedTuple instance.

    Returns
    -------
    dict

    """
    if not hasattr(obj, '_asdict'):  # NamedTuple-generated classes have this.
        return {}

    def _cast(value: Any) -> Any:
        if hasattr(value, '_asdict'):
            value = to_dict(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, list):
            value = [_cast(o) for o in value]
        return value

    return {key: _cast(value) for key, value in obj._asdict().items()
            if key not in PRIVATE_FIELDS}
