"""Read-only views of user accounts."""

from http import HTTPStatus as status
from typing import Optional

from .. import domain
from ..auth import current_authenticator
from . import ResponseData, error


def _user_response(user: Optional[domain.User]) -> ResponseData:
    if user is None:
        return error('User not found.', 'user-not-found', status.NOT_FOUND)
    return {'user': domain.to_dict(user)}, status.OK, {}


def get_user(user_id: str) -> ResponseData:
    """Get a user by ID."""
    return _user_response(current_authenticator().get_user(user_id))


def get_user_by_username(username: str) -> ResponseData:
    """Get a user by username."""
    return _user_response(
        current_authenticator().get_user_by_username(username)
    )


def service_status() -> ResponseData:
    """Report whether the backing stores are reachable."""
    stores = current_authenticator().is_available()
    code = status.OK if all(stores.values()) else status.SERVICE_UNAVAILABLE
    return stores, code, {}
