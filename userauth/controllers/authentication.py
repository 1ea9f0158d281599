"""
Controllers for logging in and out, and for refreshing sessions.

A successful login issues an opaque session token. The client sends it back
as a bearer token; the token is only meaningful as a key in the ephemeral
session store. Tokens expire, and may be exchanged for a fresh one with
:func:`refresh` before they do. A refreshed token is invalid immediately.
"""

from http import HTTPStatus as status

from werkzeug.datastructures import MultiDict

from .. import domain, logging
from ..auth import current_authenticator
from ..exceptions import InvalidCredentials, InvalidSession
from . import ResponseData, INVALID_LOGIN, error, invalid_session
from .forms import LoginForm

logger = logging.getLogger(__name__)


def login(form_data: MultiDict) -> ResponseData:
    """
    Log a user in.

    Parameters
    ----------
    form_data : MultiDict
        Should include `username` and `password` data.

    Returns
    -------
    dict
        The new session token, the user ID and the expiry time.
    int
        Status code. This should be 200 if all goes well.
    dict
        Headers to add to the response.

    """
    form = LoginForm(form_data)
    try:
        result = current_authenticator().login(form.username.data or '',
                                               form.password.data or '')
    except InvalidCredentials as e:
        logger.debug('Authentication failed: %s', e)
        return error(INVALID_LOGIN, 'invalid-login', status.UNAUTHORIZED)
    return domain.to_dict(result), status.OK, {}


def refresh(session_token: str) -> ResponseData:
    """Exchange a live session token for a new one."""
    try:
        result = current_authenticator().refresh(session_token)
    except InvalidSession as e:
        logger.debug('Refresh failed: %s', e)
        return invalid_session()
    return domain.to_dict(result), status.OK, {}


def logout(session_token: str) -> ResponseData:
    """
    Log the user out.

    Logging out twice is not an error; ``logged_out`` is ``False`` the
    second time.
    """
    logged_out = current_authenticator().logout(session_token)
    return {'logged_out': logged_out}, status.OK, {}


def current_session(session_token: str) -> ResponseData:
    """Get the user to whom the session token belongs."""
    try:
        user = current_authenticator().current_user(session_token)
    except InvalidSession as e:
        logger.debug('Session lookup failed: %s', e)
        return invalid_session()
    return {'user': domain.to_dict(user)}, status.OK, {}
