"""
Request controllers for the userauth API.

Each controller returns a tuple of response data, HTTP status and extra
headers; the routes decide how to render it. Expected failures come back as
``{'error': <message>, 'code': <code>}`` with a 4xx status. The codes are
stable and safe to branch on; the messages are for people.
"""

from http import HTTPStatus as status
from typing import Optional, Tuple

ResponseData = Tuple[dict, int, dict]

INVALID_LOGIN = 'Invalid username or password.'
INVALID_SESSION = 'Invalid session token.'


def error(message: str, code: str, status_code: int,
          headers: Optional[dict] = None) -> ResponseData:
    """Build the response for an expected failure."""
    return {'error': message, 'code': code}, status_code, headers or {}


def invalid_session() -> ResponseData:
    """The response for a token that is not (or is no longer) live."""
    return error(INVALID_SESSION, 'invalid-session-token',
                 status.UNAUTHORIZED,
                 {'WWW-Authenticate': 'Bearer error="invalid_token"'})


def invalid_request(errors: dict) -> ResponseData:
    """The response for a body that failed form validation."""
    data, code, headers = error('Invalid request.', 'invalid-request',
                                status.BAD_REQUEST)
    data['errors'] = errors
    return data, code, headers
