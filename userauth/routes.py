"""Provides the JSON API for userauth."""

from typing import Optional

from flask import Blueprint, Response, jsonify, make_response, request
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest

from . import logging
from .controllers import authentication, registration, users, ResponseData

logger = logging.getLogger(__name__)

blueprint = Blueprint('userauth', __name__, url_prefix='')


@blueprint.after_request
def apply_response_headers(response: Response) -> Response:
    """Apply response headers to all responses."""
    # Prevent clickjacking.
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Content-Security-Policy'] = "frame-ancestors 'none'"
    response.headers['Cache-Control'] = 'no-store'
    return response


def _form_data() -> MultiDict:
    """Read the JSON request body as form data."""
    if not request.get_data():
        return MultiDict()
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise BadRequest('Request body must be a JSON object')
    return MultiDict({key: str(value) for key, value in body.items()
                      if value is not None})


def _session_token(form_data: Optional[MultiDict] = None) -> str:
    """Get the session token from the Authorization header or the body."""
    auth_header = request.headers.get('Authorization')
    if auth_header:     # Try the header first.
        try:
            scheme, token = auth_header.split(None, 1)
        except ValueError:
            logger.debug('Auth header malformed')
            raise BadRequest('Auth header is malformed')
        if scheme.lower() != 'bearer':
            raise BadRequest('Auth header must use the Bearer scheme')
        return token.strip()
    if form_data is None:
        form_data = _form_data()
    return form_data.get('session_token', '')


def _render(data: ResponseData) -> Response:
    body, code, headers = data
    response: Response = make_response(jsonify(body), code, headers)
    return response


@blueprint.route('/users', methods=['POST'])
def create_user() -> Response:
    """Create a new account."""
    return _render(registration.register(_form_data()))


@blueprint.route('/users/<string:user_id>', methods=['GET'])
def get_user(user_id: str) -> Response:
    """Get a user by ID."""
    return _render(users.get_user(user_id))


@blueprint.route('/users/by-username/<string:username>', methods=['GET'])
def get_user_by_username(username: str) -> Response:
    """Get a user by username."""
    return _render(users.get_user_by_username(username))


@blueprint.route('/users/<string:user_id>/verify-email', methods=['POST'])
def verify_email(user_id: str) -> Response:
    """Verify an e-mail address with a code."""
    return _render(registration.verify_email(user_id, _form_data()))


@blueprint.route('/login', methods=['POST'])
def login() -> Response:
    """Log in with a username and password."""
    return _render(authentication.login(_form_data()))


@blueprint.route('/refresh', methods=['POST'])
def refresh() -> Response:
    """Exchange a session token for a new one."""
    return _render(authentication.refresh(_session_token()))


@blueprint.route('/logout', methods=['POST'])
def logout() -> Response:
    """End a session."""
    return _render(authentication.logout(_session_token()))


@blueprint.route('/session', methods=['GET'])
def current_session() -> Response:
    """Get the user who owns the session token."""
    return _render(authentication.current_session(_session_token()))


@blueprint.route('/status', methods=['GET'])
def service_status() -> Response:
    """Health check endpoint."""
    return _render(users.service_status())
