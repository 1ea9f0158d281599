"""Provides an app factory for the userauth service."""

from http import HTTPStatus as status
from typing import Any, Mapping, Optional

import click
from flask import Flask, Response, jsonify
from flask.cli import with_appcontext
from werkzeug.exceptions import HTTPException

from . import auth, logging, routes
from .exceptions import Unavailable

logger = logging.getLogger(__name__)


def jsonify_exception(error: HTTPException) -> Response:
    """Render an HTTP exception as JSON."""
    exc_resp = error.get_response()
    response: Response = jsonify(reason=error.description)
    response.status_code = exc_resp.status_code
    return response


def handle_unavailable(error: Unavailable) -> Response:
    """A backing store could not be reached; the client may retry."""
    logger.error('Backing store unavailable: %s', error)
    response: Response = jsonify(error='Service temporarily unavailable.',
                                 code='unavailable')
    response.status_code = status.SERVICE_UNAVAILABLE
    response.headers['Retry-After'] = '1'
    return response


def handle_unexpected(error: Exception) -> Response:
    """Anything else is our fault. Details go to the log only."""
    logger.exception('Unhandled exception: %s', error)
    response: Response = jsonify(error='An unknown error occurred.',
                                 code='unknown-error')
    response.status_code = status.INTERNAL_SERVER_ERROR
    return response


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""
    app.errorhandler(HTTPException)(jsonify_exception)
    app.errorhandler(Unavailable)(handle_unavailable)
    app.errorhandler(Exception)(handle_unexpected)


@click.command('create-db')
@with_appcontext
def create_db_command() -> None:
    """Create the users table if it does not exist."""
    auth.current_authenticator().users.create_all()
    click.echo('Created database tables')


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Initialize an instance of the userauth service.

    Parameters
    ----------
    config : Mapping
        Overrides for values in :mod:`userauth.config`, applied before any
        store is connected.

    """
    app = Flask('userauth')
    app.config.from_pyfile('config.py')
    if config:
        app.config.update(config)
    logging.setLevel(int(app.config['LOGLEVEL']))

    auth.init_app(app)

    app.register_blueprint(routes.blueprint)
    register_error_handlers(app)
    app.cli.add_command(create_db_command)

    if app.config['CREATE_DB']:
        with app.app_context():
            auth.current_authenticator().users.create_all()

    return app
