"""Controllers for creating accounts and verifying e-mail addresses."""

from http import HTTPStatus as status

from flask import url_for
from werkzeug.datastructures import MultiDict

from .. import domain, logging
from ..auth import current_authenticator
from ..exceptions import Conflict, MissingUserData, NoSuchUser, WeakPassword
from . import ResponseData, error, invalid_request
from .forms import RegistrationForm, VerificationForm

logger = logging.getLogger(__name__)


def register(form_data: MultiDict) -> ResponseData:
    """
    Create a new account.

    A verification code is sent to the new user's e-mail address; the
    account is unverified until :func:`verify_email` succeeds.
    """
    form = RegistrationForm(form_data)
    if not form.validate():
        logger.debug('Registration form is invalid: %s', form.errors)
        return invalid_request(form.errors)
    try:
        user = current_authenticator().create_user(form.username.data or '',
                                                   form.email.data or '',
                                                   form.password.data or '')
    except MissingUserData as e:
        return error(str(e), f'{e.field}-empty', status.BAD_REQUEST)
    except WeakPassword as e:
        code = 'password-too-long' if e.too_long else 'password-too-short'
        return error(str(e), code, status.BAD_REQUEST)
    except Conflict as e:
        logger.debug('Registration conflict on %s', e.field)
        return error(str(e), f'{e.field}-taken', status.CONFLICT)

    location = url_for('userauth.get_user', user_id=user.user_id)
    return {'user': domain.to_dict(user)}, status.CREATED, \
        {'Location': location}


def verify_email(user_id: str, form_data: MultiDict) -> ResponseData:
    """
    Verify a user's e-mail address with the code that was sent to it.

    ``verified`` is ``False`` when the code is wrong, has expired or has
    already been used.
    """
    form = VerificationForm(form_data)
    if not form.validate():
        return invalid_request(form.errors)
    try:
        verified = current_authenticator().verify_email(
            user_id, form.verification_code.data or ''
        )
    except NoSuchUser:
        return error('User not found.', 'user-not-found', status.NOT_FOUND)
    return {'verified': verified}, status.OK, {}
