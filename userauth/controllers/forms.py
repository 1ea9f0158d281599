"""Forms for parsing and validating request bodies."""

from wtforms import Form, PasswordField, StringField
from wtforms.validators import Length


class RegistrationForm(Form):
    """New account details."""

    # Emptiness and password length are policy of the Authenticator, which
    # reports them with their own error codes.
    username = StringField('Username', validators=[Length(max=255)])
    email = StringField('Email address', validators=[Length(max=255)])
    password = PasswordField('Password')


class LoginForm(Form):
    """Log in form."""

    username = StringField('Username')
    password = PasswordField('Password')


class VerificationForm(Form):
    """A verification code sent by e-mail."""

    verification_code = StringField('Verification code',
                                    validators=[Length(max=255)])
