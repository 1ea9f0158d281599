"""
Script for creating a new user. For dev/test purposes only.

The user is created through the same path as a registration, so a
verification code is issued and, if mail is configured, sent.

.. warning: DO NOT USE THIS ON A PRODUCTION DATABASE.

"""

import click

from userauth.auth import current_authenticator
from userauth.factory import create_app


@click.command()
@click.option('--username', prompt='Username')
@click.option('--email', prompt='Email address')
@click.option('--password', prompt=True, hide_input=True,
              confirmation_prompt=True)
@click.option('--verify', is_flag=True,
              help='Mark the e-mail address verified immediately.')
def create_user(username: str, email: str, password: str,
                verify: bool) -> None:
    """Create a new user."""
    app = create_app()
    with app.app_context():
        authenticator = current_authenticator()
        user = authenticator.create_user(username, email, password)
        if verify:
            authenticator.users.mark_email_verified(user.user_id)
        click.echo(f'Created user {user.username} with ID {user.user_id}')


if __name__ == '__main__':
    create_user()
