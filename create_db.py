"""Create the users table in the configured database."""

import click

from userauth.auth import current_authenticator
from userauth.factory import create_app


@click.command()
@click.option('--drop', is_flag=True, help='Drop existing tables first.')
def create_db(drop: bool) -> None:
    """Create the users table; optionally drop it first."""
    app = create_app()
    with app.app_context():
        users = current_authenticator().users
        if drop:
            click.echo('Dropping tables')
            users.drop_all()
        users.create_all()
        click.echo('Created tables')


if __name__ == '__main__':
    create_db()
