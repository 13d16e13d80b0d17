"""
Command-line helpers for operating the accounts service.

.. code-block:: bash

   $ DATABASE_URI=sqlite:///accounts.db pos-accounts init-db
   $ pos-accounts create-account --email admin@example.com --role admin \
       --first-name Ada --last-name Admin --verified

``create-account`` bypasses registration (no verification e-mail is sent),
so it is the way to bootstrap the first administrator. For dev/ops purposes;
it does not end live sessions.
"""

import logging
import uuid
from datetime import datetime

import click
from pytz import UTC

from .domain import Account, AccountStatus, Role
from .exceptions import ValidationFailure
from .factory import create_web_app
from .services import passwords, tokens
from .services.accounts import current_store

logger = logging.getLogger(__name__)

ROLES = [role.value for role in Role]


@click.group()
def main() -> None:
    """Manage the accounts database."""


@main.command('init-db')
def init_db() -> None:
    """Create the account tables, if they do not exist."""
    app = create_web_app()
    with app.app_context():
        current_store().create_all()
    click.echo('Account tables created.')


@main.command('create-account')
@click.option('--email', prompt='Email address')
@click.option('--password', prompt='Password', hide_input=True,
              confirmation_prompt=True)
@click.option('--first-name', prompt='First name')
@click.option('--last-name', prompt='Last name')
@click.option('--role', type=click.Choice(ROLES, case_sensitive=False),
              default=Role.CUSTOMER.value, show_default=True)
@click.option('--verified/--unverified', default=False,
              help='Mark the e-mail address as already verified.')
def create_account(email: str, password: str, first_name: str,
                   last_name: str, role: str, verified: bool) -> None:
    """Create an account directly in the credential store."""
    app = create_web_app()
    now = datetime.now(tz=UTC)
    with app.app_context():
        store = current_store()
        store.create_all()
        rounds = int(app.config['BCRYPT_ROUNDS'])
        lifetime = int(app.config['VERIFICATION_TOKEN_LIFETIME'])
        account = Account(
            account_id=str(uuid.uuid4()),
            email=email,
            password_hash=passwords.hash_password(password, rounds),
            first_name=first_name,
            last_name=last_name,
            role=Role.parse(role),
            status=AccountStatus.ACTIVE,
            email_verified=verified,
            verification_token=None if verified else tokens.generate_token(),
            token_expiry=None if verified
            else tokens.token_expiry(now, lifetime),
            created_at=now,
            updated_at=now
        )
        try:
            store.insert(account)
        except ValidationFailure as e:
            raise click.ClickException(str(e)) from e
    logger.info('Created account %s with role %s', account.account_id,
                account.role.value)
    click.echo(account.account_id)


if __name__ == '__main__':
    main()
