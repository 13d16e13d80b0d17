"""
Account lifecycle: registration, verification, role change, archival.

An account moves along two independent axes. Verification takes a new
account from *unverified* to *verified*, once, by consuming the token that
was mailed at registration. Status moves a verified account from *active* to
*resigned*. Role changes leave both axes untouched.

.. code-block:: text

   [unverified] --verify_email--> [verified:active] --archive--> [resigned]
                                   [verified:active] --update_role--> (same)

A token that expires before use leaves the account unverified, with the
stale token still in place; re-issuing is handled elsewhere.
"""

import logging
import uuid
from datetime import datetime
from typing import NamedTuple, Optional, Tuple

from flask import current_app
from markupsafe import Markup
from pytz import UTC

from .domain import Account, AccountStatus, Role
from .exceptions import ExpiredToken, InvalidToken, MailDeliveryFailed, \
    NotFound, ValidationFailure
from .services import passwords, tokens
from .services.accounts import AccountStore, current_store
from .services.mail import Mailer, current_mailer

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = 'Verify your account'


class Registration(NamedTuple):
    """Outcome of :meth:`AccountLifecycle.register`."""

    account: Account
    email_sent: bool


def verification_message(account: Account, url: str) -> Tuple[str, str]:
    """Subject and HTML body of the verification e-mail."""
    html = Markup(
        '<h2>Welcome, {name}!</h2>'
        '<p>Please verify your email by clicking below:</p>'
        '<a href="{url}">{url}</a>'
    ).format(name=account.first_name, url=url)
    return VERIFICATION_SUBJECT, str(html)


class AccountLifecycle(object):
    """Owns the account state machine."""

    def __init__(self, store: AccountStore, mailer: Optional[Mailer] = None,
                 base_url: str = 'http://localhost:5000',
                 token_lifetime: int = tokens.DEFAULT_LIFETIME,
                 bcrypt_rounds: int = passwords.DEFAULT_ROUNDS) -> None:
        self.store = store
        self.mailer = mailer
        self.base_url = base_url.rstrip('/')
        self.token_lifetime = token_lifetime
        self.bcrypt_rounds = bcrypt_rounds

    def verification_url(self, token: str) -> str:
        return f'{self.base_url}/users/verify/{token}'

    def register(self, email: str, password: str, first_name: str,
                 last_name: str, now: Optional[datetime] = None) \
            -> Registration:
        """
        Create a new, unverified customer account and mail its token.

        A failure to send the verification e-mail does not undo the
        registration; it is reported via :attr:`Registration.email_sent`.

        Raises
        ------
        :class:`.ValidationFailure`
            An account with this e-mail address already exists.

        """
        if now is None:
            now = datetime.now(tz=UTC)
        if self.store.get_by_email(email) is not None:
            logger.debug('Registration rejected: e-mail already in use')
            raise ValidationFailure('User already exists with this email.')

        token = tokens.generate_token()
        account = Account(
            account_id=str(uuid.uuid4()),
            email=email,
            password_hash=passwords.hash_password(password,
                                                  self.bcrypt_rounds),
            first_name=first_name,
            last_name=last_name,
            role=Role.CUSTOMER,
            status=AccountStatus.ACTIVE,
            email_verified=False,
            verification_token=token,
            token_expiry=tokens.token_expiry(now, self.token_lifetime),
            created_at=now,
            updated_at=now
        )
        # The unique constraint on email is the real guard against
        # concurrent registrations; the lookup above only fails fast.
        self.store.insert(account)
        logger.info('Registered account %s', account.account_id)
        return Registration(account, self._send_verification(account))

    def _send_verification(self, account: Account) -> bool:
        if self.mailer is None:
            logger.warning('No mailer configured; verification mail for %s'
                           ' not sent', account.account_id)
            return False
        subject, html = verification_message(
            account, self.verification_url(account.verification_token or '')
        )
        try:
            self.mailer.send(account.email, subject, html)
        except MailDeliveryFailed as e:
            logger.warning('Verification mail for %s failed: %s',
                           account.account_id, e)
            return False
        return True

    def verify_email(self, token: str, now: Optional[datetime] = None) \
            -> Account:
        """
        Consume a verification token.

        Raises
        ------
        :class:`.InvalidToken`
            No account holds ``token`` (including one that was already used).
        :class:`.ExpiredToken`
            The token is past its expiry; the account stays unverified.

        """
        if now is None:
            now = datetime.now(tz=UTC)
        account = self.store.get_by_token(token)
        if account is None:
            raise InvalidToken('Invalid or expired verification link.')
        if account.token_expired(now):
            logger.debug('Token for %s expired at %s', account.account_id,
                         account.token_expiry)
            raise ExpiredToken('Verification link expired.')
        if not self.store.consume_verification_token(token, now):
            # Lost a race with a concurrent request for the same token.
            raise InvalidToken('Invalid or expired verification link.')
        logger.info('Verified account %s', account.account_id)
        return account._replace(email_verified=True, verification_token=None,
                                token_expiry=None, updated_at=now)

    def update_role(self, account_id: str, new_role: str,
                    now: Optional[datetime] = None) -> Role:
        """
        Change the role of an account.

        Raises
        ------
        :class:`.ValidationFailure`
            ``new_role`` is not a known role.
        :class:`.NotFound`
            There is no account with ``account_id``.

        """
        role = Role.parse(new_role)
        if now is None:
            now = datetime.now(tz=UTC)
        if not self.store.set_role(account_id, role, now):
            raise NotFound(f'No account {account_id}')
        logger.info('Account %s now has role %s', account_id, role.value)
        return role

    def archive_employee(self, account_id: str,
                         now: Optional[datetime] = None) -> None:
        """
        Mark an account resigned.

        Raises
        ------
        :class:`.NotFound`
            There is no account with ``account_id``.

        """
        if now is None:
            now = datetime.now(tz=UTC)
        if not self.store.set_status(account_id, AccountStatus.RESIGNED, now):
            raise NotFound(f'No account {account_id}')
        logger.info('Account %s archived', account_id)


def current_lifecycle() -> AccountLifecycle:
    """Build an :class:`.AccountLifecycle` from the current application."""
    config = current_app.config
    return AccountLifecycle(
        current_store(),
        current_mailer(),
        base_url=config.get('BASE_URL', 'http://localhost:5000'),
        token_lifetime=int(config.get('VERIFICATION_TOKEN_LIFETIME',
                                      tokens.DEFAULT_LIFETIME)),
        bcrypt_rounds=int(config.get('BCRYPT_ROUNDS',
                                     passwords.DEFAULT_ROUNDS))
    )
