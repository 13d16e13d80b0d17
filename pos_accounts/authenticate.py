"""
Validate credentials against stored account state.

Checks run in a fixed order and each failure has its own exception, since
the login form reports the reason to the user:

1. an account exists for the e-mail address (:class:`.NoSuchAccount`);
2. its e-mail address is verified (:class:`.EmailNotVerified`);
3. it is active (:class:`.AccountInactive`);
4. the password matches (:class:`.InvalidCredentials`).

An unverified or resigned account is therefore rejected without the
password ever being checked.
"""

import logging

from .domain import Principal
from .exceptions import AccountInactive, EmailNotVerified, \
    InvalidCredentials, NoSuchAccount
from .services.accounts import AccountStore
from .services.passwords import check_password

logger = logging.getLogger(__name__)


def authenticate(store: AccountStore, email: str, password: str) -> Principal:
    """
    Validate an e-mail address and password.

    Returns
    -------
    :class:`.Principal`
        Snapshot of the authenticated account.

    Raises
    ------
    :class:`.AuthenticationFailed`
        One of its subclasses, naming the first check that failed.

    """
    account = store.get_by_email(email)
    if account is None:
        logger.debug('No account for the presented e-mail')
        raise NoSuchAccount('User not found.')
    if not account.email_verified:
        logger.debug('Account %s is not verified', account.account_id)
        raise EmailNotVerified('Please verify your email first.')
    if not account.is_active:
        logger.debug('Account %s is %s', account.account_id,
                     account.status.value)
        raise AccountInactive('Account is not active.')
    if not check_password(password, account.password_hash):
        logger.debug('Bad password for account %s', account.account_id)
        raise InvalidCredentials('Invalid password.')
    logger.debug('Authenticated account %s', account.account_id)
    return Principal.from_account(account)
