"""Defines account and session concepts for the POS accounts service."""

from typing import Any, NamedTuple, Optional
from datetime import datetime
from enum import Enum
import dateutil.parser
from pytz import UTC

from .exceptions import ValidationFailure


class Role(str, Enum):
    """Authorization role of an account. Closed set."""

    CUSTOMER = 'customer'
    EMPLOYEE = 'employee'
    ADMIN = 'admin'

    @classmethod
    def parse(cls, value: Any) -> 'Role':
        """
        Coerce ``value`` to a :class:`.Role`, ignoring case.

        Raises
        ------
        :class:`.ValidationFailure`
            If ``value`` does not name one of the known roles.

        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValidationFailure(f'Unknown role: {value}')


class AccountStatus(str, Enum):
    """Lifecycle status of an account."""

    ACTIVE = 'active'
    RESIGNED = 'resigned'


class Account(NamedTuple):
    """The durable identity record of a user of the POS."""

    account_id: str
    """System-generated unique identifier."""

    email: str
    """Unique across all accounts; matched exactly as stored."""

    password_hash: str
    """Salted one-way hash of the password. Plaintext is never stored."""

    first_name: str
    last_name: str

    role: Role = Role.CUSTOMER
    status: AccountStatus = AccountStatus.ACTIVE

    email_verified: bool = False
    """Whether the owner has proven control of :attr:`email`."""

    verification_token: Optional[str] = None
    """Opaque token mailed to the owner; present only while unverified."""

    token_expiry: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        """Only active accounts may log in."""
        return self.status is AccountStatus.ACTIVE

    def token_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the pending verification token is past its expiry."""
        if self.token_expiry is None:
            return False
        if now is None:
            now = datetime.now(tz=UTC)
        return self.token_expiry < now


class Principal(NamedTuple):
    """Snapshot of an authenticated account, bound to a session."""

    account_id: str
    first_name: str
    last_name: str
    email: str
    role: Role
    email_verified: bool = True

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()

    @classmethod
    def from_account(cls, account: Account) -> 'Principal':
        """Take a snapshot of ``account`` for use in a session."""
        return cls(
            account_id=account.account_id,
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            role=account.role,
            email_verified=account.email_verified
        )


class Session(NamedTuple):
    """Represents an authenticated browsing session."""

    session_id: str
    """Unique identifier for the session."""

    principal: Principal
    """The account for which the session was created."""

    start_time: datetime
    """When the session was created."""

    nonce: Optional[str] = None
    """A pseudo-random nonce generated when the session was created."""


# Helpers.


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a NamedTuple instance.

    Child NamedTuples are cast recursively; datetimes become ISO-8601
    strings and enum members become their values, so the result can be
    passed straight to :func:`json.dumps`.
    """
    if not hasattr(obj, '_asdict'):  # NamedTuple-generated classes have this.
        return {}

    def _cast(value: Any) -> Any:
        if hasattr(value, '_asdict'):
            return to_dict(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, list):
            return [_cast(o) for o in value]
        return value

    return {key: _cast(value) for key, value in obj._asdict().items()}


def principal_from_dict(data: dict) -> Principal:
    """Inverse of :func:`to_dict` for :class:`.Principal`."""
    return Principal(
        account_id=data['account_id'],
        first_name=data['first_name'],
        last_name=data['last_name'],
        email=data['email'],
        role=Role.parse(data['role']),
        email_verified=bool(data.get('email_verified', True))
    )


def session_from_dict(data: dict) -> Session:
    """Inverse of :func:`to_dict` for :class:`.Session`."""
    start_time = data['start_time']
    if isinstance(start_time, str):
        start_time = dateutil.parser.parse(start_time)
    return Session(
        session_id=data['session_id'],
        principal=principal_from_dict(data['principal']),
        start_time=start_time,
        nonce=data.get('nonce')
    )
