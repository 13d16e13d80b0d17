"""
Credential store: persistence of :class:`.Account` records.

The store is an explicit object wrapping one SQLAlchemy engine. It is built
by the application factory and attached to the app; controllers obtain it
with :func:`current_store`. Every write is a single statement, so the
read-then-write races of a naive implementation are closed by the database
itself:

- registration relies on the UNIQUE constraint on ``email`` (insert if
  absent);
- verification consumes the token with one conditional UPDATE whose WHERE
  clause re-checks the token, its expiry and the verified flag.
"""

import logging
from typing import Generator, Optional
from contextlib import contextmanager
from datetime import datetime

from flask import Flask, current_app
from pytz import UTC
from sqlalchemy import create_engine, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DisconnectionError, IntegrityError, \
    OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ...domain import Account, AccountStatus, Role
from ...exceptions import StorageUnavailable, ValidationFailure
from .models import Base, DBAccount

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'account_store'


def _to_db_time(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as naive UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def _from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_domain(db_account: DBAccount) -> Account:
    return Account(
        account_id=db_account.account_id,
        email=db_account.email,
        password_hash=db_account.password_hash,
        first_name=db_account.first_name,
        last_name=db_account.last_name,
        role=Role.parse(db_account.role),
        status=AccountStatus(db_account.status),
        email_verified=bool(db_account.email_verified),
        verification_token=db_account.verification_token,
        token_expiry=_from_db_time(db_account.token_expiry),
        created_at=_from_db_time(db_account.created_at),
        updated_at=_from_db_time(db_account.updated_at)
    )


def _get_engine(database_uri: str) -> Engine:
    if database_uri in ('sqlite://', 'sqlite:///:memory:'):
        # One shared connection, otherwise each checkout sees an empty db.
        return create_engine(database_uri, poolclass=StaticPool,
                             connect_args={'check_same_thread': False})
    if database_uri.startswith('sqlite'):
        return create_engine(database_uri,
                             connect_args={'check_same_thread': False})
    return create_engine(database_uri, pool_pre_ping=True)


class AccountStore(object):
    """Find and atomically update account records."""

    def __init__(self, database_uri: str = 'sqlite://',
                 engine: Optional[Engine] = None) -> None:
        self.engine = engine if engine is not None \
            else _get_engine(database_uri)
        self._sessionmaker = sessionmaker(bind=self.engine,
                                          expire_on_commit=False)

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """Context manager for database transaction."""
        session = self._sessionmaker()
        try:
            yield session
            session.commit()
        except (OperationalError, DisconnectionError) as e:
            session.rollback()
            logger.warning('Credential store unavailable: %s', e)
            raise StorageUnavailable('Credential store unavailable') from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        """Drop all tables in the database."""
        Base.metadata.drop_all(self.engine)

    def insert(self, account: Account) -> Account:
        """
        Insert ``account`` unless its e-mail address is already taken.

        Raises
        ------
        :class:`.ValidationFailure`
            An account with the same e-mail address already exists.

        """
        db_account = DBAccount(
            account_id=account.account_id,
            email=account.email,
            password_hash=account.password_hash,
            first_name=account.first_name,
            last_name=account.last_name,
            role=Role.parse(account.role).value,
            status=AccountStatus(account.status).value,
            email_verified=account.email_verified,
            verification_token=account.verification_token,
            token_expiry=_to_db_time(account.token_expiry),
            created_at=_to_db_time(account.created_at),
            updated_at=_to_db_time(account.updated_at)
        )
        try:
            with self.transaction() as session:
                session.add(db_account)
        except IntegrityError as e:
            raise ValidationFailure(
                'User already exists with this email.'
            ) from e
        return account

    def get_by_id(self, account_id: str) -> Optional[Account]:
        with self.transaction() as session:
            db_account = session.get(DBAccount, account_id)
            return _to_domain(db_account) if db_account else None

    def get_by_email(self, email: str) -> Optional[Account]:
        """Exact match, as stored."""
        with self.transaction() as session:
            db_account = session.query(DBAccount) \
                .filter(DBAccount.email == email) \
                .first()
            return _to_domain(db_account) if db_account else None

    def get_by_token(self, token: str) -> Optional[Account]:
        if not token:
            return None
        with self.transaction() as session:
            db_account = session.query(DBAccount) \
                .filter(DBAccount.verification_token == token) \
                .first()
            return _to_domain(db_account) if db_account else None

    def consume_verification_token(self, token: str, now: datetime) -> bool:
        """
        Mark the holder of ``token`` verified and clear the token.

        Returns ``False`` if no unverified account holds a still-valid
        ``token`` at the time the statement executes.
        """
        stmt = update(DBAccount) \
            .where(DBAccount.verification_token == token) \
            .where(DBAccount.token_expiry >= _to_db_time(now)) \
            .where(DBAccount.email_verified.is_(False)) \
            .values(email_verified=True,
                    verification_token=None,
                    token_expiry=None,
                    updated_at=_to_db_time(now))
        with self.transaction() as session:
            result = session.execute(stmt)
            return result.rowcount == 1

    def set_role(self, account_id: str, role: Role, now: datetime) -> bool:
        """Set the role of an account; ``False`` if there is no such account."""
        return self._set(account_id, now, role=Role.parse(role).value)

    def set_status(self, account_id: str, status: AccountStatus,
                   now: datetime) -> bool:
        """Set the status of an account; ``False`` if there is no such account."""
        return self._set(account_id, now, status=AccountStatus(status).value)

    def _set(self, account_id: str, now: datetime, **values: str) -> bool:
        stmt = update(DBAccount) \
            .where(DBAccount.account_id == account_id) \
            .values(updated_at=_to_db_time(now), **values)
        with self.transaction() as session:
            result = session.execute(stmt)
            return result.rowcount == 1


def init_app(app: Flask, store: Optional[AccountStore] = None) -> AccountStore:
    """Build (or accept) the store for ``app`` and attach it."""
    app.config.setdefault('DATABASE_URI', 'sqlite://')
    if store is None:
        store = AccountStore(app.config['DATABASE_URI'])
    app.extensions[EXTENSION_KEY] = store
    return store


def current_store() -> AccountStore:
    """Get the :class:`.AccountStore` of the current application."""
    store: AccountStore = current_app.extensions[EXTENSION_KEY]
    return store
