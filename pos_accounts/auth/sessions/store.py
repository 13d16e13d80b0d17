"""
Internal service API for the session store.

Sessions live in Redis under ``session:<id>`` with a TTL equal to the idle
window. Every successful :meth:`SessionStore.load` resets the TTL, so a
session dies after a period of inactivity rather than at a fixed time.
Expiry is passive: Redis drops the key, nothing sweeps.

The browser holds only a signed cookie naming the session id, the account
id and a nonce; the principal snapshot never leaves the server.
"""

import json
import logging
import random
import uuid
from datetime import datetime
from typing import Optional

import fakeredis
import jwt
import redis
from flask import Flask, current_app
from pytz import UTC

from ... import domain
from ..exceptions import InvalidSessionCookie, SessionCreationFailed, \
    SessionStoreUnavailable, SessionTeardownError, UnknownSession

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'session_store'
DEFAULT_DURATION = 900


def _generate_nonce(length: int = 8) -> str:
    return ''.join([str(random.randint(0, 9)) for i in range(length)])


def _session_key(session_id: str) -> str:
    return f'session:{session_id}'


def _account_key(account_id: str) -> str:
    return f'account-sessions:{account_id}'


class SessionStore(object):
    """
    Manages a connection to Redis.

    The StrictRedis instance is thread safe, and connections are attached at
    the time a command is executed. This class provides a container for
    configuration, and is shared by all requests of an application.
    """

    def __init__(self, host: str = 'localhost', port: int = 6379, db: int = 0,
                 secret: str = '', duration: int = DEFAULT_DURATION,
                 fake: bool = False) -> None:
        """Open the connection to Redis."""
        if fake:
            logger.debug('Using fakeredis for the session store')
            self.r = fakeredis.FakeStrictRedis()
        else:
            logger.debug('New Redis connection at %s, port %s', host, port)
            self.r = redis.StrictRedis(host=host, port=port, db=db)
        self._secret = secret
        self.duration = duration

    def create(self, principal: domain.Principal,
               session_id: Optional[str] = None) -> domain.Session:
        """
        Create a new session for ``principal``.

        Raises
        ------
        :class:`.SessionCreationFailed`

        """
        if session_id is None:
            session_id = str(uuid.uuid4())
        session = domain.Session(
            session_id=session_id,
            principal=principal,
            start_time=datetime.now(tz=UTC),
            nonce=_generate_nonce()
        )
        account_key = _account_key(principal.account_id)
        try:
            pipe = self.r.pipeline()
            pipe.set(_session_key(session_id),
                     json.dumps(domain.to_dict(session)), ex=self.duration)
            pipe.sadd(account_key, session_id)
            pipe.expire(account_key, self.duration)
            pipe.execute()
        except redis.exceptions.ConnectionError as e:
            raise SessionCreationFailed(f'Connection failed: {e}') from e
        except Exception as e:
            raise SessionCreationFailed(f'Failed to create: {e}') from e
        return session

    def generate_cookie(self, session: domain.Session) -> str:
        """Generate a cookie from a :class:`domain.Session`."""
        return self._pack_cookie({
            'session_id': session.session_id,
            'account_id': session.principal.account_id,
            'nonce': session.nonce
        })

    def load(self, cookie: str) -> domain.Session:
        """
        Load a session using a session cookie, and reset its idle timer.

        Raises
        ------
        :class:`.InvalidSessionCookie`
            The cookie is malformed, or does not match the stored session.
        :class:`.UnknownSession`
            The session has expired or was deleted.
        :class:`.SessionStoreUnavailable`
            Redis could not be reached.

        """
        cookie_data = self._unpack_cookie(cookie)
        try:
            session_id = cookie_data['session_id']
            account_id = cookie_data['account_id']
            nonce = cookie_data['nonce']
        except KeyError as e:
            raise InvalidSessionCookie('Cookie payload malformed') from e

        session = self.load_by_id(session_id)
        if session.nonce != nonce \
                or session.principal.account_id != account_id:
            raise InvalidSessionCookie('Invalid cookie; likely a forgery')
        try:
            pipe = self.r.pipeline()
            pipe.expire(_session_key(session_id), self.duration)
            # The index must outlive every session it names.
            pipe.expire(_account_key(account_id), self.duration)
            pipe.execute()
        except redis.exceptions.ConnectionError as e:
            raise SessionStoreUnavailable(f'Connection failed: {e}') from e
        return session

    def load_by_id(self, session_id: str) -> domain.Session:
        """Get session data by session ID."""
        try:
            raw = self.r.get(_session_key(session_id))
        except redis.exceptions.ConnectionError as e:
            raise SessionStoreUnavailable(f'Connection failed: {e}') from e
        if not raw:
            logger.debug('No such session: %s', session_id)
            raise UnknownSession(f'Failed to find session {session_id}')
        try:
            return domain.session_from_dict(json.loads(raw))
        except (KeyError, ValueError) as e:
            raise UnknownSession(f'Corrupt session {session_id}') from e

    def delete(self, cookie: str) -> None:
        """
        Delete the session named by ``cookie``.

        Raises
        ------
        :class:`.SessionTeardownError`

        """
        try:
            cookie_data = self._unpack_cookie(cookie)
        except InvalidSessionCookie as e:
            raise SessionTeardownError('Bad session cookie') from e
        self.delete_by_id(cookie_data.get('session_id', ''))

    def delete_by_id(self, session_id: str) -> None:
        """
        Delete a session in the key-value store by ID.

        Raises
        ------
        :class:`.SessionTeardownError`

        """
        try:
            self.r.delete(_session_key(session_id))
        except redis.exceptions.ConnectionError as e:
            raise SessionTeardownError(f'Connection failed: {e}') from e
        except Exception as e:
            raise SessionTeardownError(f'Failed to delete: {e}') from e

    def invalidate_account(self, account_id: str) -> int:
        """
        Delete every live session of an account.

        Returns the number of sessions removed.

        Raises
        ------
        :class:`.SessionTeardownError`

        """
        account_key = _account_key(account_id)
        try:
            session_ids = self.r.smembers(account_key)
            keys = [_session_key(sid.decode('utf-8')
                                 if isinstance(sid, bytes) else sid)
                    for sid in session_ids]
            removed = self.r.delete(*keys) if keys else 0
            self.r.delete(account_key)
        except redis.exceptions.ConnectionError as e:
            raise SessionTeardownError(f'Connection failed: {e}') from e
        except Exception as e:
            raise SessionTeardownError(f'Failed to delete: {e}') from e
        logger.debug('Removed %i sessions of account %s', removed, account_id)
        return int(removed)

    def _unpack_cookie(self, cookie: str) -> dict:
        try:
            return dict(jwt.decode(cookie, self._secret,
                                   algorithms=['HS256']))
        except jwt.exceptions.InvalidTokenError as e:
            raise InvalidSessionCookie('Session cookie is malformed') from e

    def _pack_cookie(self, cookie_data: dict) -> str:
        return jwt.encode(cookie_data, self._secret, algorithm='HS256')


def init_app(app: Flask, store: Optional[SessionStore] = None) -> SessionStore:
    """Set configuration defaults, and attach a store to ``app``."""
    config = app.config
    config.setdefault('REDIS_HOST', 'localhost')
    config.setdefault('REDIS_PORT', '6379')
    config.setdefault('REDIS_DATABASE', '0')
    config.setdefault('REDIS_FAKE', False)
    config.setdefault('JWT_SECRET', 'foosecret')
    config.setdefault('SESSION_DURATION', str(DEFAULT_DURATION))
    if store is None:
        store = SessionStore(
            host=config['REDIS_HOST'],
            port=int(config['REDIS_PORT']),
            db=int(config['REDIS_DATABASE']),
            secret=config['JWT_SECRET'],
            duration=int(config['SESSION_DURATION']),
            fake=bool(config['REDIS_FAKE'])
        )
    app.extensions[EXTENSION_KEY] = store
    return store


def current_session_store() -> SessionStore:
    """Get the :class:`.SessionStore` of the current application."""
    store: SessionStore = current_app.extensions[EXTENSION_KEY]
    return store
