"""
Attaches the authenticated session to each request.

Intended for use in a Flask application factory:

.. code-block:: python

   from flask import Flask
   from pos_accounts.auth import Auth

   def create_web_app() -> Flask:
       app = Flask('pos_accounts')
       Auth(app)
       ...

Before each request the session cookie is resolved against the session
store and the result is attached as ``request.auth`` (a
:class:`.domain.Session`, or ``None``). After each request that carried a
live session, the cookie is re-issued so that its lifetime tracks the
server-side idle window.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from flask import Flask, Response, has_request_context, request

from .. import domain
from . import sessions
from .exceptions import InvalidSessionCookie, SessionStoreUnavailable, \
    UnknownSession

logger = logging.getLogger(__name__)


def current_session() -> Optional[domain.Session]:
    """The session bound to the current request, if any."""
    if not has_request_context():
        return None
    return getattr(request, 'auth', None)


def current_principal() -> Optional[domain.Principal]:
    """The principal bound to the current request, if any."""
    session = current_session()
    return session.principal if session else None


def set_session_cookie(response: Response, app: Flask, value: str,
                       max_age: int) -> None:
    """Set (or, with ``max_age=0``, clear) the session cookie."""
    params: Dict[str, Any] = dict(httponly=True, samesite='Lax')
    if app.config.get('AUTH_SESSION_COOKIE_SECURE'):
        params['secure'] = True
    response.set_cookie(app.config['AUTH_SESSION_COOKIE_NAME'], value,
                        max_age=timedelta(seconds=max_age), **params)


class Auth(object):
    """Flask extension binding sessions to requests."""

    def __init__(self, app: Optional[Flask] = None) -> None:
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Attach the request hooks, and a template global for the user."""
        self.app = app
        app.config.setdefault('AUTH_SESSION_COOKIE_NAME', 'POS_SESSION_ID')
        app.config.setdefault('AUTH_SESSION_COOKIE_SECURE', False)
        if sessions.store.EXTENSION_KEY not in app.extensions:
            sessions.init_app(app)
        app.before_request(self.load_session)
        app.after_request(self.refresh_cookie)

        @app.context_processor
        def inject_current_user() -> Dict[str, Any]:
            return {'current_user': current_principal()}

    def load_session(self) -> None:
        """Resolve the session cookie, and attach the session to the request."""
        request.auth = None
        cookie = request.cookies.get(self.app.config['AUTH_SESSION_COOKIE_NAME'])
        if not cookie:
            return
        store = sessions.current_session_store()
        try:
            request.auth = store.load(cookie)
        except InvalidSessionCookie as e:
            logger.debug('Invalid session cookie: %s', e)
        except UnknownSession as e:
            logger.debug('Session is expired or unknown: %s', e)
        except SessionStoreUnavailable as e:
            logger.warning('Session store unavailable; continuing without'
                           ' a session: %s', e)

    def refresh_cookie(self, response: Response) -> Response:
        """Slide the cookie lifetime along with the server-side session."""
        session = getattr(request, 'auth', None)
        if session is None:
            return response
        cookie_name = self.app.config['AUTH_SESSION_COOKIE_NAME']
        # The view already set (or cleared) the cookie, e.g. logout.
        if any(header.startswith(f'{cookie_name}=')
               for header in response.headers.getlist('Set-Cookie')):
            return response
        store = sessions.current_session_store()
        set_session_cookie(response, self.app,
                           request.cookies.get(cookie_name, ''),
                           store.duration)
        return response
