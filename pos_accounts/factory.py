"""Application factory for the accounts app."""

import logging
from typing import Optional

from flask import Flask, Response, make_response
from werkzeug.exceptions import Forbidden, InternalServerError

from . import app_logging
from .auth import Auth
from .auth import sessions
from .auth.decorators import ACCESS_DENIED
from .routes import ui
from .services import accounts, mail

logger = logging.getLogger(__name__)

GENERIC_FAILURE = 'Something went wrong.'


def create_web_app(account_store: Optional[accounts.AccountStore] = None,
                   session_store: Optional[sessions.SessionStore] = None,
                   mailer: Optional[mail.Mailer] = None,
                   **config: object) -> Flask:
    """
    Initialize and configure the accounts application.

    Collaborators may be passed in (e.g. test doubles); otherwise they are
    built from the configuration. Keyword arguments override entries of
    :mod:`pos_accounts.config` before any collaborator is built.
    """
    app = Flask('pos_accounts')
    app.config.from_object('pos_accounts.config')
    app.config.update(config)

    app_logging.setup_logger(int(app.config['LOGLEVEL']),
                             json=bool(app.config['LOG_JSON']))

    accounts.init_app(app, account_store)
    sessions.init_app(app, session_store)
    mail.init_app(app, mailer)
    Auth(app)

    app.register_blueprint(ui.blueprint)

    @app.errorhandler(Forbidden)
    def handle_forbidden(error: Forbidden) -> Response:
        return make_response(ACCESS_DENIED, Forbidden.code,
                             {'Content-Type': 'text/plain; charset=utf-8'})

    @app.errorhandler(InternalServerError)
    def handle_internal_error(error: InternalServerError) -> Response:
        original = getattr(error, 'original_exception', None)
        if original is not None:
            logger.error('Unhandled exception: %r', original,
                         exc_info=original)
        return make_response(GENERIC_FAILURE, InternalServerError.code,
                             {'Content-Type': 'text/plain; charset=utf-8'})

    if app.config['CREATE_DB']:
        app.extensions[accounts.EXTENSION_KEY].create_all()

    return app
