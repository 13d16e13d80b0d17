"""
Controllers for logging in and out.

When an account logs in, a session holding a snapshot of the account is
created in the session store, and the browser is issued a signed cookie
naming it. The browser is then sent to the dashboard for the account's role.
"""

import logging
from http import HTTPStatus as status
from typing import Any, Dict, Optional, Tuple

from flask import url_for
from retry import retry
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import InternalServerError

from ..authenticate import authenticate
from ..domain import Principal, Role
from ..exceptions import AuthenticationFailed, StorageUnavailable
from ..auth.exceptions import SessionCreationFailed, SessionTeardownError
from ..auth.sessions import current_session_store
from ..services.accounts import current_store
from .forms import LoginForm

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]

DASHBOARDS = {
    Role.ADMIN: 'ui.admin_dashboard',
    Role.EMPLOYEE: 'ui.employee_dashboard',
    Role.CUSTOMER: 'ui.dashboard',
}
"""Landing view for each role after login."""


def dashboard_for(role: Role) -> str:
    """URL of the landing view for ``role``."""
    return url_for(DASHBOARDS.get(Role.parse(role), 'ui.dashboard'))


def login(method: str, form_data: MultiDict) -> ResponseData:
    """
    Provide the login form, or log the user in.

    Returns
    -------
    dict
        Additional data to add to the response. On success, includes the
        ``cookies`` to set.
    int
        Status code. This should be 303 (See Other) if all goes well.
    dict
        Headers to add to the response.

    """
    if method == 'GET':
        logger.debug('Request for login form')
        return {'form': LoginForm()}, status.OK, {}

    logger.debug('Login form submitted')
    form = LoginForm(form_data)
    data: Dict[str, Any] = {'form': form}
    if not form.validate():
        logger.debug('Form data is not valid')
        return data, status.BAD_REQUEST, {}

    try:
        principal = _do_authn(form.email.data, form.password.data)
    except AuthenticationFailed as e:
        logger.debug('Authentication failed: %s', type(e).__name__)
        data['error'] = str(e)
        return data, status.BAD_REQUEST, {}
    except Exception:
        logger.exception('Error during authentication')
        data['error'] = 'Something went wrong.'
        return data, status.INTERNAL_SERVER_ERROR, {}

    sessions = current_session_store()
    try:
        session = sessions.create(principal)
        cookie = sessions.generate_cookie(session)
        logger.debug('Created session: %s', session.session_id)
    except SessionCreationFailed as e:
        logger.info('Could not create session: %s', e)
        raise InternalServerError('Cannot log in') from e

    data['cookies'] = {'auth_session_cookie': (cookie, sessions.duration)}
    return data, status.SEE_OTHER, {'Location': dashboard_for(principal.role)}


def logout(session_cookie: Optional[str], next_page: str) -> ResponseData:
    """
    Log the user out.

    Parameters
    ----------
    session_cookie : str or None
        If not None, the session it names is deleted.
    next_page : str
        Page to which the user should be redirected upon logout.

    """
    logger.debug('Request to log out')
    if session_cookie:
        try:
            current_session_store().delete(session_cookie)
        except SessionTeardownError as e:
            logger.warning('Logout failed: %s', e)
            return {'message': 'Something went wrong during logout.'}, \
                status.INTERNAL_SERVER_ERROR, {}
    data = {'cookies': {'auth_session_cookie': ('', 0)}}
    return data, status.SEE_OTHER, {'Location': next_page}


@retry(StorageUnavailable, tries=3, delay=0.5, backoff=2)
def _do_authn(email: str, password: str) -> Principal:
    return authenticate(current_store(), email, password)
