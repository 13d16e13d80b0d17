"""Provides Flask integration for the external user interface."""

import logging
from http import HTTPStatus as status
from typing import Any, Callable, Dict, Mapping

from flask import Blueprint, Response, current_app, jsonify, make_response, \
    redirect, render_template, request, url_for

from ..auth import access, set_session_cookie
from ..auth.decorators import guarded
from ..controllers import admin, authentication, registration

logger = logging.getLogger(__name__)
blueprint = Blueprint('ui', __name__, url_prefix='/users')


def set_cookies(response: Response, data: dict) -> None:
    """
    Update a :class:`.Response` with cookies in controller data.

    Controllers seeking to update cookies must include a 'cookies' key
    in their response data.
    """
    cookies = data.pop('cookies', None)
    if cookies is None:
        return None
    for cookie_key, (cookie_value, max_age) in cookies.items():
        if cookie_key != 'auth_session_cookie':
            raise ValueError(f'Unknown cookie {cookie_key}')
        logger.debug('Set session cookie, max_age %s', max_age)
        set_session_cookie(response, current_app, cookie_value, max_age)


@blueprint.after_request
def apply_response_headers(response: Response) -> Response:
    """Prevent UI redress attacks."""
    response.headers['Content-Security-Policy'] = "frame-ancestors 'none'"
    response.headers['X-Frame-Options'] = 'DENY'
    return response


@blueprint.route('/register', methods=['GET', 'POST'])
@guarded(access.PUBLIC)
def register() -> Response:
    """Interface for creating new accounts."""
    data, code, headers = registration.register(request.method, request.form)
    if 'message' in data:
        content = render_template('users/message.html', **data)
    else:
        content = render_template('users/register.html', title='Register',
                                  **data)
    return make_response(content, code, headers)


@blueprint.route('/verify/<string:token>', methods=['GET'])
@guarded(access.PUBLIC)
def verify(token: str) -> Response:
    """Landing page of the verification link."""
    data, code, headers = registration.verify(token)
    content = render_template('users/message.html', **data)
    return make_response(content, code, headers)


@blueprint.route('/login', methods=['GET', 'POST'])
@guarded(access.PUBLIC)
def login() -> Response:
    """Log in with e-mail address and password."""
    data, code, headers = authentication.login(request.method, request.form)
    # Flask puts cookie-setting methods on the response, so we do that here
    # instead of in the controller.
    if code == status.SEE_OTHER:
        response = make_response(redirect(headers['Location'], code=code))
        set_cookies(response, data)
        return response
    content = render_template('users/login.html', title='Login', **data)
    return make_response(content, code, headers)


@blueprint.route('/logout', methods=['GET'])
@guarded(access.PUBLIC)
def logout() -> Response:
    """End the current session, if any, and go to the login page."""
    cookie_name = current_app.config['AUTH_SESSION_COOKIE_NAME']
    data, code, headers = authentication.logout(
        request.cookies.get(cookie_name), url_for('ui.login')
    )
    if code == status.SEE_OTHER:
        response = make_response(redirect(headers['Location'], code=code))
        set_cookies(response, data)
        return response
    return make_response(data['message'], code,
                         {'Content-Type': 'text/plain; charset=utf-8'})


def _page(template: str, title: str) -> Callable[[], Response]:
    def view() -> Response:
        return make_response(render_template(
            template, title=f'{title} | ONEJA POS'
        ))
    view.__name__ = template.rsplit('/', 1)[-1].replace('.html', '')
    return view


PAGES: Dict[str, tuple] = {
    # rule: (endpoint, template, title, access class)
    '/dashboard': ('dashboard', 'users/dashboard.html', 'Dashboard',
                   access.AUTHENTICATED),
    '/emp-dashboard': ('employee_dashboard', 'users/emp-dashboard.html',
                       'Employee Dashboard', access.EMPLOYEE),
    '/adminDashboard': ('admin_dashboard', 'users/adminDashboard.html',
                        'Admin Dashboard', access.ADMIN),
    '/reports': ('reports', 'users/reports.html', 'Reports', access.ADMIN),
    '/profile': ('profile', 'users/profile.html', 'Profile',
                 access.AUTHENTICATED),
    '/custom': ('custom', 'users/custom.html', 'Custom Jewelry',
                access.AUTHENTICATED),
    '/orderhistory': ('orderhistory', 'users/orderhistory.html',
                      'Order History', access.AUTHENTICATED),
    '/dsr': ('dsr', 'users/dsr.html', 'Daily Sales Report', access.STAFF),
}

for rule, (endpoint, template, title, required) in PAGES.items():
    blueprint.add_url_rule(rule, endpoint,
                           guarded(required)(_page(template, title)),
                           methods=['GET'])


def _admin_params() -> Mapping[str, Any]:
    """JSON object body, else form data."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form


@blueprint.route('/update-role', methods=['POST'])
@guarded(access.ADMIN)
def update_role() -> Response:
    """Change the role of another account."""
    params = _admin_params()
    data, code, headers = admin.update_role(params)
    return make_response(jsonify(data), code, headers)


@blueprint.route('/archive-employee', methods=['POST'])
@guarded(access.ADMIN)
def archive_employee() -> Response:
    """Mark another account resigned."""
    params = _admin_params()
    data, code, headers = admin.archive_employee(params)
    return make_response(jsonify(data), code, headers)
