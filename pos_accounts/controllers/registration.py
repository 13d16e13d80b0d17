"""
Controllers for registration and e-mail verification.

New accounts are customers, created unverified. A verification link is
mailed to the address given at registration; following it verifies the
account, after which the owner can log in.
"""

import logging
from http import HTTPStatus as status
from typing import Any, Dict, Tuple

from retry import retry
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import InternalServerError

from ..domain import Account
from ..exceptions import ExpiredToken, NotFound, StorageUnavailable, \
    ValidationFailure
from ..lifecycle import Registration, current_lifecycle
from .forms import RegistrationForm

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]

REGISTERED = 'Please check your email to verify your account.'
REGISTERED_NO_MAIL = ('We could not send the verification email right now.'
                      ' Please contact support to verify your account.')


def register(method: str, params: MultiDict) -> ResponseData:
    """Handle requests for the registration view."""
    if method == 'GET':
        return {'form': RegistrationForm()}, status.OK, {}

    logger.debug('Registration form submitted')
    form = RegistrationForm(params)
    data: Dict[str, Any] = {'form': form}
    if not form.validate():
        logger.debug('Registration form not valid')
        return data, status.BAD_REQUEST, {}

    try:
        registration = _do_register(form.email.data, form.password.data,
                                    form.first_name.data, form.last_name.data)
    except ValidationFailure as e:
        data['error'] = str(e)
        return data, status.BAD_REQUEST, {}
    except Exception as e:
        logger.exception('Registration failed')
        raise InternalServerError('Registration failed') from e

    data.update({
        'title': 'Registration Successful!',
        'message': REGISTERED if registration.email_sent
        else REGISTERED_NO_MAIL,
        'account_id': registration.account.account_id
    })
    return data, status.OK, {}


def verify(token: str) -> ResponseData:
    """Handle a click on a verification link."""
    try:
        _do_verify(token)
    except ExpiredToken as e:
        return {'title': 'Verification failed', 'message': str(e)}, \
            status.BAD_REQUEST, {}
    except NotFound as e:
        return {'title': 'Verification failed', 'message': str(e)}, \
            status.NOT_FOUND, {}
    except Exception as e:
        logger.exception('Verification failed')
        raise InternalServerError('Verification failed') from e
    return {
        'title': 'Email Verified!',
        'message': 'Your account is now verified.',
        'show_login': True
    }, status.OK, {}


# These are broken out to add retry logic.
@retry(StorageUnavailable, tries=3, delay=0.5, backoff=2)
def _do_register(email: str, password: str, first_name: str,
                 last_name: str) -> Registration:
    return current_lifecycle().register(email, password, first_name,
                                        last_name)


@retry(StorageUnavailable, tries=3, delay=0.5, backoff=2)
def _do_verify(token: str) -> Account:
    return current_lifecycle().verify_email(token)
