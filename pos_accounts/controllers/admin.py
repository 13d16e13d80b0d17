"""
Controllers for administrative changes to other accounts.

Both actions end every live session of the affected account, so a role
change or archival takes effect at once rather than when the account's
session happens to expire.
"""

import logging
from http import HTTPStatus as status
from typing import Any, Mapping, Tuple

from retry import retry

from ..domain import Role
from ..exceptions import NotFound, StorageUnavailable, ValidationFailure
from ..lifecycle import current_lifecycle
from ..auth.exceptions import SessionTeardownError
from ..auth.sessions import current_session_store

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]


def _result(success: bool, message: str, code: int) -> ResponseData:
    return {'success': success, 'message': message}, code, {}


def update_role(params: Mapping[str, Any]) -> ResponseData:
    """Set the role of the account named by ``userId`` to ``newRole``."""
    if not isinstance(params, Mapping):
        return _result(False, 'userId and newRole are required',
                       status.BAD_REQUEST)
    account_id = params.get('userId')
    new_role = params.get('newRole')
    if not account_id or not new_role:
        return _result(False, 'userId and newRole are required',
                       status.BAD_REQUEST)
    try:
        role = _do_update_role(account_id, new_role)
    except ValidationFailure as e:
        return _result(False, str(e), status.BAD_REQUEST)
    except NotFound:
        return _result(False, 'No such user', status.NOT_FOUND)
    except StorageUnavailable:
        return _result(False, 'Error updating role',
                       status.SERVICE_UNAVAILABLE)
    except Exception:
        logger.exception('Error updating role of %s', account_id)
        return _result(False, 'Error updating role',
                       status.INTERNAL_SERVER_ERROR)
    _end_sessions(account_id)
    return _result(True, f'Role updated to {role.value}', status.OK)


def archive_employee(params: Mapping[str, Any]) -> ResponseData:
    """Mark the account named by ``userId`` resigned."""
    if not isinstance(params, Mapping):
        return _result(False, 'userId is required', status.BAD_REQUEST)
    account_id = params.get('userId')
    if not account_id:
        return _result(False, 'userId is required', status.BAD_REQUEST)
    try:
        _do_archive(account_id)
    except NotFound:
        return _result(False, 'No such user', status.NOT_FOUND)
    except StorageUnavailable:
        return _result(False, 'Error archiving employee',
                       status.SERVICE_UNAVAILABLE)
    except Exception:
        logger.exception('Error archiving %s', account_id)
        return _result(False, 'Error archiving employee',
                       status.INTERNAL_SERVER_ERROR)
    _end_sessions(account_id)
    return _result(True, 'Employee marked as Resigned', status.OK)


def _end_sessions(account_id: str) -> None:
    # The account change is already committed; a stale session is logged
    # and left to expire on its idle timer.
    try:
        current_session_store().invalidate_account(account_id)
    except SessionTeardownError as e:
        logger.error('Could not end sessions of %s: %s', account_id, e)


@retry(StorageUnavailable, tries=3, delay=0.5, backoff=2)
def _do_update_role(account_id: str, new_role: str) -> Role:
    return current_lifecycle().update_role(account_id, new_role)


@retry(StorageUnavailable, tries=3, delay=0.5, backoff=2)
def _do_archive(account_id: str) -> None:
    current_lifecycle().archive_employee(account_id)
