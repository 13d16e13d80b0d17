"""
Role-based protection of Flask routes.

.. code-block:: python

   from pos_accounts.auth import access
   from pos_accounts.auth.decorators import guarded

   @blueprint.route('/reports', methods=['GET'])
   @guarded(access.ADMIN)
   def reports() -> Response:
       ...

When the decorated route is called, the session attached to the request by
:class:`pos_accounts.auth.Auth` is checked against the access class. On
denial :class:`Forbidden` is raised before the route runs, so the route
does no work and the session is left untouched.
"""

import logging
from typing import Any, Callable
from functools import wraps

from flask import request
from werkzeug.exceptions import Forbidden

from .access import Access, allow

logger = logging.getLogger(__name__)

ACCESS_DENIED = 'Access denied.'


def guarded(required: Access) -> Callable:
    """Generate a decorator that enforces ``required`` on a route."""
    def protector(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            session = getattr(request, 'auth', None)
            principal = session.principal if session else None
            if not allow(required, principal):
                logger.debug('Denied %s access to %s', required.name,
                             request.path)
                raise Forbidden(ACCESS_DENIED)
            return func(*args, **kwargs)
        wrapper.access = required  # type: ignore
        return wrapper
    return protector
