"""
Route access classes and the decision function that checks them.

Every route belongs to exactly one access class. A class is either public,
or names the set of roles whose sessions may use the route. The decision is
a pure function of the class and the session's principal; a missing session
is denied exactly like a role mismatch.
"""

from typing import FrozenSet, NamedTuple, Optional

from ..domain import Principal, Role
from ..exceptions import ValidationFailure


class Access(NamedTuple):
    """Access requirement of a route."""

    name: str
    roles: Optional[FrozenSet[Role]] = None
    """Roles allowed to use the route; ``None`` means public."""

    @property
    def is_public(self) -> bool:
        return self.roles is None


def requiring(*roles: Role) -> Access:
    """Access class for routes restricted to ``roles``."""
    return Access('+'.join(role.value for role in roles), frozenset(roles))


PUBLIC = Access('public')
"""Anyone, with or without a session."""

AUTHENTICATED = Access('authenticated', frozenset(Role))
"""Any logged-in account, whatever its role."""

EMPLOYEE = requiring(Role.EMPLOYEE)
STAFF = requiring(Role.EMPLOYEE, Role.ADMIN)
ADMIN = requiring(Role.ADMIN)


def allow(access: Access, principal: Optional[Principal]) -> bool:
    """
    Decide whether ``principal`` may use a route of class ``access``.

    Roles are compared case-insensitively. An unrecognised role on the
    principal never matches.
    """
    if access.is_public:
        return True
    if principal is None:
        return False
    try:
        role = Role.parse(principal.role)
    except ValidationFailure:
        return False
    return role in access.roles
