"""Exceptions raised by the session store."""


class SessionCreationFailed(RuntimeError):
    """Failed to create a session in the session store."""


class SessionTeardownError(RuntimeError):
    """Failed to delete a session in the session store."""


class UnknownSession(RuntimeError):
    """Failed to locate a session in the session store."""


class InvalidSessionCookie(ValueError):
    """The session cookie is malformed, forged, or does not match."""


class SessionStoreUnavailable(RuntimeError):
    """The session store could not be reached."""
