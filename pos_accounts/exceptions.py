"""Exceptions raised by account lifecycle and authentication operations."""


class AccountsError(RuntimeError):
    """Base class for account-related failures."""


class ValidationFailure(AccountsError):
    """Request data was rejected, e.g. the e-mail is already registered."""


class NotFound(AccountsError):
    """No account matches the request."""


class InvalidToken(NotFound):
    """No account carries the presented verification token."""


class ExpiredToken(AccountsError):
    """The verification token is past its expiry."""


class AuthenticationFailed(AccountsError):
    """Failed to authenticate with the provided credentials."""


class NoSuchAccount(NotFound, AuthenticationFailed):
    """No account is registered with the presented e-mail address."""


class EmailNotVerified(AuthenticationFailed):
    """The account has not yet verified its e-mail address."""


class AccountInactive(AuthenticationFailed):
    """The account exists but is not active (e.g. resigned)."""


class InvalidCredentials(AuthenticationFailed):
    """Password is not correct."""


class StorageUnavailable(AccountsError):
    """The credential store could not be reached."""


class MailDeliveryFailed(AccountsError):
    """An outbound message could not be handed to the mail service."""
