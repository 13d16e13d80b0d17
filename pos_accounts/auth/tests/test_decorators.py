"""Tests for :mod:`pos_accounts.auth.decorators`."""

from datetime import datetime
from unittest import TestCase, mock

from pytz import UTC
from werkzeug.exceptions import Forbidden

from pos_accounts import domain
from pos_accounts.auth import access, decorators


def _session(role):
    return domain.Session(
        session_id='fooid',
        start_time=datetime.now(tz=UTC),
        principal=domain.Principal(
            account_id='235678',
            first_name='Jane',
            last_name='Doe',
            email='foo@foo.com',
            role=role
        ),
        nonce='12345678'
    )


class TestGuarded(TestCase):
    """Tests for :func:`.decorators.guarded`."""

    @mock.patch(f'{decorators.__name__}.request', spec=['auth', 'path'])
    def test_no_session(self, mock_request):
        """No session is present on the request."""
        mock_request.auth = None
        called = mock.MagicMock()

        @decorators.guarded(access.AUTHENTICATED)
        def protected():
            """A protected function."""
            called()

        with self.assertRaises(Forbidden):
            protected()
        called.assert_not_called()

    @mock.patch(f'{decorators.__name__}.request', spec=['auth', 'path'])
    def test_public(self, mock_request):
        """Public routes run without a session."""
        mock_request.auth = None

        @decorators.guarded(access.PUBLIC)
        def protected():
            """A protected function."""
            return 'ok'

        self.assertEqual(protected(), 'ok')

    @mock.patch(f'{decorators.__name__}.request', spec=['auth', 'path'])
    def test_role_mismatch(self, mock_request):
        """A customer may not use an admin route."""
        mock_request.auth = _session(domain.Role.CUSTOMER)

        @decorators.guarded(access.ADMIN)
        def protected():
            """A protected function."""

        with self.assertRaises(Forbidden) as ctx:
            protected()
        self.assertEqual(ctx.exception.description, 'Access denied.')

    @mock.patch(f'{decorators.__name__}.request', spec=['auth', 'path'])
    def test_role_matches(self, mock_request):
        mock_request.auth = _session(domain.Role.ADMIN)

        @decorators.guarded(access.STAFF)
        def protected(x):
            """A protected function."""
            return x

        self.assertEqual(protected(5), 5)
        self.assertIs(protected.access, access.STAFF)
        self.assertEqual(protected.__doc__, 'A protected function.')
