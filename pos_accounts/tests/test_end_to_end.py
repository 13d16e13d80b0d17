"""End-to-end tests, via requests to the user interface."""

import uuid
from datetime import datetime
from http import HTTPStatus as status
from unittest import TestCase, mock

from pytz import UTC
from redis.exceptions import ConnectionError as RedisConnectionError

from pos_accounts.domain import Account, AccountStatus, Role
from pos_accounts.factory import create_web_app
from pos_accounts.services.passwords import hash_password

COOKIE_NAME = 'POS_SESSION_ID'


class EndToEndTestCase(TestCase):
    """Builds an app on in-memory storage."""

    def setUp(self):
        self.mailer = mock.MagicMock()
        self.app = create_web_app(
            mailer=self.mailer,
            TESTING=True,
            BASE_URL='http://localhost',
            DATABASE_URI='sqlite://',
            CREATE_DB=True,
            REDIS_FAKE=True,
            JWT_SECRET='foosecret',
            AUTH_SESSION_COOKIE_NAME=COOKIE_NAME,
            AUTH_SESSION_COOKIE_SECURE=False,
            BCRYPT_ROUNDS=4,
        )
        self.store = self.app.extensions['account_store']
        self.sessions = self.app.extensions['session_store']
        self.client = self.app.test_client()

    def tearDown(self):
        self.store.drop_all()

    def add_account(self, email, password='p4ssw0rd', role=Role.CUSTOMER,
                    verified=True):
        now = datetime.now(tz=UTC)
        return self.store.insert(Account(
            account_id=str(uuid.uuid4()),
            email=email,
            password_hash=hash_password(password, rounds=4),
            first_name='Test',
            last_name=role.value.title(),
            role=role,
            status=AccountStatus.ACTIVE,
            email_verified=verified,
            created_at=now,
            updated_at=now
        ))

    def login(self, client, email, password='p4ssw0rd'):
        return client.post('/users/login',
                           data={'email': email, 'password': password})


class TestRegistration(EndToEndTestCase):
    """Register, verify, log in."""

    form = {
        'email': 'jane@onejajewelry.com',
        'password': 'p4ssw0rd',
        'first_name': 'Jane',
        'last_name': 'Doe'
    }

    def test_get_form(self):
        response = self.client.get('/users/register')
        self.assertEqual(response.status_code, status.OK)
        self.assertIn(b'<form', response.data)

    def test_register_verify_login(self):
        response = self.client.post('/users/register', data=self.form)
        self.assertEqual(response.status_code, status.OK)
        self.assertIn(b'Registration Successful!', response.data)
        self.mailer.send.assert_called_once()

        account = self.store.get_by_email('jane@onejajewelry.com')
        self.assertFalse(account.email_verified)

        response = self.login(self.client, 'jane@onejajewelry.com')
        self.assertEqual(response.status_code, status.BAD_REQUEST)
        self.assertIn(b'Please verify your email first.', response.data)

        link = f'/users/verify/{account.verification_token}'
        self.assertIn(f'http://localhost{link}',
                      self.mailer.send.call_args[0][2])
        response = self.client.get(link)
        self.assertEqual(response.status_code, status.OK)
        self.assertIn(b'Email Verified!', response.data)

        response = self.client.get(link)
        self.assertEqual(response.status_code, status.NOT_FOUND)

        response = self.login(self.client, 'jane@onejajewelry.com')
        self.assertEqual(response.status_code, status.SEE_OTHER)
        self.assertTrue(
            response.headers['Location'].endswith('/users/dashboard')
        )
        cookie = self.client.get_cookie(COOKIE_NAME)
        self.assertIsNotNone(cookie)
        self.assertTrue(cookie.http_only)

        response = self.client.get('/users/dashboard')
        self.assertEqual(response.status_code, status.OK)
        self.assertIn(b'Jane', response.data)

    def test_duplicate(self):
        self.client.post('/users/register', data=self.form)
        response = self.client.post('/users/register', data=self.form)
        self.assertEqual(response.status_code, status.BAD_REQUEST)
        self.assertIn(b'User already exists with this email.', response.data)

    def test_invalid_form(self):
        response = self.client.post('/users/register',
                                    data={'email': 'not-an-email'})
        self.assertEqual(response.status_code, status.BAD_REQUEST)
        self.mailer.send.assert_not_called()

    def test_bad_token(self):
        response = self.client.get('/users/verify/nope')
        self.assertEqual(response.status_code, status.NOT_FOUND)


class TestLoginLogout(EndToEndTestCase):
    """Logging in lands on the dashboard for the role."""

    def test_landing_by_role(self):
        expected = {
            Role.CUSTOMER: '/users/dashboard',
            Role.EMPLOYEE: '/users/emp-dashboard',
            Role.ADMIN: '/users/adminDashboard',
        }
        for role, landing in expected.items():
            email = f'{role.value}@onejajewelry.com'
            self.add_account(email, role=role)
            response = self.login(self.app.test_client(), email)
            self.assertEqual(response.status_code, status.SEE_OTHER)
            self.assertTrue(response.headers['Location'].endswith(landing))

    def test_failures(self):
        self.add_account('jane@onejajewelry.com')
        response = self.login(self.client, 'nobody@onejajewelry.com')
        self.assertEqual(response.status_code, status.BAD_REQUEST)
        self.assertIn(b'User not found.', response.data)

        response = self.login(self.client, 'jane@onejajewelry.com', 'wrong')
        self.assertEqual(response.status_code, status.BAD_REQUEST)
        self.assertIn(b'Invalid password.', response.data)
        self.assertIsNone(self.client.get_cookie(COOKIE_NAME))

    def test_logout(self):
        self.add_account('jane@onejajewelry.com')
        self.login(self.client, 'jane@onejajewelry.com')
        self.assertEqual(self.client.get('/users/profile').status_code,
                         status.OK)

        response = self.client.get('/users/logout')
        self.assertEqual(response.status_code, status.SEE_OTHER)
        self.assertTrue(
            response.headers['Location'].endswith('/users/login')
        )
        self.assertIsNone(self.client.get_cookie(COOKIE_NAME))
        self.assertEqual(self.client.get('/users/profile').status_code,
                         status.FORBIDDEN)

    def test_logout_without_session(self):
        """With no session, logout still lands on the login page."""
        response = self.client.get('/users/logout')
        self.assertEqual(response.status_code, status.SEE_OTHER)
        self.assertTrue(
            response.headers['Location'].endswith('/users/login')
        )

    def test_logout_after_idle_expiry(self):
        """An expired session is logged out without complaint."""
        account = self.add_account('jane@onejajewelry.com')
        self.login(self.client, 'jane@onejajewelry.com')
        self.sessions.invalidate_account(account.account_id)
        response = self.client.get('/users/logout')
        self.assertEqual(response.status_code, status.SEE_OTHER)
        self.assertTrue(
            response.headers['Location'].endswith('/users/login')
        )
        self.assertIsNone(self.client.get_cookie(COOKIE_NAME))

    def test_session_store_unavailable(self):
        """Public pages still render when Redis cannot be reached."""
        self.add_account('jane@onejajewelry.com')
        self.login(self.client, 'jane@onejajewelry.com')
        with mock.patch.object(self.sessions.r, 'get',
                               side_effect=RedisConnectionError('gone')):
            response = self.client.get('/users/login')
            self.assertEqual(response.status_code, status.OK)
            response = self.client.get('/users/dashboard')
            self.assertEqual(response.status_code, status.FORBIDDEN)
        self.assertEqual(self.client.get('/users/dashboard').status_code,
                         status.OK)

    def test_long_password(self):
        """Passphrases longer than 72 bytes register and log in."""
        passphrase = 'correct horse battery staple ' * 3
        response = self.client.post('/users/register', data={
            'email': 'jane@onejajewelry.com',
            'password': passphrase,
            'first_name': 'Jane',
            'last_name': 'Doe'
        })
        self.assertEqual(response.status_code, status.OK)
        account = self.store.get_by_email('jane@onejajewelry.com')
        self.client.get(f'/users/verify/{account.verification_token}')

        response = self.login(self.client, 'jane@onejajewelry.com',
                              passphrase[:72])
        self.assertEqual(response.status_code, status.BAD_REQUEST)
        response = self.login(self.client, 'jane@onejajewelry.com',
                              passphrase)
        self.assertEqual(response.status_code, status.SEE_OTHER)

    def test_logout_teardown_fails(self):
        self.add_account('jane@onejajewelry.com')
        self.login(self.client, 'jane@onejajewelry.com')
        with mock.patch.object(self.sessions.r, 'delete',
                               side_effect=ConnectionError('gone')):
            response = self.client.get('/users/logout')
        self.assertEqual(response.status_code,
                         status.INTERNAL_SERVER_ERROR)
        self.assertIn(b'Something went wrong during logout.', response.data)

    def test_security_headers(self):
        response = self.client.get('/users/login')
        self.assertEqual(response.headers['X-Frame-Options'], 'DENY')
        self.assertIn('frame-ancestors',
                      response.headers['Content-Security-Policy'])


class TestAccessControl(EndToEndTestCase):
    """Every page is guarded by its access class."""

    pages = {
        '/users/dashboard': {Role.CUSTOMER, Role.EMPLOYEE, Role.ADMIN},
        '/users/profile': {Role.CUSTOMER, Role.EMPLOYEE, Role.ADMIN},
        '/users/custom': {Role.CUSTOMER, Role.EMPLOYEE, Role.ADMIN},
        '/users/orderhistory': {Role.CUSTOMER, Role.EMPLOYEE, Role.ADMIN},
        '/users/emp-dashboard': {Role.EMPLOYEE},
        '/users/dsr': {Role.EMPLOYEE, Role.ADMIN},
        '/users/adminDashboard': {Role.ADMIN},
        '/users/reports': {Role.ADMIN},
    }

    def test_pages_by_role(self):
        for role in Role:
            email = f'{role.value}@onejajewelry.com'
            self.add_account(email, role=role)
            client = self.app.test_client()
            self.login(client, email)
            for page, allowed in self.pages.items():
                response = client.get(page)
                expected = status.OK if role in allowed else status.FORBIDDEN
                self.assertEqual(response.status_code, expected,
                                 f'{role.value} at {page}')

    def test_no_session(self):
        for page in self.pages:
            response = self.client.get(page)
            self.assertEqual(response.status_code, status.FORBIDDEN)
            self.assertEqual(response.data, b'Access denied.')

    def test_forged_cookie(self):
        """A cookie that does not match a session is ignored."""
        self.client.set_cookie(COOKIE_NAME, 'not-a-real-cookie')
        response = self.client.get('/users/dashboard')
        self.assertEqual(response.status_code, status.FORBIDDEN)


class TestAdministration(EndToEndTestCase):
    """Admins change roles and archive employees."""

    def setUp(self):
        super().setUp()
        self.add_account('admin@onejajewelry.com', role=Role.ADMIN)
        self.admin = self.app.test_client()
        self.login(self.admin, 'admin@onejajewelry.com')
        self.user = self.add_account('jane@onejajewelry.com')
        self.login(self.client, 'jane@onejajewelry.com')

    def test_update_role(self):
        """The new role applies at the next login."""
        response = self.admin.post('/users/update-role', json={
            'userId': self.user.account_id, 'newRole': 'Employee'
        })
        self.assertEqual(response.status_code, status.OK)
        self.assertEqual(response.get_json(),
                         {'success': True,
                          'message': 'Role updated to employee'})

        # The old session ended with the role change.
        self.assertEqual(self.client.get('/users/dashboard').status_code,
                         status.FORBIDDEN)
        response = self.login(self.client, 'jane@onejajewelry.com')
        self.assertTrue(
            response.headers['Location'].endswith('/users/emp-dashboard')
        )
        self.assertEqual(self.client.get('/users/emp-dashboard').status_code,
                         status.OK)

    def test_update_role_rejected(self):
        response = self.admin.post('/users/update-role', json={
            'userId': self.user.account_id, 'newRole': 'superuser'
        })
        self.assertEqual(response.status_code, status.BAD_REQUEST)
        self.assertFalse(response.get_json()['success'])

        response = self.admin.post('/users/update-role', json={
            'userId': 'nope', 'newRole': 'admin'
        })
        self.assertEqual(response.status_code, status.NOT_FOUND)

        response = self.admin.post('/users/update-role', json={})
        self.assertEqual(response.status_code, status.BAD_REQUEST)

    def test_body_not_an_object(self):
        """A JSON body that is not an object is answered in JSON."""
        for body in (['x'], 'x', 5):
            for path in ('/users/update-role', '/users/archive-employee'):
                response = self.admin.post(path, json=body)
                self.assertEqual(response.status_code, status.BAD_REQUEST)
                self.assertFalse(response.get_json()['success'])

    def test_non_admin(self):
        """Only admins reach the administrative actions."""
        for client in (self.client, self.app.test_client()):
            response = client.post('/users/update-role', json={
                'userId': self.user.account_id, 'newRole': 'admin'
            })
            self.assertEqual(response.status_code, status.FORBIDDEN)
            response = client.post('/users/archive-employee', json={
                'userId': self.user.account_id
            })
            self.assertEqual(response.status_code, status.FORBIDDEN)
        account = self.store.get_by_id(self.user.account_id)
        self.assertIs(account.role, Role.CUSTOMER)
        self.assertIs(account.status, AccountStatus.ACTIVE)

    def test_archive(self):
        """A resigned account loses its session and cannot log in."""
        response = self.admin.post('/users/archive-employee', data={
            'userId': self.user.account_id
        })
        self.assertEqual(response.status_code, status.OK)
        self.assertEqual(response.get_json()['message'],
                         'Employee marked as Resigned')
        self.assertEqual(self.client.get('/users/dashboard').status_code,
                         status.FORBIDDEN)

        response = self.login(self.client, 'jane@onejajewelry.com')
        self.assertEqual(response.status_code, status.BAD_REQUEST)
        self.assertIn(b'Account is not active.', response.data)

        response = self.admin.post('/users/archive-employee', data={
            'userId': 'nope'
        })
        self.assertEqual(response.status_code, status.NOT_FOUND)
