"""Flask configuration."""
import os
import secrets

#################### General config for app ####################
BASE_URL = os.environ.get('BASE_URL', 'http://localhost:5000')
"""Used to build absolute links, e.g. in verification e-mails."""

SECRET_KEY = os.environ.get('SECRET_KEY', secrets.token_urlsafe(16))
"""Sets the `Flask` secret key. Not directly used by the session store."""

#################### Credential store ####################
DATABASE_URI = os.environ.get('DATABASE_URI', 'sqlite:///accounts.db')
"""SQLAlchemy URI of the account database."""

CREATE_DB = bool(int(os.environ.get('CREATE_DB', '0')))
"""Create the schema at startup. Useful for dev."""

#################### Sessions ####################
REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')

REDIS_FAKE = bool(int(os.environ.get('REDIS_FAKE', '0')))
"""Use the FakeRedis library instead of a redis service.

Useful for testing and dev. Sessions then live only as long as the process."""

JWT_SECRET = os.environ.get('JWT_SECRET', secrets.token_urlsafe(16))
"""Signs session cookies. Must be shared by all processes of a deployment."""

SESSION_DURATION = os.environ.get('SESSION_DURATION', '900')
"""Idle window of a session, in seconds."""

AUTH_SESSION_COOKIE_NAME = os.environ.get('AUTH_SESSION_COOKIE_NAME',
                                          'POS_SESSION_ID')
AUTH_SESSION_COOKIE_SECURE = bool(int(
    os.environ.get('AUTH_SESSION_COOKIE_SECURE', '1')
))

#################### Accounts ####################
VERIFICATION_TOKEN_LIFETIME = int(
    os.environ.get('VERIFICATION_TOKEN_LIFETIME', '3600')
)
"""Seconds a verification link stays valid."""

BCRYPT_ROUNDS = int(os.environ.get('BCRYPT_ROUNDS', '12'))

#################### Mail ####################
MAIL_HOST = os.environ.get('MAIL_HOST', 'localhost')
MAIL_PORT = int(os.environ.get('MAIL_PORT', '25'))
MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
MAIL_USE_TLS = bool(int(os.environ.get('MAIL_USE_TLS', '0')))
MAIL_FROM = os.environ.get('MAIL_FROM', 'no-reply@localhost')
MAIL_SUPPRESS_SEND = bool(int(os.environ.get('MAIL_SUPPRESS_SEND', '0')))
"""Log outbound mail instead of sending it."""

#################### Logging ####################
LOGLEVEL = int(os.environ.get('LOGLEVEL', '20'))
LOG_JSON = bool(int(os.environ.get('LOG_JSON', '0')))
"""Emit one JSON object per log record."""
