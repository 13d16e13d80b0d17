"""
Salted, adaptive password hashing.

bcrypt only considers the first 72 bytes of its input, and recent releases
refuse anything longer. Passwords are therefore reduced to a fixed-length
digest (base64 of SHA-256, 44 bytes) before they reach bcrypt, so every
byte of a long passphrase counts.
"""

import hashlib
import logging
from base64 import b64encode

import bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 12


def _prehash(password: str) -> bytes:
    return b64encode(hashlib.sha256(password.encode('utf-8')).digest())


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Generate a salted bcrypt hash of ``password``."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_prehash(password), salt).decode('ascii')


def check_password(password: str, hashed: str) -> bool:
    """
    Check a password against a stored hash.

    A malformed stored hash never matches; it is logged rather than raised
    so that it is indistinguishable from a wrong password to the caller.
    """
    try:
        return bcrypt.checkpw(_prehash(password), hashed.encode('ascii'))
    except (ValueError, UnicodeEncodeError) as e:
        logger.error('Stored password hash is malformed: %s', e)
        return False
