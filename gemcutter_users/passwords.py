"""Password hashing, for current accounts and for RubyForge imports."""

from typing import Optional
from base64 import b64encode, b64decode
import binascii
import hashlib
import hmac
import logging
import secrets

from . import util
from .exceptions import PasswordAuthenticationFailed

logger = logging.getLogger(__name__)

SALT_LENGTH = 16


def _hash_salt_and_password(salt: bytes, password: str,
                            iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt,
                               iterations)


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    """
    Generate a secure hash of a password.

    The result is ``<iterations>$<base64(salt + digest)>``.
    """
    if iterations is None:
        iterations = int(util.get_config('PASSWORD_HASH_ITERATIONS'))
    salt = secrets.token_bytes(SALT_LENGTH)
    hashed = _hash_salt_and_password(salt, password, iterations)
    return f"{iterations}${b64encode(salt + hashed).decode('ascii')}"


def check_password(password: str, encrypted: str) -> None:
    """
    Check a password against an encrypted hash.

    Raises
    ------
    :class:`PasswordAuthenticationFailed`
        The password does not match, or the hash is malformed.

    """
    try:
        iterations, encoded = encrypted.split('$', 1)
        decoded = b64decode(encoded)
        rounds = int(iterations)
    except (ValueError, binascii.Error) as e:
        raise PasswordAuthenticationFailed('Malformed password hash') from e
    if rounds < 1:
        raise PasswordAuthenticationFailed('Malformed password hash')
    salt = decoded[:SALT_LENGTH]
    enc_hashed = decoded[SALT_LENGTH:]
    try:
        pass_hashed = _hash_salt_and_password(salt, password, rounds)
    except UnicodeEncodeError as e:
        raise PasswordAuthenticationFailed('Password is not valid text') from e
    except (ValueError, OverflowError) as e:
        raise PasswordAuthenticationFailed('Malformed password hash') from e
    if not hmac.compare_digest(pass_hashed, enc_hashed):
        raise PasswordAuthenticationFailed('Incorrect password')


def hash_legacy_password(password: str) -> str:
    """Hash a password the way RubyForge did: hex MD5, no salt."""
    return hashlib.md5(password.encode('utf-8')).hexdigest()


def check_legacy_password(password: str, encrypted: str) -> None:
    """Check a password against a RubyForge hash."""
    try:
        pass_hashed = hash_legacy_password(password).encode('ascii')
    except UnicodeEncodeError as e:
        raise PasswordAuthenticationFailed('Password is not valid text') from e
    if not hmac.compare_digest(pass_hashed,
                               encrypted.lower().encode('utf-8', 'replace')):
        raise PasswordAuthenticationFailed('Incorrect password')


class SecretVerifier(object):
    """
    Checks passwords against stored credentials.

    Pass a subclass to :func:`gemcutter_users.authenticate.authenticate` to
    use a different hashing scheme.
    """

    def verify_current(self, password: str, encrypted: str) -> bool:
        """Check a password against a hash made by :func:`hash_password`."""
        try:
            check_password(password, encrypted)
        except PasswordAuthenticationFailed:
            return False
        return True

    def verify_legacy(self, password: str, encrypted: str) -> bool:
        """Check a password against a RubyForge hash."""
        try:
            check_legacy_password(password, encrypted)
        except PasswordAuthenticationFailed:
            return False
        return True
