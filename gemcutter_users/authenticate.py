"""Provide an API for user authentication, with RubyForge migration."""

from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError

from . import accounts, domain, legacy, util
from .exceptions import AuthenticationFailed, EmailInvalid, \
    LegacyUserConsumed, PasswordAuthenticationFailed
from .models import DBUser
from .passwords import SecretVerifier

logger = logging.getLogger(__name__)


def authenticate(handle_or_email: Optional[str], password: Optional[str],
                 verifier: Optional[SecretVerifier] = None) \
        -> Optional[domain.User]:
    """
    Validate handle or e-mail and password.

    Parameters
    ----------
    handle_or_email : str
        Users may log in with either their handle or their email address.
    password : str
        Password (as entered).
    verifier : :class:`.SecretVerifier`
        Checks passwords against stored hashes. Defaults to
        :class:`.SecretVerifier`.

    Returns
    -------
    :class:`domain.User` or None
        ``None`` if the credentials are missing or wrong, or the user does
        not exist. Callers cannot tell these cases apart.

    Raises
    ------
    :class:`.Unavailable`
        The database could not be reached.

    """
    if verifier is None:
        verifier = SecretVerifier()
    if not handle_or_email or not password:
        logger.debug('Handle/email and password are required')
        return None
    try:
        return _authenticate_password(handle_or_email, password, verifier)
    except AuthenticationFailed as e:
        logger.debug('Authentication failed: %s', e)
        return None


def authenticate_with_api_key(api_key: Optional[str]) \
        -> Optional[domain.User]:
    """Resolve the user that holds an API key."""
    if not api_key:
        return None
    return accounts.find_by_api_key(api_key)


def _authenticate_password(handle_or_email: str, password: str,
                           verifier: SecretVerifier) -> domain.User:
    """
    Authenticate using handle/email and password.

    Raises
    ------
    :class:`AuthenticationFailed`
        Raised if the user does not exist or the password is incorrect.

    """
    db_user = accounts.get_db_user(handle_or_email)
    if db_user is not None:
        logger.debug('Got user with id: %s', db_user.id)
        try:
            _check_current(db_user, password, verifier)
        except PasswordAuthenticationFailed as e:
            # A RubyForge password never overrides a failed check against
            # an existing account.
            raise AuthenticationFailed('Invalid handle or password') from e
        try:
            _consume_superseded(db_user.email, password, verifier)
        except LegacyUserConsumed as e:
            raise AuthenticationFailed('Legacy user already migrated') from e
        return accounts.to_domain(db_user)

    logger.debug('No current user, trying legacy accounts')
    legacy_user = _find_legacy_match(handle_or_email, password, verifier)
    try:
        return _migrate(legacy_user, password)
    except LegacyUserConsumed as e:
        raise AuthenticationFailed('Legacy user already migrated') from e
    except EmailInvalid as e:
        raise AuthenticationFailed('Legacy user cannot log in') from e


def _check_current(db_user: DBUser, password: str,
                   verifier: SecretVerifier) -> None:
    if not verifier.verify_current(password, db_user.encrypted_password):
        raise PasswordAuthenticationFailed('Incorrect password')


def _find_legacy_match(email: str, password: str,
                       verifier: SecretVerifier) -> domain.LegacyUser:
    """
    Find an imported account with ``email`` whose password matches.

    Raises
    ------
    :class:`AuthenticationFailed`
        No imported account matches. Nothing is modified.

    """
    for legacy_user in legacy.find_all_by_email(email):
        if verifier.verify_legacy(password, legacy_user.encrypted_password):
            return legacy_user
    raise AuthenticationFailed('Invalid handle or password')


def _consume_superseded(email: str, password: str,
                        verifier: SecretVerifier) -> None:
    """Delete an imported account that an existing user has replaced."""
    try:
        legacy_user = _find_legacy_match(email, password, verifier)
    except AuthenticationFailed:
        return
    if not legacy.delete_if_present(legacy_user.legacy_id):
        raise LegacyUserConsumed('Legacy user was already consumed')
    logger.info('Consumed legacy user %s', legacy_user.legacy_id)


def _migrate(legacy_user: domain.LegacyUser, password: str) -> domain.User:
    """
    Replace an imported account with a new user.

    The imported row is deleted and the user created in one transaction,
    with the password hashed under the current scheme.

    Raises
    ------
    :class:`LegacyUserConsumed`
        Another request migrated the imported account first.

    """
    try:
        with util.transaction() as session:
            if not legacy.delete(session, legacy_user.legacy_id):
                session.rollback()
                raise LegacyUserConsumed('Legacy user was already consumed')
            db_user = accounts.create(session, legacy_user.email, password)
            session.commit()
    except IntegrityError as e:
        # A concurrent migration created the user first.
        raise LegacyUserConsumed('Legacy user was already consumed') from e
    logger.info('Migrated legacy user %s to user %s', legacy_user.legacy_id,
                db_user.id)
    return accounts.to_domain(db_user)

