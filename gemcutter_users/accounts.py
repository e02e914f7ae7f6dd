"""Provide methods for working with user accounts."""

from typing import Optional
import logging
import secrets

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.session import Session

from . import domain, util
from .api_keys import generate_unique_api_key
from .exceptions import EmailInvalid, HandleInvalid, NoSuchUser, \
    RegistrationFailed, Unavailable
from .handles import check_handle
from .models import DBUser, db
from .passwords import hash_password

logger = logging.getLogger(__name__)


def to_domain(db_user: DBUser) -> domain.User:
    """Build a :class:`.domain.User` from its database row."""
    return domain.User(
        user_id=str(db_user.id),
        email=db_user.email,
        handle=db_user.handle,
        api_key=db_user.api_key,
        confirmation_token=db_user.confirmation_token,
        email_confirmed=bool(db_user.email_confirmed),
        email_reset=bool(db_user.email_reset)
    )


def generate_confirmation_token() -> str:
    """Generate a token for confirming an e-mail address."""
    return secrets.token_hex(20)


def does_handle_exist(handle: str) -> bool:
    """
    Determine whether a user with a particular handle already exists.

    Parameters
    ----------
    handle : str

    Returns
    -------
    bool

    """
    try:
        data = db.session.query(DBUser.id) \
            .filter(DBUser.handle == handle) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return data is not None


def does_email_exist(email: str) -> bool:
    """
    Determine whether a user with a particular address already exists.

    Parameters
    ----------
    email : str

    Returns
    -------
    bool

    """
    try:
        data = db.session.query(DBUser.id) \
            .filter(DBUser.email == email) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return data is not None


def get_db_user(handle_or_email: str) -> Optional[DBUser]:
    """
    Retrieve the row for a user by e-mail address or handle.

    Addresses are checked first. Returns ``None`` if there is no such user.
    """
    try:
        db_user = db.session.query(DBUser) \
            .filter(DBUser.email == handle_or_email) \
            .first()
        if db_user is None:
            db_user = db.session.query(DBUser) \
                .filter(DBUser.handle == handle_or_email) \
                .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return db_user


def find_by_handle_or_email(handle_or_email: str) -> Optional[domain.User]:
    """Load a user by e-mail address or handle."""
    db_user = get_db_user(handle_or_email)
    if db_user is None:
        return None
    return to_domain(db_user)


def find_by_api_key(api_key: str) -> Optional[domain.User]:
    """Load the user that holds an API key."""
    if not api_key:
        return None
    try:
        db_user = db.session.query(DBUser) \
            .filter(DBUser.api_key == api_key) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    if db_user is None:
        return None
    return to_domain(db_user)


def get_user_by_id(user_id: str) -> domain.User:
    """Load user data from the database."""
    return to_domain(_get_user_data(user_id))


def check_email(email: Optional[str]) -> None:
    """
    Raise :class:`.EmailInvalid` unless ``email`` looks like an address.

    Handles never contain ``@``, so an address can not shadow a handle at
    login.
    """
    if not email or '@' not in email:
        raise EmailInvalid('E-mail address is invalid')


def create(session: Session, email: str, password: str,
           handle: Optional[str] = None) -> DBUser:
    """
    Add a new user to ``session`` without committing.

    The password is hashed with the current scheme, and the user gets an
    API key and an e-mail confirmation token.
    """
    check_email(email)
    check_handle(handle)
    db_user = DBUser(
        email=email,
        handle=handle,
        encrypted_password=hash_password(password),
        api_key=generate_unique_api_key(),
        confirmation_token=generate_confirmation_token(),
        email_confirmed=False,
        email_reset=False
    )
    session.add(db_user)
    return db_user


def register(email: str, password: str,
             handle: Optional[str] = None) -> domain.User:
    """
    Create a new user.

    Parameters
    ----------
    email : str
    password : str
    handle : str or None
        Must follow the rules in :mod:`gemcutter_users.handles`.

    Returns
    -------
    :class:`.domain.User`

    Raises
    ------
    :class:`EmailInvalid`
        The e-mail address has no ``@``.
    :class:`HandleInvalid`
        The handle breaks a naming rule or is already taken.
    :class:`RegistrationFailed`
        Could not create the user, e.g. because the e-mail is taken.

    """
    check_email(email)
    if handle is not None and does_handle_exist(handle):
        raise HandleInvalid(['has already been taken'])
    try:
        with util.transaction() as session:
            db_user = create(session, email, password, handle)
            session.commit()
    except IntegrityError as e:
        logger.debug('Could not create user: %s', e)
        raise RegistrationFailed('Could not create user') from e
    logger.info('Registered user %s', db_user.id)
    return to_domain(db_user)


def update_handle(user: domain.User, handle: Optional[str]) -> domain.User:
    """Change (or clear) a user's handle."""
    check_handle(handle)
    with util.transaction() as session:
        db_user = _get_user_data(user.user_id)
        if handle is not None and handle != db_user.handle \
                and does_handle_exist(handle):
            raise HandleInvalid(['has already been taken'])
        db_user.handle = handle
        session.add(db_user)
        session.commit()
    return to_domain(db_user)


def update_email(user: domain.User, email: str) -> domain.User:
    """
    Change a user's e-mail address.

    A new address has to be confirmed again, so it gets a fresh
    confirmation token.

    Raises
    ------
    :class:`EmailInvalid`
        The e-mail address has no ``@``.
    :class:`RegistrationFailed`
        Another user already has the address.

    """
    check_email(email)
    try:
        with util.transaction() as session:
            db_user = _get_user_data(user.user_id)
            if email != db_user.email:
                if does_email_exist(email):
                    raise RegistrationFailed('E-mail address is taken')
                db_user.email = email
                db_user.confirmation_token = generate_confirmation_token()
                db_user.email_confirmed = False
                db_user.email_reset = True
                session.add(db_user)
                session.commit()
    except IntegrityError as e:
        logger.debug('Could not change e-mail address: %s', e)
        raise RegistrationFailed('E-mail address is taken') from e
    return to_domain(db_user)


def confirm_email(user: domain.User) -> domain.User:
    """Mark a user's current e-mail address as confirmed."""
    with util.transaction() as session:
        db_user = _get_user_data(user.user_id)
        db_user.confirmation_token = None
        db_user.email_confirmed = True
        db_user.email_reset = False
        session.add(db_user)
        session.commit()
    return to_domain(db_user)


def delete(user: domain.User) -> None:
    """Delete a user, with their ownerships, subscriptions and webhooks."""
    with util.transaction() as session:
        db_user = _get_user_data(user.user_id)
        session.delete(db_user)
        session.commit()
    logger.info('Deleted user %s', user.user_id)


def is_importer(user: domain.User, importer_id: Optional[str]) -> bool:
    """
    Determine whether a user is the account that imports RubyForge gems.

    ``importer_id`` is usually the ``RUBYFORGE_IMPORTER_ID`` setting.
    """
    return importer_id is not None and user.user_id is not None \
        and str(user.user_id) == str(importer_id)


def _get_user_data(user_id: Optional[str]) -> DBUser:
    if user_id is None:
        raise ValueError('User ID must be set')
    try:
        db_user = db.session.query(DBUser) \
            .filter(DBUser.id == int(user_id)) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    if db_user is None:
        raise NoSuchUser('User does not exist')
    return db_user
