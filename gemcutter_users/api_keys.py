"""Generation and rotation of user API keys."""

from typing import Optional
import logging
import secrets

from sqlalchemy.exc import OperationalError

from . import domain, util
from .exceptions import ApiKeyCollision, NoSuchUser, Unavailable
from .models import DBUser, db

logger = logging.getLogger(__name__)

API_KEY_BYTES = 16
"""128 bits, which is 32 hexadecimal characters."""


def generate_api_key() -> str:
    """Generate a random 32-character lowercase hexadecimal token."""
    return secrets.token_hex(API_KEY_BYTES)


def does_api_key_exist(api_key: str) -> bool:
    """Determine whether any user holds a particular API key."""
    try:
        data = db.session.query(DBUser.id) \
            .filter(DBUser.api_key == api_key) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return data is not None


def generate_unique_api_key(previous: Optional[str] = None) -> str:
    """
    Generate an API key that no user holds, and that is not ``previous``.

    Raises
    ------
    :class:`ApiKeyCollision`
        No free key was found within ``API_KEY_MAX_ATTEMPTS`` tries.

    """
    attempts = int(util.get_config('API_KEY_MAX_ATTEMPTS'))
    for _ in range(attempts):
        api_key = generate_api_key()
        if api_key != previous and not does_api_key_exist(api_key):
            return api_key
        logger.warning('Generated an API key that is already taken')
    raise ApiKeyCollision(f'No unique API key after {attempts} attempts')


def reset_api_key(user: domain.User) -> str:
    """
    Replace a user's API key with a new one.

    The old key stops working as soon as this returns. If anything fails,
    the user keeps the old key.

    Parameters
    ----------
    user : :class:`.domain.User`

    Returns
    -------
    str
        The new API key.

    """
    if user.user_id is None:
        raise ValueError('User ID must be set')
    with util.transaction() as session:
        db_user = session.query(DBUser) \
            .filter(DBUser.id == int(user.user_id)) \
            .first()
        if db_user is None:
            raise NoSuchUser('User does not exist')
        api_key = generate_unique_api_key(previous=db_user.api_key)
        db_user.api_key = api_key
        session.add(db_user)
        session.commit()
    logger.debug('Reset API key for user %s', user.user_id)
    return api_key
