"""
Accounts imported from RubyForge.

RubyForge users were imported with their e-mail address and an unsalted MD5
hash of their password. The first time one of them logs in with a matching
password, the imported row is deleted; from then on only the current user
account is used.
"""

from typing import List, Optional
import logging

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.session import Session

from . import domain, util
from .exceptions import Unavailable
from .models import DBRubyforger, db
from .passwords import hash_legacy_password

logger = logging.getLogger(__name__)


def to_domain(db_rubyforger: DBRubyforger) -> domain.LegacyUser:
    """Build a :class:`.domain.LegacyUser` from its database row."""
    return domain.LegacyUser(
        legacy_id=str(db_rubyforger.id),
        email=db_rubyforger.email,
        encrypted_password=db_rubyforger.encrypted_password
    )


def import_user(email: str, encrypted_password: str) -> domain.LegacyUser:
    """Store a RubyForge account, with its password hash as exported."""
    with util.transaction() as session:
        db_rubyforger = DBRubyforger(email=email,
                                     encrypted_password=encrypted_password)
        session.add(db_rubyforger)
        session.commit()
    return to_domain(db_rubyforger)


def import_user_with_password(email: str,
                              password: str) -> domain.LegacyUser:
    """Store a RubyForge account, hashing a plaintext password."""
    return import_user(email, hash_legacy_password(password))


def find_all_by_email(email: str) -> List[domain.LegacyUser]:
    """Load every imported account with an e-mail address, oldest first."""
    try:
        rows = db.session.query(DBRubyforger) \
            .filter(DBRubyforger.email == email) \
            .order_by(DBRubyforger.id) \
            .all()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return [to_domain(row) for row in rows]


def find_by_email(email: str) -> Optional[domain.LegacyUser]:
    """Load the oldest imported account with an e-mail address."""
    legacy_users = find_all_by_email(email)
    return legacy_users[0] if legacy_users else None


def exists(legacy_id: str) -> bool:
    """Determine whether an imported account has not been consumed yet."""
    try:
        data = db.session.query(DBRubyforger.id) \
            .filter(DBRubyforger.id == int(legacy_id)) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return data is not None


def delete(session: Session, legacy_id: str) -> bool:
    """
    Delete an imported account in ``session`` without committing.

    This is a single ``DELETE`` statement, so when several requests race to
    consume the same row only one of them sees it deleted.

    Returns
    -------
    bool
        ``False`` if the row was already gone.

    """
    deleted = session.query(DBRubyforger) \
        .filter(DBRubyforger.id == int(legacy_id)) \
        .delete(synchronize_session=False)
    return bool(deleted == 1)


def delete_if_present(legacy_id: str) -> bool:
    """Delete an imported account, if it is still there."""
    with util.transaction() as session:
        deleted = delete(session, legacy_id)
        session.commit()
    if not deleted:
        logger.debug('Legacy user %s was already consumed', legacy_id)
    return deleted
