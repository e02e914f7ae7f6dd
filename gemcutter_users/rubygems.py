"""Gems, and the views of them that belong to a user."""

from typing import List, Optional
import logging

from sqlalchemy.exc import OperationalError

from . import domain, util
from .exceptions import Unavailable
from .models import DBOwnership, DBRubygem, DBSubscription, db
from .web_hooks import ALL_GEMS

logger = logging.getLogger(__name__)

RESERVED_NAMES = frozenset([ALL_GEMS])
"""Gem names that would collide with keys used for grouping webhooks."""


def to_domain(db_rubygem: DBRubygem) -> domain.Rubygem:
    """Build a :class:`.domain.Rubygem` from its database row."""
    return domain.Rubygem(name=db_rubygem.name,
                          rubygem_id=str(db_rubygem.id))


def create_rubygem(name: str) -> domain.Rubygem:
    """Add a gem."""
    if not name or name in RESERVED_NAMES:
        raise ValueError(f'{name!r} is not a valid gem name')
    with util.transaction() as session:
        db_rubygem = DBRubygem(name=name)
        session.add(db_rubygem)
        session.commit()
    return to_domain(db_rubygem)


def get_rubygem(name: str) -> Optional[domain.Rubygem]:
    """Load a gem by name."""
    try:
        db_rubygem = db.session.query(DBRubygem) \
            .filter(DBRubygem.name == name) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return to_domain(db_rubygem) if db_rubygem is not None else None


def add_ownership(user: domain.User, rubygem: domain.Rubygem,
                  approved: bool = False) -> domain.Ownership:
    """Record that a user owns (or has asked to own) a gem."""
    with util.transaction() as session:
        session.add(DBOwnership(user_id=int(user.user_id),
                                rubygem_id=int(rubygem.rubygem_id),
                                approved=approved))
        session.commit()
    return domain.Ownership(user_id=user.user_id, rubygem=rubygem,
                            approved=approved)


def approve_ownership(user: domain.User, rubygem: domain.Rubygem) -> None:
    """Approve a user's pending ownerships of a gem."""
    with util.transaction() as session:
        session.query(DBOwnership) \
            .filter(DBOwnership.user_id == int(user.user_id)) \
            .filter(DBOwnership.rubygem_id == int(rubygem.rubygem_id)) \
            .update({DBOwnership.approved: True}, synchronize_session=False)
        session.commit()


def add_subscription(user: domain.User,
                     rubygem: domain.Rubygem) -> domain.Subscription:
    """Subscribe a user to notifications about a gem."""
    with util.transaction() as session:
        session.add(DBSubscription(user_id=int(user.user_id),
                                   rubygem_id=int(rubygem.rubygem_id)))
        session.commit()
    return domain.Subscription(user_id=user.user_id, rubygem=rubygem)


def visible_rubygems(user: domain.User) -> List[domain.Rubygem]:
    """The gems that a user owns. Unapproved ownerships are left out."""
    try:
        rows = db.session.query(DBRubygem) \
            .join(DBOwnership, DBOwnership.rubygem_id == DBRubygem.id) \
            .filter(DBOwnership.user_id == int(user.user_id)) \
            .filter(DBOwnership.approved.is_(True)) \
            .order_by(DBRubygem.name) \
            .all()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return [to_domain(row) for row in rows]


def subscribed_rubygems(user: domain.User) -> List[domain.Rubygem]:
    """The gems that a user is subscribed to."""
    try:
        rows = db.session.query(DBRubygem) \
            .join(DBSubscription, DBSubscription.rubygem_id == DBRubygem.id) \
            .filter(DBSubscription.user_id == int(user.user_id)) \
            .order_by(DBRubygem.name) \
            .all()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return [to_domain(row) for row in rows]
