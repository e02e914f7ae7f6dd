"""Webhooks, grouped by the gem that they fire for."""

from typing import Dict, Iterable, List, Optional
import logging

from sqlalchemy.exc import OperationalError

from . import domain, util
from .exceptions import Unavailable
from .models import DBWebHook, db

logger = logging.getLogger(__name__)

ALL_GEMS = 'all gems'
"""Key for hooks that fire for every gem."""


def to_domain(db_hook: DBWebHook) -> domain.WebHook:
    """Build a :class:`.domain.WebHook` from its database row."""
    return domain.WebHook(
        web_hook_id=str(db_hook.id),
        user_id=str(db_hook.user_id),
        url=db_hook.url,
        rubygem_id=str(db_hook.rubygem_id) if db_hook.rubygem_id else None,
        rubygem_name=db_hook.rubygem.name if db_hook.rubygem else None,
        failure_count=db_hook.failure_count or 0,
        created_at=db_hook.created_at
    )


def aggregate_by_subject(hooks: Iterable[domain.WebHook]) \
        -> Dict[str, List[domain.WebHook]]:
    """
    Group hooks by the name of their gem.

    Hooks without a gem are grouped under :data:`ALL_GEMS`. Each group keeps
    the order of ``hooks``. No hooks means no keys.
    """
    grouped: Dict[str, List[domain.WebHook]] = {}
    for hook in hooks:
        if hook.is_global:
            key = ALL_GEMS
        elif hook.rubygem_name:
            key = hook.rubygem_name
        else:
            raise ValueError(f'Hook {hook.web_hook_id} has no gem name')
        grouped.setdefault(key, []).append(hook)
    return grouped


def list_web_hooks(user: domain.User) -> List[domain.WebHook]:
    """Load a user's hooks, oldest first."""
    try:
        rows = db.session.query(DBWebHook) \
            .filter(DBWebHook.user_id == int(user.user_id)) \
            .order_by(DBWebHook.created_at, DBWebHook.id) \
            .all()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return [to_domain(row) for row in rows]


def all_hooks(user: domain.User) -> Dict[str, List[domain.WebHook]]:
    """Everything that fires for a user, keyed by gem name or "all gems"."""
    return aggregate_by_subject(list_web_hooks(user))


def create_web_hook(user: domain.User, url: str,
                    rubygem: Optional[domain.Rubygem] = None) \
        -> domain.WebHook:
    """Register a hook for one gem, or for all gems if ``rubygem`` is None."""
    with util.transaction() as session:
        db_hook = DBWebHook(
            user_id=int(user.user_id),
            rubygem_id=int(rubygem.rubygem_id) if rubygem else None,
            url=url,
            failure_count=0
        )
        session.add(db_hook)
        session.commit()
        hook = to_domain(db_hook)
    logger.debug('Created web hook %s for user %s', hook.web_hook_id,
                 user.user_id)
    return hook


def delete_web_hook(user: domain.User, web_hook_id: str) -> bool:
    """
    Delete one of a user's hooks.

    Returns ``False`` if the user has no hook with that ID.
    """
    with util.transaction() as session:
        deleted = session.query(DBWebHook) \
            .filter(DBWebHook.id == int(web_hook_id)) \
            .filter(DBWebHook.user_id == int(user.user_id)) \
            .delete(synchronize_session=False)
        session.commit()
    return bool(deleted)
