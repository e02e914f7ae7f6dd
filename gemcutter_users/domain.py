"""Defines user concepts for gemcutter services."""

from typing import Any, Dict, List, NamedTuple, Optional
from datetime import datetime
import json


class User(NamedTuple):
    """Represents a gemcutter user account."""

    email: str
    """The user's primary e-mail address."""

    handle: Optional[str] = None
    """Slug-like handle. Optional, but unique when set."""

    user_id: Optional[str] = None
    """Unique identifier for the user. If ``None``, the user does not exist."""

    api_key: Optional[str] = None
    """Token used to authenticate API requests."""

    confirmation_token: Optional[str] = None
    """Present while the most recent e-mail address is unconfirmed."""

    email_confirmed: bool = False
    """Whether or not the user's e-mail address has been confirmed."""

    email_reset: bool = False
    """Whether the e-mail address was changed after it was confirmed."""

    @property
    def name(self) -> str:
        """The handle if set, otherwise the e-mail address."""
        return self.handle if self.handle else self.email


class LegacyUser(NamedTuple):
    """An account imported from RubyForge that has not yet logged in."""

    legacy_id: str
    email: str
    encrypted_password: str
    """Hex MD5 digest of the password."""


class Rubygem(NamedTuple):
    """A hosted gem."""

    name: str
    rubygem_id: Optional[str] = None


class Ownership(NamedTuple):
    """A user's claim on a gem."""

    user_id: str
    rubygem: Rubygem
    approved: bool = False


class Subscription(NamedTuple):
    """A user's request for notifications about a gem."""

    user_id: str
    rubygem: Rubygem


class WebHook(NamedTuple):
    """A URL that is notified when gems are pushed."""

    url: str
    user_id: str
    web_hook_id: Optional[str] = None

    rubygem_id: Optional[str] = None
    """If ``None``, the hook applies to every gem."""

    rubygem_name: Optional[str] = None
    """Name of the gem referenced by :attr:`rubygem_id`."""

    failure_count: int = 0
    created_at: Optional[datetime] = None

    @property
    def is_global(self) -> bool:
        """Whether the hook fires for all gems."""
        return self.rubygem_id is None


# Helpers.


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a NamedTuple instance.

    Child NamedTuples are cast to ``dict`` recursively, and datetimes to
    ISO-8601 strings.
    """
    if not hasattr(obj, '_asdict'):  # NamedTuple-generated classes have this.
        return {}
    data = obj._asdict()  # type: ignore

    def _cast(obj: Any) -> Any:
        if hasattr(obj, '_asdict'):
            obj = to_dict(obj)
        elif isinstance(obj, datetime):
            obj = obj.isoformat()
        elif isinstance(obj, list):
            obj = [_cast(o) for o in obj]
        return obj

    return {key: _cast(value) for key, value in data.items()}


PUBLIC_USER_FIELDS: List[str] = ['email']
"""Fields of :class:`User` that may be exposed to clients."""


def to_public_dict(user: User) -> Dict[str, Any]:
    """Representation of a :class:`User` that is safe to send to clients."""
    data = to_dict(user)
    return {key: data[key] for key in PUBLIC_USER_FIELDS}


def to_json(user: User) -> str:
    """Serialize a :class:`User` for clients."""
    return json.dumps(to_public_dict(user))
