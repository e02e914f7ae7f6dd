"""Naming rules for user handles."""

from typing import NamedTuple, Optional, Tuple
import re

from .exceptions import HandleInvalid

MIN_LENGTH = 3
MAX_LENGTH = 15

HANDLE_PATTERN = re.compile(r'^[a-z][a-z0-9_-]{2,14}\Z')
"""Every handle that passes :func:`validate_handle` fully matches this."""

_FORMAT = re.compile(r'[a-z][a-z0-9_-]*')

TOO_SHORT = f'is too short (minimum is {MIN_LENGTH} characters)'
TOO_LONG = f'is too long (maximum is {MAX_LENGTH} characters)'
INVALID = 'is invalid'


class HandleValidation(NamedTuple):
    """Outcome of checking a handle against the naming rules."""

    errors: Tuple[str, ...] = ()
    """Messages for each violated rule, empty if the handle is valid."""

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def error(self) -> Optional[str]:
        """The first violated rule, if any."""
        return self.errors[0] if self.errors else None


def validate_handle(candidate: Optional[str]) -> HandleValidation:
    """
    Check a candidate handle against the naming rules.

    A handle must be 3 to 15 characters long, start with a lowercase letter,
    and contain only lowercase letters, digits, dashes and underscores.
    Handles are optional, so ``None`` is valid. An empty string is not.

    Parameters
    ----------
    candidate : str or None

    Returns
    -------
    :class:`HandleValidation`

    """
    if candidate is None:
        return HandleValidation()
    errors = []
    if len(candidate) < MIN_LENGTH:
        errors.append(TOO_SHORT)
    elif len(candidate) > MAX_LENGTH:
        errors.append(TOO_LONG)
    if candidate and not _FORMAT.fullmatch(candidate):
        errors.append(INVALID)
    return HandleValidation(tuple(errors))


def check_handle(candidate: Optional[str]) -> None:
    """Raise :class:`.HandleInvalid` if the candidate breaks a rule."""
    result = validate_handle(candidate)
    if not result.valid:
        raise HandleInvalid(list(result.errors))
