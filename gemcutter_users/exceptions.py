"""Exceptions."""

from typing import List


class AuthenticationFailed(RuntimeError):
    """Failed to authenticate user with provided credentials."""


class NoSuchUser(RuntimeError):
    """User does not exist."""


class PasswordAuthenticationFailed(RuntimeError):
    """Password is not correct."""


class LegacyUserConsumed(RuntimeError):
    """The legacy account was already migrated by another request."""


class RegistrationFailed(RuntimeError):
    """Could not create a new user, or save a change to one."""


class ApiKeyCollision(RuntimeError):
    """Could not generate an API key that is not already in use."""


class Unavailable(RuntimeError):
    """The database is temporarily unavailable."""


class EmailInvalid(ValueError):
    """An e-mail address is not usable as a login."""


class HandleInvalid(ValueError):
    """A handle does not follow the naming rules, or is taken."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = errors
        super(HandleInvalid, self).__init__(f"Handle {', '.join(errors)}")
