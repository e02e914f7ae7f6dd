"""Helpers and Flask application integration."""

from typing import Any, Generator, Optional
from contextlib import contextmanager
import logging

from flask import Flask, current_app, has_app_context
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.session import Session

from . import config
from .exceptions import Unavailable
from .models import db

logger = logging.getLogger(__name__)


def get_config(key: str, default: Optional[Any] = None) -> Any:
    """
    Get a configuration value.

    Uses the config of the current Flask application if there is one, and
    falls back to the defaults in :mod:`gemcutter_users.config`.
    """
    if has_app_context() and key in current_app.config:
        return current_app.config[key]
    return getattr(config, key, default)


@contextmanager
def transaction() -> Generator[Session, None, None]:
    """Context manager for database transaction."""
    try:
        yield db.session
        # The caller may have explicitly committed already, in order to
        # implement exception handling logic. We only want to commit here if
        # there is anything remaining that is not flushed.
        if db.session.new or db.session.dirty or db.session.deleted:
            db.session.commit()
    except OperationalError as e:
        logger.error('Database error, rolling back: %s', str(e))
        db.session.rollback()
        raise Unavailable('Database is temporarily unavailable') from e
    except Exception as e:
        logger.warning('Commit failed, rolling back: %s', str(e))
        db.session.rollback()
        raise


def init_app(app: Flask) -> None:
    """Set configuration defaults and attach session to the application."""
    app.config.setdefault('SQLALCHEMY_DATABASE_URI',
                          config.SQLALCHEMY_DATABASE_URI)
    app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)
    db.init_app(app)


def current_session() -> Session:
    """Get/create database session for this context."""
    return db.session


def create_all() -> None:
    """Create all tables in the database."""
    db.create_all()


def drop_all() -> None:
    """Drop all tables in the database."""
    db.drop_all()


def is_available(**kwargs: Any) -> bool:
    """Check our connection to the database."""
    try:
        db.session.execute(text("SELECT 1")).all()
    except Exception as e:
        logger.error('Encountered an error talking to database: %s', e)
        return False
    return True
