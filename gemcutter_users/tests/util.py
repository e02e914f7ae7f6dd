"""Testing helpers."""

from contextlib import contextmanager
from typing import Generator

from flask import Flask
from sqlalchemy.orm.session import Session

from .. import util


def create_test_app(database_url: str = 'sqlite://') -> Flask:
    """Build a minimal application bound to ``database_url``."""
    app = Flask('test')
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['PASSWORD_HASH_ITERATIONS'] = 1000
    app.config['API_KEY_MAX_ATTEMPTS'] = 5
    app.config['RUBYFORGE_IMPORTER_ID'] = '42'
    util.init_app(app)
    return app


@contextmanager
def temporary_db(database_url: str = 'sqlite://', create: bool = True,
                 drop: bool = True) -> Generator[Session, None, None]:
    """Provide an in-memory sqlite database for testing purposes."""
    app = create_test_app(database_url)
    with app.app_context():
        if create:
            util.create_all()
        try:
            with util.transaction():
                yield util.current_session()
        finally:
            if drop:
                util.drop_all()
