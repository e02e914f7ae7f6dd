"""Application factory for services that manage gemcutter users."""

from flask import Flask

from . import config, util
from .app_logging import setup_logger


def create_web_app(create_db: bool = False) -> Flask:
    """Initialize and configure the application."""
    app = Flask('gemcutter_users')
    app.config.from_object(config)

    setup_logger(app.config['LOGLEVEL'], app.config['JSON_LOGS'])
    util.init_app(app)

    if create_db:
        with app.app_context():
            util.create_all()

    return app
