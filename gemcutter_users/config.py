"""Flask configuration."""

import os

#################### Database ####################
SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///gemcutter.db')
"""Database holding users, legacy RubyForge imports, gems and webhooks."""

SQLALCHEMY_TRACK_MODIFICATIONS = False

#################### Accounts ####################
RUBYFORGE_IMPORTER_ID = os.environ.get('RUBYFORGE_IMPORTER_ID', None)
"""ID of the account that bulk-imports gems from RubyForge.

Read once when the application is created, and passed explicitly to
:func:`gemcutter_users.accounts.is_importer`.
"""

PASSWORD_HASH_ITERATIONS = int(os.environ.get('PASSWORD_HASH_ITERATIONS',
                                              '100000'))
"""PBKDF2 rounds used when hashing passwords with the current scheme."""

API_KEY_MAX_ATTEMPTS = int(os.environ.get('API_KEY_MAX_ATTEMPTS', '5'))
"""How many times to regenerate an API key that is already taken."""

#################### Logging ####################
LOGLEVEL = os.environ.get('LOGLEVEL', 'INFO')

JSON_LOGS = bool(int(os.environ.get('JSON_LOGS', '0')))
"""Emit log records as JSON, for log aggregation in deployed environments."""
