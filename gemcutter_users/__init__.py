"""
Gemcutter user accounts and credentials.

This package resolves logins to user accounts, enforces handle naming rules,
manages API keys, migrates accounts imported from RubyForge the first time
their owners log in, and groups a user's webhooks by gem.

Quick start
-----------

.. code-block:: python

   from gemcutter_users import factory
   from gemcutter_users.authenticate import authenticate

   app = factory.create_web_app(create_db=True)
   with app.app_context():
       user = authenticate('qrush', 'secret')    # None if login failed.

All database access happens through the Flask-SQLAlchemy session of the
current application context.
"""

from .domain import User, LegacyUser, Rubygem, Ownership, Subscription, \
    WebHook
