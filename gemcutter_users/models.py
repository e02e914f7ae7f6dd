"""Database models for users, legacy imports, rubygems and webhooks."""

from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, \
    String, Text
from sqlalchemy.orm import relationship

db: SQLAlchemy = SQLAlchemy()


class DBUser(db.Model):  # type: ignore
    """
    Gemcutter user account.

    +--------------------+--------------+------+-----+---------+
    | Field              | Type         | Null | Key | Default |
    +--------------------+--------------+------+-----+---------+
    | id                 | int(11)      | NO   | PRI | NULL    |
    | email              | varchar(255) | NO   | UNI |         |
    | handle             | varchar(15)  | YES  | UNI | NULL    |
    | encrypted_password | varchar(128) | NO   |     |         |
    | api_key            | varchar(32)  | NO   | UNI |         |
    | confirmation_token | varchar(128) | YES  |     | NULL    |
    | email_confirmed    | tinyint(1)   | NO   |     | 0       |
    | email_reset        | tinyint(1)   | NO   |     | 0       |
    +--------------------+--------------+------+-----+---------+
    """

    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    handle = Column(String(15), nullable=True, unique=True, index=True)
    encrypted_password = Column(String(128), nullable=False)
    api_key = Column(String(32), nullable=False, unique=True, index=True)
    confirmation_token = Column(String(128), nullable=True)
    email_confirmed = Column(Boolean, nullable=False, default=False)
    email_reset = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now,
                        onupdate=datetime.now)

    ownerships = relationship('DBOwnership', back_populates='user',
                              cascade='all, delete-orphan')
    subscriptions = relationship('DBSubscription', back_populates='user',
                                 cascade='all, delete-orphan')
    web_hooks = relationship('DBWebHook', back_populates='user',
                             cascade='all, delete-orphan')


class DBRubyforger(db.Model):  # type: ignore
    """
    Account imported from RubyForge, pending migration.

    The password is a hex MD5 digest without a salt. More than one row may
    carry the same e-mail address.
    """

    __tablename__ = 'rubyforgers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)
    encrypted_password = Column(String(32), nullable=False)
    created_at = Column(DateTime, default=datetime.now)


class DBRubygem(db.Model):  # type: ignore
    """A hosted gem."""

    __tablename__ = 'rubygems'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=datetime.now)


class DBOwnership(db.Model):  # type: ignore
    """Links a user to a gem that they own, once approved."""

    __tablename__ = 'ownerships'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(ForeignKey('users.id'), nullable=False, index=True)
    rubygem_id = Column(ForeignKey('rubygems.id'), nullable=False,
                        index=True)
    approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.now)

    user = relationship('DBUser', back_populates='ownerships')
    rubygem = relationship('DBRubygem')


class DBSubscription(db.Model):  # type: ignore
    """A user asking to be notified about a gem."""

    __tablename__ = 'subscriptions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(ForeignKey('users.id'), nullable=False, index=True)
    rubygem_id = Column(ForeignKey('rubygems.id'), nullable=False,
                        index=True)
    created_at = Column(DateTime, default=datetime.now)

    user = relationship('DBUser', back_populates='subscriptions')
    rubygem = relationship('DBRubygem')


class DBWebHook(db.Model):  # type: ignore
    """
    A URL to notify when gems are pushed.

    If ``rubygem_id`` is null the hook fires for every gem.
    """

    __tablename__ = 'web_hooks'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(ForeignKey('users.id'), nullable=False, index=True)
    rubygem_id = Column(ForeignKey('rubygems.id'), nullable=True,
                        index=True)
    url = Column(Text, nullable=False)
    failure_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now)

    user = relationship('DBUser', back_populates='web_hooks')
    rubygem = relationship('DBRubygem')
