"""Database models for the durable user store."""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DBUser(Base):  # type: ignore
    """
    Registered users.

    +-------------------+--------------+------+-----+---------+
    | Field             | Type         | Null | Key | Default |
    +-------------------+--------------+------+-----+---------+
    | id                | varchar(36)  | NO   | PRI | NULL    |
    | created_at        | timestamptz  | NO   |     | now     |
    | updated_at        | timestamptz  | NO   |     | now     |
    | username          | varchar(255) | NO   | UNI | NULL    |
    | email             | varchar(255) | NO   | UNI | NULL    |
    | email_verified_at | timestamptz  | YES  |     | NULL    |
    | password_hash     | varchar(255) | NO   |     | NULL    |
    +-------------------+--------------+------+-----+---------+
    """

    __tablename__ = 'users'

    user_id = Column('id', String(36), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    username = Column(String(255), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    password_hash = Column(String(255), nullable=False)
