"""ORM model for user accounts and their refresh-token slot."""

from sqlalchemy import Column, DateTime, Integer, String, func

from app.models.base import Base


class User(Base):
    """
    User account for JWT authentication.

    email is stored lowercase. refresh_token is the session slot: the SHA-256
    digest of the one live refresh token, or NULL when no session is active.
    role_id references a role managed elsewhere and is not validated here.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role_id = Column(Integer, nullable=False)
    refresh_token = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
