"""Credential store: user lookup, creation, and the refresh-token slot."""

import hashlib
import hmac
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError
from app.models import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Lowercase form used for every stored and compared email."""
    return email.strip().lower()


def token_digest(token: str) -> str:
    """SHA-256 hex digest stored in the slot in place of the raw refresh token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class UserRepository:
    """
    User persistence over one SQLAlchemy session.

    Each write commits its own transaction and rolls back on failure.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_email(self, email: str) -> User | None:
        return (
            self.session.query(User)
            .filter(User.email == normalize_email(email))
            .first()
        )

    def find_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def find_by_refresh_token(self, token: str) -> User | None:
        """Return the user whose slot holds exactly this refresh token."""
        digest = token_digest(token)
        user = self.session.query(User).filter(User.refresh_token == digest).first()
        if user is None or not hmac.compare_digest(user.refresh_token, digest):
            return None
        return user

    def create_user(self, email: str, password_hash: str, role_id: int) -> User:
        """
        Insert a user. Raises ConflictError if the normalized email is taken.

        A concurrent insert that slips past the lookup is caught by the unique
        index and reported the same way.
        """
        normalized = normalize_email(email)
        if self.find_by_email(normalized) is not None:
            raise ConflictError("Email already in use")
        user = User(email=normalized, password_hash=password_hash, role_id=role_id)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError("Email already in use") from e
        self.session.refresh(user)
        return user

    def save_refresh_token(self, user_id: int, token: str) -> None:
        """Overwrite the slot unconditionally (login)."""
        self._execute_update(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token=token_digest(token))
        )

    def rotate_refresh_token(self, user_id: int, old_token: str, new_token: str) -> bool:
        """
        Replace the slot with new_token only if it still holds old_token.

        Returns False when the slot no longer matches (a concurrent refresh or a
        logout got there first); nothing is written in that case.
        """
        rowcount = self._execute_update(
            update(User)
            .where(User.id == user_id, User.refresh_token == token_digest(old_token))
            .values(refresh_token=token_digest(new_token))
        )
        return rowcount == 1

    def clear_refresh_token(self, user_id: int) -> None:
        """Empty the slot. Unknown user ids are a no-op."""
        self._execute_update(
            update(User).where(User.id == user_id).values(refresh_token=None)
        )

    def _execute_update(self, stmt) -> int:
        try:
            result = self.session.execute(stmt.execution_options(synchronize_session=False))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        # Loaded instances may hold a stale slot value.
        self.session.expire_all()
        return result.rowcount
