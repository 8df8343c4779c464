"""Session workflow: register, login, refresh-token rotation, and logout."""

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.core.errors import (
    AuthenticationError,
    ConflictError,
    InvalidTokenError,
    ValidationError,
)
from app.core.security import (
    EMAIL_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from app.repositories.users import UserRepository, normalize_email

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Shape check only; deliverability is not verified.
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"


@dataclass(frozen=True)
class UserSummary:
    """User projection safe to return to callers (no password hash, no slot)."""

    id: int
    email: str
    role_id: int


@dataclass(frozen=True)
class RegisteredUser:
    id: int
    email: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: UserSummary


def validate_email(email: str | None) -> str:
    """Return the normalized email or raise ValidationError."""
    if email is None or not email.strip():
        raise ValidationError("Email is required.")
    normalized = normalize_email(email)
    if len(normalized) > EMAIL_MAX_LEN or not EMAIL_PATTERN.match(normalized):
        raise ValidationError("Invalid email address.")
    return normalized


def validate_password(password: str | None) -> str:
    if not password:
        raise ValidationError("Password is required.")
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters."
        )
    return password


class SessionService:
    """
    Orchestrates the per-user session state held in the refresh-token slot.

    NoSession (slot empty) -> Active (slot holds the live refresh token) on login;
    refresh rotates the slot; logout empties it. A later login overwrites the
    slot, so each user has at most one live session.
    """

    def __init__(self, users: UserRepository, settings: "Settings") -> None:
        self.users = users
        self.settings = settings

    def register(
        self, email: str | None, password: str | None, role_id: int | None = None
    ) -> RegisteredUser:
        """Create an account. Does not log the user in."""
        normalized = validate_email(email)
        validate_password(password)
        # Missing or non-positive role ids fall back to the default role.
        if role_id is None or role_id < 1:
            role_id = self.settings.DEFAULT_ROLE_ID

        # Cheap duplicate check before paying for bcrypt; create_user re-checks.
        if self.users.find_by_email(normalized) is not None:
            logger.info("Registration rejected: email already in use")
            raise ConflictError("Email already in use")

        password_hash = hash_password(password, rounds=self.settings.BCRYPT_ROUNDS)
        user = self.users.create_user(normalized, password_hash, role_id)
        logger.info("User registered", extra={"user_id": user.id, "role_id": role_id})
        return RegisteredUser(id=user.id, email=user.email)

    def login(self, email: str | None, password: str | None) -> LoginResult:
        """
        Verify credentials and open a new session, replacing any previous one.

        Unknown email and wrong password fail with the same error and message.
        """
        if not email or not email.strip() or not password:
            raise ValidationError("Email and password are required.")

        user = self.users.find_by_email(email)
        if user is None:
            # Keep timing equal to the wrong-password path.
            verify_password(password, dummy_password_hash(self.settings.BCRYPT_ROUNDS))
            logger.info("Login failed: invalid credentials")
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            logger.info("Login failed: invalid credentials", extra={"user_id": user.id})
            raise AuthenticationError(INVALID_CREDENTIALS)

        summary = UserSummary(id=user.id, email=user.email, role_id=user.role_id)
        access_token = create_access_token(summary, self.settings)
        refresh_token = create_refresh_token(summary, self.settings)
        self.users.save_refresh_token(summary.id, refresh_token)
        logger.info("Login succeeded", extra={"user_id": summary.id})
        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            user=summary,
        )

    def refresh(self, refresh_token: str | None) -> TokenPair:
        """
        Exchange the live refresh token for a new pair and rotate the slot.

        Nothing is written unless the presented token is both the slot value and
        a valid, unexpired refresh token for that user.
        """
        if not refresh_token:
            raise ValidationError("refreshToken is required.")

        user = self.users.find_by_refresh_token(refresh_token)
        if user is None:
            logger.info("Refresh rejected: token does not match any active session")
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        try:
            claims = decode_refresh_token(refresh_token, self.settings)
        except InvalidTokenError as e:
            logger.info(
                "Refresh rejected: %s", e.message, extra={"user_id": user.id}
            )
            raise AuthenticationError(INVALID_REFRESH_TOKEN) from e
        if claims.get("sub") != str(user.id):
            logger.warning("Refresh rejected: subject mismatch", extra={"user_id": user.id})
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        summary = UserSummary(id=user.id, email=user.email, role_id=user.role_id)
        access_token = create_access_token(summary, self.settings)
        new_refresh_token = create_refresh_token(summary, self.settings)
        if not self.users.rotate_refresh_token(summary.id, refresh_token, new_refresh_token):
            logger.info(
                "Refresh rejected: session changed concurrently",
                extra={"user_id": summary.id},
            )
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        logger.info("Refresh token rotated", extra={"user_id": summary.id})
        return TokenPair(access_token=access_token, refresh_token=new_refresh_token)

    def logout(self, user_id: int) -> None:
        """Close the user's session. Idempotent; unknown users are a no-op."""
        self.users.clear_refresh_token(user_id)
        logger.info("Logged out", extra={"user_id": user_id})
