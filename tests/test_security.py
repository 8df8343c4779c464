"""Unit tests for app.core.security: bcrypt hashing and access/refresh token issue and verify."""

import unittest
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import jwt

from app.core.config import Settings
from app.core.errors import InvalidTokenError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    dummy_password_hash,
    hash_password,
    verify_password,
)

ACCESS_SECRET = "access-secret-for-tests-0123456789abcdef"
REFRESH_SECRET = "refresh-secret-for-tests-0123456789abcdef"


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "JWT_ACCESS_SECRET": ACCESS_SECRET,
        "JWT_REFRESH_SECRET": REFRESH_SECRET,
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": 4,
    }
    values.update(overrides)
    return Settings(**values)


def _user(user_id: int = 7, email: str = "a@b.com", role_id: int = 2) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, email=email, role_id=role_id)


class TestPasswordHashing(unittest.TestCase):
    def test_hash_is_not_plaintext_and_verifies(self) -> None:
        hashed = hash_password("pw123456", rounds=4)
        self.assertNotEqual(hashed, "pw123456")
        self.assertTrue(hashed.startswith("$2"))
        self.assertTrue(verify_password("pw123456", hashed))
        self.assertFalse(verify_password("pw1234567", hashed))

    def test_hash_is_salted(self) -> None:
        self.assertNotEqual(hash_password("pw123456", rounds=4), hash_password("pw123456", rounds=4))

    def test_cost_factor_encoded_in_hash(self) -> None:
        self.assertIn("$10$", hash_password("pw123456", rounds=10))

    def test_malformed_hash_returns_false(self) -> None:
        self.assertFalse(verify_password("pw123456", "not-a-bcrypt-hash"))

    def test_dummy_hash_cached_per_rounds(self) -> None:
        self.assertIs(dummy_password_hash(4), dummy_password_hash(4))
        self.assertFalse(verify_password("pw123456", dummy_password_hash(4)))


class TestAccessToken(unittest.TestCase):
    def test_claims(self) -> None:
        settings = _settings()
        claims = decode_access_token(create_access_token(_user(), settings), settings)
        self.assertEqual(claims["sub"], "7")
        self.assertEqual(claims["email"], "a@b.com")
        self.assertEqual(claims["role_id"], 2)
        self.assertEqual(claims["type"], "access")

    def test_lifetime_is_fifteen_minutes(self) -> None:
        settings = _settings()
        claims = decode_access_token(create_access_token(_user(), settings), settings)
        self.assertEqual(claims["exp"] - claims["iat"], 15 * 60)

    def test_expired_rejected(self) -> None:
        settings = _settings()
        past = datetime.now(UTC) - timedelta(minutes=30)
        token = jwt.encode(
            {"sub": "7", "type": "access", "iat": past, "exp": past + timedelta(minutes=15)},
            ACCESS_SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(InvalidTokenError) as ctx:
            decode_access_token(token, settings)
        self.assertEqual(ctx.exception.message, "Token expired")

    def test_wrong_secret_rejected(self) -> None:
        settings = _settings()
        token = create_access_token(_user(), _settings(JWT_ACCESS_SECRET="some-other-access-secret-0123456789abcdef"))
        with self.assertRaises(InvalidTokenError) as ctx:
            decode_access_token(token, settings)
        self.assertEqual(ctx.exception.message, "Invalid token")


class TestRefreshToken(unittest.TestCase):
    def test_claims_exclude_role(self) -> None:
        settings = _settings()
        claims = decode_refresh_token(create_refresh_token(_user(), settings), settings)
        self.assertEqual(claims["sub"], "7")
        self.assertEqual(claims["email"], "a@b.com")
        self.assertEqual(claims["type"], "refresh")
        self.assertNotIn("role_id", claims)

    def test_lifetime_is_seven_days(self) -> None:
        settings = _settings()
        claims = decode_refresh_token(create_refresh_token(_user(), settings), settings)
        self.assertEqual(claims["exp"] - claims["iat"], 7 * 24 * 3600)

    def test_each_token_unique(self) -> None:
        settings = _settings()
        self.assertNotEqual(
            create_refresh_token(_user(), settings),
            create_refresh_token(_user(), settings),
        )


class TestSecretSeparation(unittest.TestCase):
    """Access and refresh tokens never validate as each other."""

    def test_access_token_rejected_as_refresh(self) -> None:
        settings = _settings()
        with self.assertRaises(InvalidTokenError):
            decode_refresh_token(create_access_token(_user(), settings), settings)

    def test_refresh_token_rejected_as_access(self) -> None:
        settings = _settings()
        with self.assertRaises(InvalidTokenError):
            decode_access_token(create_refresh_token(_user(), settings), settings)

    def test_refresh_type_claim_signed_with_access_secret_rejected(self) -> None:
        settings = _settings()
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "7", "type": "refresh", "iat": now, "exp": now + timedelta(days=1)},
            ACCESS_SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(InvalidTokenError):
            decode_refresh_token(token, settings)

    def test_rotated_secret_invalidates_tokens(self) -> None:
        token = create_refresh_token(_user(), _settings())
        with self.assertRaises(InvalidTokenError):
            decode_refresh_token(token, _settings(JWT_REFRESH_SECRET="rotated-refresh-secret-0123456789abcdef"))


if __name__ == "__main__":
    unittest.main()
