"""Tests for the app.scripts.create_user CLI."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from app.core.config import Settings
from app.core.database import Database
from app.repositories.users import UserRepository
from app.scripts import create_user


class TestCreateUserCli(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = Settings(
            JWT_ACCESS_SECRET="access-secret-for-tests-0123456789abcdef",
            JWT_REFRESH_SECRET="refresh-secret-for-tests-0123456789abcdef",
            DATABASE_URL="sqlite://",
            BCRYPT_ROUNDS=4,
        )
        self.database = Database(self.settings)
        self.database.create_all()
        patches = [
            patch.object(create_user, "get_settings", return_value=self.settings),
            patch.object(create_user, "Database", return_value=self.database),
            patch.object(self.database, "dispose"),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)
        self.addCleanup(self.database.engine.dispose)

    def _run(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = create_user.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_creates_user(self) -> None:
        code, out, _ = self._run("Admin@Example.com", "pw123456", "--role-id", "2")
        self.assertEqual(code, 0)
        self.assertIn("admin@example.com", out)
        session = self.database.session()
        try:
            user = UserRepository(session).find_by_email("admin@example.com")
            self.assertEqual(user.role_id, 2)
            self.assertNotEqual(user.password_hash, "pw123456")
        finally:
            session.close()

    def test_duplicate_fails(self) -> None:
        self.assertEqual(self._run("admin@example.com", "pw123456")[0], 0)
        code, _, err = self._run("ADMIN@example.com", "pw123456")
        self.assertEqual(code, 1)
        self.assertIn("Email already in use", err)

    def test_short_password_fails(self) -> None:
        code, _, err = self._run("admin@example.com", "short")
        self.assertEqual(code, 1)
        self.assertIn("Password must be", err)


if __name__ == "__main__":
    unittest.main()
