"""
Create a user account without going through HTTP. Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD [--role-id N]
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password --role-id 2
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.database import Database
from app.core.errors import ConflictError, ValidationError
from app.main import configure_logging
from app.repositories.users import UserRepository
from app.services.sessions import SessionService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Sessions API user account.")
    parser.add_argument("email", help="Email address (stored lowercase)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("--role-id", type=int, default=None, help="Role id (default: DEFAULT_ROLE_ID)")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings)
    database = Database(settings)
    db = database.session()
    try:
        service = SessionService(UserRepository(db), settings)
        try:
            user = service.register(args.email, args.password, args.role_id)
        except (ValidationError, ConflictError) as e:
            print(e.message, file=sys.stderr)
            return 1
        print(f"Created user '{user.email}' with id {user.id}.")
        return 0
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
