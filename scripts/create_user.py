import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from users_api.config import get_settings, resolve_database_path
from users_api.database import Database


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a users API account")
    parser.add_argument("username", help="Unique username")
    parser.add_argument("first_name", help="Given name")
    parser.add_argument("last_name", help="Family name")
    parser.add_argument("email", help="Contact email address")
    parser.add_argument("--photo-url", dest="photo_url", default=None, help="Optional avatar URL")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to USERS_API_DB_PATH or data/users.sqlite3)",
    )
    return parser.parse_args()


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if not password:
            print("Password must not be empty.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main() -> int:
    args = parse_args()
    password = prompt_for_password()

    if args.db_path:
        db_path = resolve_database_path(args.db_path)
    else:
        db_path = get_settings().database_path

    database = Database(db_path)
    database.initialize()

    try:
        user = database.create_user(
            args.username.strip(),
            password,
            first_name=args.first_name.strip(),
            last_name=args.last_name.strip(),
            email=args.email.strip(),
            photo_url=args.photo_url,
        )
    except ValueError as exc:  # duplicates
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user.username}: {user.first_name} {user.last_name} <{user.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
