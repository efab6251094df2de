from __future__ import annotations

from pathlib import Path

import pytest

from main import _parse_args, main
from users_api.database import Database

SEED_FILE = Path(__file__).resolve().parent / "fixtures" / "seed_users.yaml"


@pytest.fixture
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "cli.sqlite3"
    monkeypatch.setenv("USERS_API_CONFIG", str(tmp_path / "absent.yaml"))
    monkeypatch.setenv("USERS_API_DB_PATH", str(path))
    return path


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_seed_subcommand_arguments() -> None:
    args = _parse_args(["seed", "users.yaml", "--append"])
    assert args.command == "seed"
    assert args.file == Path("users.yaml")
    assert args.append is True


def test_init_db_creates_schema(db_path: Path) -> None:
    assert main(["init-db"]) == 0
    assert Database(db_path).list_users() == []


def test_seed_replaces_existing_users(db_path: Path) -> None:
    database = Database(db_path)
    database.initialize()
    database.create_user("old", "pw", first_name="Old", last_name="User", email="old@example.com")

    assert main(["seed", str(SEED_FILE)]) == 0

    users = database.list_users()
    assert [user.username for user in users] == ["glenn", "kenny"]
    assert users[1].photo_url is None
    assert database.verify_user_password("glenn", "password")


def test_seed_append_with_duplicates_fails(db_path: Path) -> None:
    assert main(["seed", str(SEED_FILE)]) == 0
    assert main(["seed", str(SEED_FILE), "--append"]) == 1


def test_seed_rejects_invalid_file(db_path: Path, tmp_path: Path) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("users:\n  - username: glenn\n    password: 5\n", encoding="utf-8")

    assert main(["seed", str(bad)]) == 1
    assert Database(db_path).list_users() == []


def test_failed_seed_keeps_existing_users(db_path: Path, tmp_path: Path) -> None:
    database = Database(db_path)
    database.initialize()
    database.create_user("old", "pw", first_name="Old", last_name="User", email="old@example.com")

    repeated = tmp_path / "repeated.yaml"
    entry = (
        "  - username: a\n"
        "    password: pw\n"
        "    first_name: A\n"
        "    last_name: A\n"
        "    email: a@example.com\n"
    )
    repeated.write_text("users:\n" + entry + entry, encoding="utf-8")

    assert main(["seed", str(repeated)]) == 1
    assert [user.username for user in database.list_users()] == ["old"]
