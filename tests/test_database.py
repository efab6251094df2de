from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from users_api.database import Database, UserExistsError


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db_path = tmp_path / "users.sqlite3"
    db = Database(db_path)
    db.initialize()
    return db


def _create(database: Database, username: str = "glenn", password: str = "password"):
    return database.create_user(
        username,
        password,
        first_name="Glenn",
        last_name="Ramel",
        email="glenn@glenn.com",
        photo_url="http://glenn.com",
    )


def test_create_user_hashes_password_and_defaults_admin(database: Database) -> None:
    user = _create(database)

    assert user.username == "glenn"
    assert user.is_admin is False
    assert user.password != "password"
    assert user.password.startswith("$pbkdf2-sha256$")
    assert database.verify_user_password("glenn", "password")
    assert not database.verify_user_password("glenn", "incorrect")
    assert not database.verify_user_password("nobody", "password")


def test_duplicate_username_is_rejected(database: Database) -> None:
    _create(database)

    with pytest.raises(UserExistsError):
        _create(database, password="another")

    assert len(database.list_users()) == 1


def test_list_users_preserves_insertion_order(database: Database) -> None:
    for name in ("zed", "amy", "bob"):
        _create(database, username=name)

    assert [user.username for user in database.list_users()] == ["zed", "amy", "bob"]


def test_update_user_overwrites_only_given_columns(database: Database) -> None:
    _create(database)

    updated = database.update_user("glenn", {"email": "glenn1@glenn.com"})

    assert updated is not None
    assert updated.email == "glenn1@glenn.com"
    assert updated.first_name == "Glenn"
    assert updated.photo_url == "http://glenn.com"
    assert database.verify_user_password("glenn", "password")


def test_update_user_rejects_identity_columns(database: Database) -> None:
    _create(database)

    with pytest.raises(ValueError):
        database.update_user("glenn", {"username": "someone-else"})
    with pytest.raises(ValueError):
        database.update_user("glenn", {"is_admin": "1"})

    assert database.get_user("glenn") is not None


def test_update_missing_user_returns_none(database: Database) -> None:
    assert database.update_user("bob", {"email": "bob@bob.com"}) is None
    assert database.update_user("bob", {}) is None


def test_delete_and_clear(database: Database) -> None:
    _create(database)
    _create(database, username="kenny")

    assert database.delete_user("glenn") is True
    assert database.delete_user("glenn") is False
    assert database.get_user("glenn") is None

    assert database.clear_users() == 1
    assert database.list_users() == []


def _row(username: str) -> dict:
    return {
        "username": username,
        "password": "password",
        "first_name": "Seed",
        "last_name": "User",
        "email": f"{username}@example.com",
        "photo_url": None,
    }


def test_replace_users_clears_then_inserts(database: Database) -> None:
    _create(database, username="old")

    created = database.replace_users([_row("a"), _row("b")])

    assert [user.username for user in created] == ["a", "b"]
    assert [user.username for user in database.list_users()] == ["a", "b"]


def test_replace_users_append_keeps_existing(database: Database) -> None:
    _create(database, username="old")

    database.replace_users([_row("a")], append=True)

    assert [user.username for user in database.list_users()] == ["old", "a"]


def test_replace_users_rolls_back_on_duplicate(database: Database) -> None:
    _create(database, username="old")

    with pytest.raises(UserExistsError):
        database.replace_users([_row("a"), _row("a")])

    assert [user.username for user in database.list_users()] == ["old"]


def test_connections_are_closed_after_use(database: Database) -> None:
    with database._connect() as conn:
        conn.execute("SELECT 1")

    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")
