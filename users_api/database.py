"""SQLite-backed persistence for users."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from passlib.context import CryptContext

from .config import resolve_database_path
from .models import User

# Columns that may be rewritten after creation. ``username`` is the identity
# and ``is_admin`` is server-assigned, so neither is listed.
MUTABLE_COLUMNS = ("password", "first_name", "last_name", "email", "photo_url")

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def _verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


class UserExistsError(ValueError):
    """Raised when inserting a username that is already stored."""

    def __init__(self, username: str) -> None:
        super().__init__(f"A user named {username!r} already exists")
        self.username = username


class Database:
    """Simple wrapper around SQLite for persisting users."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit or roll back on exit, and close it."""

        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the users table if it does not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    username TEXT PRIMARY KEY,
                    password TEXT NOT NULL,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    photo_url TEXT,
                    is_admin INTEGER NOT NULL DEFAULT 0
                );
                """
            )

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(
        self,
        username: str,
        password: str,
        *,
        first_name: str,
        last_name: str,
        email: str,
        photo_url: Optional[str] = None,
    ) -> User:
        """Insert a new user with ``is_admin`` left at its default."""

        with self._connect() as conn:
            return self._insert_user(
                conn,
                username,
                password,
                first_name=first_name,
                last_name=last_name,
                email=email,
                photo_url=photo_url,
            )

    def replace_users(self, users: Iterable[Mapping[str, Optional[str]]], *, append: bool = False) -> List[User]:
        """Insert ``users`` in a single transaction, clearing the table first unless ``append``.

        If any insert fails nothing is changed, including the clear.
        """

        created: List[User] = []
        with self._connect() as conn:
            if not append:
                conn.execute("DELETE FROM users")
            for entry in users:
                created.append(
                    self._insert_user(
                        conn,
                        str(entry["username"]),
                        str(entry["password"]),
                        first_name=str(entry["first_name"]),
                        last_name=str(entry["last_name"]),
                        email=str(entry["email"]),
                        photo_url=entry.get("photo_url"),
                    )
                )
        return created

    def _insert_user(
        self,
        conn: sqlite3.Connection,
        username: str,
        password: str,
        *,
        first_name: str,
        last_name: str,
        email: str,
        photo_url: Optional[str],
    ) -> User:
        try:
            conn.execute(
                """
                INSERT INTO users (
                    username,
                    password,
                    first_name,
                    last_name,
                    email,
                    photo_url
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (username, _hash_password(password), first_name, last_name, email, photo_url),
            )
        except sqlite3.IntegrityError as exc:
            raise UserExistsError(username) from exc
        row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
        return self._row_to_user(row)

    def list_users(self) -> List[User]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY rowid").fetchall()
        return [self._row_to_user(row) for row in rows]

    def get_user(self, username: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def update_user(self, username: str, changes: Mapping[str, Optional[str]]) -> Optional[User]:
        """Overwrite only the supplied columns and return the refreshed row.

        Returns ``None`` when no user with that username exists.
        """

        unknown = set(changes) - set(MUTABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot update column(s): {', '.join(sorted(unknown))}")

        values: Dict[str, Optional[str]] = dict(changes)
        if values.get("password") is not None:
            values["password"] = _hash_password(str(values["password"]))

        columns = [column for column in MUTABLE_COLUMNS if column in values]
        with self._connect() as conn:
            if columns:
                assignments = ", ".join(f"{column} = ?" for column in columns)
                conn.execute(
                    f"UPDATE users SET {assignments} WHERE username = ?",
                    (*[values[column] for column in columns], username),
                )
            row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()

        if row is None:
            return None
        return self._row_to_user(row)

    def delete_user(self, username: str) -> bool:
        """Delete a user, returning ``True`` if a row was removed."""

        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM users WHERE username = ?", (username,))
            return cursor.rowcount > 0

    def clear_users(self) -> int:
        """Remove every user row. Used when reseeding."""

        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM users")
            return cursor.rowcount

    def verify_user_password(self, username: str, password: str) -> bool:
        """Return ``True`` if the supplied password matches the stored hash."""

        user = self.get_user(username)
        if user is None:
            return False
        return _verify_password(password, user.password)

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            username=row["username"],
            password=row["password"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            photo_url=row["photo_url"],
            is_admin=bool(row["is_admin"]),
        )


__all__ = ["Database", "MUTABLE_COLUMNS", "UserExistsError", "resolve_database_path"]
