"""Load fixture users into the database."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping

import yaml

from .database import Database
from .models import User
from .schemas import NewUserRequest
from .validation import validate

logger = logging.getLogger("usersapi.seed")


def load_seed_users(path: Path) -> List[Dict[str, object]]:
    """Read the ``users`` list from a YAML seed file."""
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    users = raw.get("users") if isinstance(raw, dict) else None
    if not isinstance(users, list):
        raise ValueError("Seed file must define a list of users under the 'users' key")

    for index, entry in enumerate(users):
        errors = validate(NewUserRequest, entry)
        if errors:
            raise ValueError(f"Seed user #{index + 1} is invalid: {'; '.join(errors)}")
    return users


def seed_database(
    database: Database,
    users: Iterable[Mapping[str, object]],
    *,
    append: bool = False,
) -> List[User]:
    """Insert ``users``, clearing existing rows first unless ``append`` is set.

    All rows go in one transaction; a failing row leaves the table untouched.
    """

    requests = [NewUserRequest.model_validate(entry) for entry in users]
    created = database.replace_users(
        [request.model_dump() for request in requests],
        append=append,
    )
    logger.info("Seeded %d user(s)", len(created))
    return created


__all__ = ["load_seed_users", "seed_database"]
