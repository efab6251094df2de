"""Domain models for the users resource."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class User:
    """Represents a user row stored in the users table.

    ``password`` holds the stored hash; it never leaves the service.
    """

    username: str
    password: str
    first_name: str
    last_name: str
    email: str
    photo_url: Optional[str]
    is_admin: bool = False


__all__ = ["User"]
