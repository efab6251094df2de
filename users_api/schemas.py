"""Request contracts and the public representation of a user."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, StrictStr

from .models import User


class NewUserRequest(BaseModel):
    """Payload accepted by ``POST /users``.

    Field order is significant: validation messages are reported in it.
    """

    model_config = ConfigDict(extra="forbid")

    username: StrictStr
    password: StrictStr
    first_name: StrictStr
    last_name: StrictStr
    email: StrictStr
    photo_url: StrictStr = None  # type: ignore[assignment]


class UpdateUserRequest(BaseModel):
    """Payload accepted by ``PATCH /users/{username}``.

    ``username`` and ``is_admin`` are deliberately absent, so the forbid rule
    rejects them as additional properties.
    """

    model_config = ConfigDict(extra="forbid")

    password: StrictStr = None  # type: ignore[assignment]
    first_name: StrictStr = None  # type: ignore[assignment]
    last_name: StrictStr = None  # type: ignore[assignment]
    email: StrictStr = None  # type: ignore[assignment]
    photo_url: StrictStr = None  # type: ignore[assignment]


class UserResponse(BaseModel):
    username: str
    first_name: str
    last_name: str
    email: str
    photo_url: Optional[str] = None


class UserEnvelope(BaseModel):
    user: UserResponse


class UserListEnvelope(BaseModel):
    users: List[UserResponse]


class MessageResponse(BaseModel):
    message: str


class ValidationErrorResponse(BaseModel):
    message: List[str]


def user_to_response(user: User) -> UserResponse:
    """Project a stored user onto the fields that may leave the service."""
    return UserResponse(
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        photo_url=user.photo_url,
    )


__all__ = [
    "MessageResponse",
    "NewUserRequest",
    "UpdateUserRequest",
    "UserEnvelope",
    "UserListEnvelope",
    "UserResponse",
    "ValidationErrorResponse",
    "user_to_response",
]
