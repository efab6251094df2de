"""CRUD operations on the users resource."""

from __future__ import annotations

import logging
from typing import Any, List

from .database import Database, UserExistsError
from .schemas import (
    MessageResponse,
    NewUserRequest,
    UpdateUserRequest,
    UserEnvelope,
    UserListEnvelope,
    user_to_response,
)
from .validation import validate

logger = logging.getLogger("usersapi.service")

USER_NOT_FOUND_MESSAGE = "User does not exist"
USER_DELETED_MESSAGE = "User deleted! :("
USERNAME_TAKEN_MESSAGE = "Username already taken"


class UserServiceError(RuntimeError):
    """Base class for failures that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: Any) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(UserServiceError):
    """Raised when a payload does not satisfy its schema."""

    status_code = 400

    def __init__(self, messages: List[str]) -> None:
        super().__init__(list(messages))
        self.messages = list(messages)


class NotFoundError(UserServiceError):
    status_code = 404

    def __init__(self, username: str) -> None:
        super().__init__(USER_NOT_FOUND_MESSAGE)
        self.username = username


class ConflictError(UserServiceError):
    status_code = 409

    def __init__(self, username: str) -> None:
        super().__init__(USERNAME_TAKEN_MESSAGE)
        self.username = username


class UserService:
    """Validate requests, apply them to the store and redact the results."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def list_users(self) -> UserListEnvelope:
        users = self._database.list_users()
        return UserListEnvelope(users=[user_to_response(user) for user in users])

    def create_user(self, payload: Any) -> UserEnvelope:
        errors = validate(NewUserRequest, payload)
        if errors:
            logger.warning("Rejected new user payload with %d error(s)", len(errors))
            raise ValidationError(errors)

        request = NewUserRequest.model_validate(payload)
        try:
            user = self._database.create_user(
                request.username,
                request.password,
                first_name=request.first_name,
                last_name=request.last_name,
                email=request.email,
                photo_url=request.photo_url,
            )
        except UserExistsError as exc:
            logger.warning("Refused to create duplicate user %s", request.username)
            raise ConflictError(request.username) from exc

        logger.info("Created user %s", user.username)
        return UserEnvelope(user=user_to_response(user))

    def get_user(self, username: str) -> UserEnvelope:
        user = self._database.get_user(username)
        if user is None:
            logger.warning("User %s not found", username)
            raise NotFoundError(username)
        return UserEnvelope(user=user_to_response(user))

    def update_user(self, username: str, patch: Any) -> UserEnvelope:
        """Apply a partial update; fields absent from ``patch`` keep their values."""

        if self._database.get_user(username) is None:
            logger.warning("Cannot update missing user %s", username)
            raise NotFoundError(username)

        errors = validate(UpdateUserRequest, patch)
        if errors:
            logger.warning("Rejected update for %s with %d error(s)", username, len(errors))
            raise ValidationError(errors)

        changes = UpdateUserRequest.model_validate(patch).model_dump(exclude_unset=True)
        updated = self._database.update_user(username, changes)
        if updated is None:
            # Deleted between the existence check and the write.
            raise NotFoundError(username)

        logger.info("Updated user %s (%s)", username, ", ".join(sorted(changes)) or "no fields")
        return UserEnvelope(user=user_to_response(updated))

    def delete_user(self, username: str) -> MessageResponse:
        if not self._database.delete_user(username):
            logger.warning("Cannot delete missing user %s", username)
            raise NotFoundError(username)
        logger.info("Deleted user %s", username)
        return MessageResponse(message=USER_DELETED_MESSAGE)


__all__ = [
    "ConflictError",
    "NotFoundError",
    "USER_DELETED_MESSAGE",
    "USER_NOT_FOUND_MESSAGE",
    "USERNAME_TAKEN_MESSAGE",
    "UserService",
    "UserServiceError",
    "ValidationError",
]
