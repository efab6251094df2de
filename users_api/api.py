"""FastAPI application exposing CRUD endpoints for users."""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List

from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import Database
from .schemas import MessageResponse, UserEnvelope, UserListEnvelope, ValidationErrorResponse
from .service import UserService, UserServiceError
from .validation import format_error

logger = logging.getLogger("usersapi.api")

INTERNAL_ERROR_MESSAGE = "Internal server error"


def request_errors_to_messages(errors: List[Dict[str, Any]]) -> List[str]:
    """Translate FastAPI request errors into the API's message format."""

    messages: List[str] = []
    for error in errors:
        if error.get("type") == "json_invalid":
            messages.append("instance is not valid JSON")
            continue
        # Drop the leading "body"/"path" segment FastAPI adds.
        loc = tuple(error.get("loc", ()))[1:]
        messages.append(format_error({**error, "loc": loc}))
    return messages


def create_app(
    *,
    database: Database | None = None,
    initialize_database: bool = False,
) -> FastAPI:
    if database is None:
        database = Database(get_settings().database_path)
        database.initialize()
    elif initialize_database:
        database.initialize()

    service = UserService(database)

    app = FastAPI(
        title="Users API",
        description="CRUD endpoints for the users resource",
        version="1.0.0",
    )
    app.state.database = database
    app.state.service = service

    @app.exception_handler(UserServiceError)
    async def handle_service_error(_request: Request, exc: UserServiceError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": request_errors_to_messages(list(exc.errors()))},
        )

    @app.exception_handler(sqlite3.Error)
    async def handle_store_error(request: Request, exc: sqlite3.Error) -> JSONResponse:
        logger.exception("Store failure while handling %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": INTERNAL_ERROR_MESSAGE},
        )

    def get_service() -> UserService:
        return service

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/users", response_model=UserListEnvelope)
    def list_users(users: UserService = Depends(get_service)) -> UserListEnvelope:
        return users.list_users()

    @app.post(
        "/users",
        response_model=UserEnvelope,
        responses={400: {"model": ValidationErrorResponse}, 409: {"model": MessageResponse}},
    )
    def create_user(
        payload: Any = Body(default=None),
        users: UserService = Depends(get_service),
    ) -> UserEnvelope:
        return users.create_user(payload)

    @app.get(
        "/users/{username}",
        response_model=UserEnvelope,
        responses={404: {"model": MessageResponse}},
    )
    def read_user(username: str, users: UserService = Depends(get_service)) -> UserEnvelope:
        return users.get_user(username)

    @app.patch(
        "/users/{username}",
        response_model=UserEnvelope,
        responses={400: {"model": ValidationErrorResponse}, 404: {"model": MessageResponse}},
    )
    def update_user(
        username: str,
        patch: Any = Body(default=None),
        users: UserService = Depends(get_service),
    ) -> UserEnvelope:
        return users.update_user(username, patch)

    @app.delete(
        "/users/{username}",
        response_model=MessageResponse,
        responses={404: {"model": MessageResponse}},
    )
    def delete_user(username: str, users: UserService = Depends(get_service)) -> MessageResponse:
        return users.delete_user(username)

    return app


__all__ = ["create_app", "request_errors_to_messages"]
