"""Schema validation that reports one readable message per offending field.

Messages follow the wording clients of this API already rely on::

    instance.email is not of a type(s) string
    instance requires property "username"
    instance is not allowed to have the additional property "is_admin"

The validator is a pure function of a pydantic model and a decoded JSON
payload; it never touches the database.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Sequence, Tuple, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

_TYPE_NAMES = {
    "string_type": "string",
    "model_type": "object",
    "dict_type": "object",
    "bool_type": "boolean",
    "int_type": "integer",
}


def _instance_path(loc: Sequence[Any]) -> str:
    return ".".join(["instance", *(str(part) for part in loc)])


def format_error(error: Mapping[str, Any]) -> str:
    """Render a single pydantic error entry."""
    loc: Tuple[Any, ...] = tuple(error.get("loc", ()))
    error_type = str(error.get("type", ""))

    if error_type == "missing" and loc:
        return f'{_instance_path(loc[:-1])} requires property "{loc[-1]}"'
    if error_type == "extra_forbidden" and loc:
        return f'{_instance_path(loc[:-1])} is not allowed to have the additional property "{loc[-1]}"'
    if error_type in _TYPE_NAMES:
        return f"{_instance_path(loc)} is not of a type(s) {_TYPE_NAMES[error_type]}"
    return f"{_instance_path(loc)} {error.get('msg', 'is invalid')}"


def validate(schema: Type[BaseModel], payload: Any) -> List[str]:
    """Return the ordered list of validation messages for ``payload``.

    An empty list means the payload satisfies ``schema``. Messages for
    declared fields come first, in declaration order, followed by any
    additional properties in payload order.
    """

    try:
        schema.model_validate(payload)
    except PydanticValidationError as exc:
        return [format_error(error) for error in exc.errors()]
    return []


__all__ = ["format_error", "validate"]
