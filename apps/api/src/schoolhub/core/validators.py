"""
Field Validators

Shared field rules used by the per-operation request schemas, plus the
helpers that turn Pydantic validation failures into the flat list of error
strings returned in the failure envelope.

A request schema is a declarative rule list: each field is declared with one
of the annotated types below (ObjectId, Username, Password, ...) and the
schema is evaluated once per operation before any business logic runs.
"""

from collections.abc import Iterable, Sequence
from typing import Annotated, Any

import bson
from pydantic import AfterValidator, StringConstraints
from pydantic_core import PydanticCustomError

from schoolhub.core.errors import ValidationError

# Request locations FastAPI prefixes to error locs
_LOCATIONS = {"body", "query", "path", "header", "cookie"}

# Pydantic error type raised for malformed ids
OBJECT_ID_ERROR = "object_id"

Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=50)]
Password = Annotated[str, StringConstraints(min_length=8, max_length=128)]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Address = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
SearchTerm = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]


def camelize(name: str) -> str:
    """Convert a snake_case name to camelCase; camelCase input is returned unchanged."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def is_object_id(value: Any) -> bool:
    return isinstance(value, str) and bson.ObjectId.is_valid(value)


def _parse_object_id(value: str) -> str:
    # Stored ids are lower-case hex
    if not is_object_id(value):
        raise PydanticCustomError(OBJECT_ID_ERROR, "must be a valid ObjectId")
    return value.lower()


ObjectId = Annotated[str, AfterValidator(_parse_object_id)]


def _field_name(loc: Sequence[Any]) -> str:
    parts = [
        camelize(part) if isinstance(part, str) else str(part)
        for part in loc
        if part not in _LOCATIONS
    ]
    return ".".join(parts)


def format_validation_errors(errors: Iterable[dict[str, Any]]) -> list[str]:
    """
    Flatten Pydantic error dicts into human-readable strings.

    Works for both ``pydantic.ValidationError.errors()`` and FastAPI's
    ``RequestValidationError.errors()``.
    """
    messages: list[str] = []
    for error in errors:
        field = _field_name(error.get("loc", ()))
        error_type = error.get("type", "")
        message = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")

        if error_type == OBJECT_ID_ERROR:
            messages.append(f"{field} must be a valid ObjectId")
        elif error_type == "missing":
            messages.append(f"{field} is required")
        elif field:
            messages.append(f"{field}: {message}")
        else:
            messages.append(message)
    return messages


def require_object_id(value: Any, field: str) -> str:
    """
    Check an identifier that reached a service outside a request schema.

    Raises:
        ValidationError: If the value is not a valid ObjectId string
    """
    if not is_object_id(value):
        raise ValidationError([f"{field} must be a valid ObjectId"])
    return value.lower()


def normalize_name(value: str) -> str:
    """Case-fold a name for storage and uniqueness checks."""
    return value.strip().lower()


def normalize_resources(resources: Iterable[Any]) -> list[str]:
    """
    Trim, lower-case and de-duplicate a resource list.

    Non-string and blank entries are dropped; the first occurrence of each
    resource keeps its position.
    """
    normalized: list[str] = []
    for resource in resources:
        if not isinstance(resource, str):
            continue
        value = resource.strip().lower()
        if value and value not in normalized:
            normalized.append(value)
    return normalized


def like_pattern(term: str) -> str:
    """Build a substring LIKE pattern with wildcard characters escaped (escape char: backslash)."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
