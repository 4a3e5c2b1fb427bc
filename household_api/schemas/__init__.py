"""Pydantic request models and helpers to turn validation errors into InvalidInputError."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from household_api.core.errors import InvalidInputError

ModelT = TypeVar("ModelT", bound=BaseModel)

VALIDATION_FAILED = "Validation failed"


def field_errors(errors: Iterable[Mapping[str, Any]]) -> dict[str, list[str]]:
    """Group pydantic error entries as ``field -> [messages]``."""
    grouped: dict[str, list[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "__root__"
        message = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        grouped.setdefault(field, []).append(message)
    return grouped


def parse_payload(model: Type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    """Accept an already-built model or validate a mapping into one."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(VALIDATION_FAILED, field_errors(exc.errors())) from exc
