from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class SchemaValidationResult(Generic[ModelT]):
    success: bool
    data: ModelT | None = None
    errors: dict[str, str] = field(default_factory=dict)


def schema_errors(exc: ValidationError) -> dict[str, str]:
    """Flatten pydantic errors to ``{"items.0.quantity": message}``, first message per path."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or "general"
        cause = (error.get("ctx") or {}).get("error")
        message = str(cause) if error["type"] == "value_error" and cause is not None else error["msg"]
        errors.setdefault(path, message)
    return errors


def validate_with_schema(schema: type[ModelT], data: Mapping[str, Any]) -> SchemaValidationResult[ModelT]:
    try:
        return SchemaValidationResult(success=True, data=schema.model_validate(dict(data)))
    except ValidationError as exc:
        return SchemaValidationResult(success=False, errors=schema_errors(exc))


def validate_schema_field(
    schema: type[BaseModel],
    field_path: str,
    value: Any,
    full_data: Mapping[str, Any] | None = None,
) -> str | None:
    """Validate one (possibly dotted) field in the context of the rest of the form."""
    payload: dict[str, Any] = _deep_copy(full_data or {})
    parts = field_path.split(".")
    target: Any = payload
    for part in parts[:-1]:
        if isinstance(target, list):
            target = target[int(part)]
        else:
            target = target.setdefault(part, {})
    last = parts[-1]
    if isinstance(target, list):
        target[int(last)] = value
    else:
        target[last] = value

    result = validate_with_schema(schema, payload)
    return result.errors.get(field_path)


def _deep_copy(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {key: _deep_copy(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_deep_copy(item) for item in data]
    return data
