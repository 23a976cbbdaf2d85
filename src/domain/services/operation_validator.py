from __future__ import annotations

from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from src.domain.entities.operation import ValidatedOperation
from src.domain.exceptions import InvalidOptionValue, MissingOption, UnknownOption
from src.domain.schemas.operation_schemas import OPERATION_SCHEMAS, operation_kind


def _option_key(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) if loc else "options"


def _as_option_error(name: str, exc: ValidationError) -> Exception:
    # Report the first problem only; callers fix one option at a time.
    error = exc.errors(include_url=False)[0]
    key = _option_key(error["loc"])
    if error["type"] == "missing":
        return MissingOption(name, (key,))
    if error["type"] == "extra_forbidden":
        return UnknownOption(name, key, error["input"])
    return InvalidOptionValue(name, key, error["msg"], error["input"])


def validate_operation(
    name: str, options: Mapping[str, Any], *, from_path: bool = False
) -> ValidatedOperation:
    """Check one operation's options against its schema and fill in defaults.

    JSON options must already carry the right value types (an int is still
    accepted where a float is expected). Path options are all strings and are
    parsed into the schema's types instead.

    Raises UnknownOperation, MissingOption or InvalidOptionValue.
    """
    kind = operation_kind(name)
    schema = OPERATION_SCHEMAS[kind]
    try:
        if from_path:
            validated = schema.model_validate_strings(dict(options))
        else:
            validated = schema.model_validate(dict(options), strict=True)
    except ValidationError as exc:
        raise _as_option_error(name, exc) from None
    missing = validated.missing_options()
    if missing:
        raise MissingOption(name, missing)
    return ValidatedOperation(operation=kind, options=validated)


def validate_operations(
    operations: Iterable[tuple[str, Mapping[str, Any]]], *, from_path: bool = False
) -> tuple[ValidatedOperation, ...]:
    """Validate every operation in order, stopping at the first failure."""
    return tuple(
        validate_operation(name, options, from_path=from_path) for name, options in operations
    )
