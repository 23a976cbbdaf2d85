"""Decoding of the two request encodings into raw operations.

Query form: a single `operations` parameter holding a JSON array such as
``[{"operation": "input"}, {"operation": "resize", "options": {"width": 100}}]``.

Path form: one path segment per operation, ``name;key=value;key=value``, with
names, keys and values percent-encoded, e.g.
``/process/input;type=url;url=https%3A%2F%2Fexample.com%2Fa.png/resize;width=100/output``.

Both produce the same list of RawOperation, so validation has a single entry point.
"""
from __future__ import annotations

import json
from urllib.parse import unquote

from pydantic import ValidationError

from src.application.dtos.operation_dto import RAW_OPERATIONS, RawOperation
from src.domain.exceptions import MalformedInput


def decode_json_operations(operations: str | None) -> list[RawOperation]:
    if not operations:
        raise MalformedInput(
            "An 'operations' query parameter is required: a JSON array of operations "
            "to perform, converted to a JSON string and URL encoded."
        )
    try:
        payload = json.loads(operations)
    except json.JSONDecodeError as exc:
        raise MalformedInput(f"Invalid operations JSON string. {exc}") from exc
    if not isinstance(payload, list):
        raise MalformedInput("The 'operations' query parameter must be a JSON array.")
    try:
        return RAW_OPERATIONS.validate_python(payload)
    except ValidationError as exc:
        error = exc.errors(include_url=False)[0]
        location = ".".join(str(part) for part in error["loc"])
        raise MalformedInput(f"Invalid operation at {location}: {error['msg']}.") from None


def _decode_segment(segment: str) -> RawOperation:
    name, *pairs = segment.split(";")
    options: dict[str, str] = {}
    for pair in pairs:
        if not pair:
            continue
        key, separator, value = pair.partition("=")
        key = unquote(key)
        if not separator or not key:
            raise MalformedInput(
                f"Invalid option '{unquote(pair)}' in path segment '{unquote(segment)}', "
                "expected key=value."
            )
        if key in options:
            raise MalformedInput(f"Option '{key}' is given more than once in '{unquote(name)}'.")
        options[key] = unquote(value)
    name = unquote(name)
    if not name:
        raise MalformedInput(f"Missing operation name in path segment '{unquote(segment)}'.")
    return RawOperation(operation=name, options=options)


def decode_path_operations(path: str) -> list[RawOperation]:
    """Decode still percent-encoded path segments into raw operations."""
    return [_decode_segment(segment) for segment in path.split("/") if segment]
