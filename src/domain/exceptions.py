from __future__ import annotations

from typing import Any


class ImageApiError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class OperationValidationError(ImageApiError):
    """Client-caused failure; reported back to the caller verbatim."""


class MalformedInput(OperationValidationError):
    pass


class UnknownOperation(OperationValidationError):
    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Unknown operation '{operation}'.")


class MissingOption(OperationValidationError):
    def __init__(self, operation: str, keys: tuple[str, ...]) -> None:
        self.operation = operation
        self.keys = keys
        if len(keys) == 1:
            message = f"Missing required option '{keys[0]}' for operation '{operation}'."
        else:
            names = ", ".join(f"'{key}'" for key in keys)
            message = f"Operation '{operation}' requires one of the options {names}."
        super().__init__(message)

    @property
    def key(self) -> str:
        return self.keys[0]


class InvalidOptionValue(OperationValidationError):
    def __init__(self, operation: str, key: str, expected: str, received: Any) -> None:
        self.operation = operation
        self.key = key
        self.expected = expected
        self.received = received
        super().__init__(
            f"Invalid value for option '{key}' of operation '{operation}': "
            f"{expected}, received {received!r}."
        )


class UnknownOption(InvalidOptionValue):
    def __init__(self, operation: str, key: str, received: Any) -> None:
        super().__init__(operation, key, "no such option is supported", received)


class InvalidSequence(OperationValidationError):
    pass


class ProcessingError(ImageApiError):
    """Failure raised by the image capability while loading, transforming or encoding."""
