from __future__ import annotations

from typing import Sequence

from src.domain.entities.operation import OperationKind, ValidatedOperation
from src.domain.exceptions import InvalidSequence


def check_sequence(operations: Sequence[ValidatedOperation]) -> None:
    """Enforce the pipeline shape: exactly one input first, exactly one output last."""
    if len(operations) < 2:
        raise InvalidSequence("A pipeline requires at least an input and an output operation.")

    if operations[0].operation is not OperationKind.INPUT:
        raise InvalidSequence("An input operation must be the first operation.")

    if operations[-1].operation is not OperationKind.OUTPUT:
        raise InvalidSequence("An output operation must be the last operation.")

    for position, operation in enumerate(operations[1:-1], start=1):
        if operation.operation is OperationKind.INPUT:
            raise InvalidSequence(
                f"Only one input operation is allowed, found another at position {position}."
            )
        if operation.operation is OperationKind.OUTPUT:
            raise InvalidSequence(
                f"Only one output operation is allowed, found another at position {position}."
            )
