from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from src.application.dtos.operation_dto import RawOperation
from src.application.use_cases.execute_pipeline import PipelineExecutor
from src.domain.entities.operation import PipelineResult, ValidatedOperation
from src.domain.services.operation_validator import validate_operations
from src.domain.services.processing_service import ImageProcessor
from src.domain.services.sequence_checker import check_sequence


def validate_pipeline(
    raw_operations: Sequence[RawOperation], *, from_path: bool = False
) -> tuple[ValidatedOperation, ...]:
    """Validate each operation, then the shape of the whole sequence.

    Per-operation errors always win over sequence errors, so a malformed
    operation is reported as itself even when the sequence is also wrong.
    `from_path` marks options decoded from path segments, where every value
    arrives as a string.
    """
    operations = validate_operations(
        ((raw.operation, raw.options) for raw in raw_operations), from_path=from_path
    )
    check_sequence(operations)
    return operations


@dataclass
class ProcessImageUseCase:
    processing: ImageProcessor

    async def execute(
        self, raw_operations: Sequence[RawOperation], *, from_path: bool = False
    ) -> PipelineResult:
        """
        Validate the requested operations and run them against the input image.

        Nothing reaches the image backend unless the whole sequence is valid.

        Raises:
            OperationValidationError: the request is invalid (client error)
            ProcessingError: the image backend failed
        """
        operations = validate_pipeline(raw_operations, from_path=from_path)
        return await PipelineExecutor(self.processing).execute(operations)
