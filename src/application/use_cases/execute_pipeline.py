from __future__ import annotations

from enum import Enum
from typing import Sequence

from starlette.concurrency import run_in_threadpool

from src.domain.entities.operation import PipelineResult, ValidatedOperation, strip_buffer_metadata
from src.domain.exceptions import ProcessingError
from src.domain.services.processing_service import ImageProcessor


class PipelineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PROCESSING = "processing"
    FINALIZED = "finalized"
    FAILED = "failed"


class PipelineExecutor:
    """
    Apply a validated operation sequence to one image.

    The first operation loads the image, every following one receives the
    handle returned by the previous step. Only the latest handle is kept, so a
    backend that mutates in place never sees a stale reference reused.

    Each backend call runs in the worker thread pool and is awaited before the
    next one starts. Executors are single use: one per request.
    """

    def __init__(self, processing: ImageProcessor) -> None:
        self.processing = processing
        self.state = PipelineState.UNINITIALIZED

    async def execute(self, operations: Sequence[ValidatedOperation]) -> PipelineResult:
        if self.state is not PipelineState.UNINITIALIZED:
            raise RuntimeError(f"Pipeline executor already used (state: {self.state.value})")

        first, *rest = operations
        step = first
        try:
            handle = await run_in_threadpool(self.processing.load, first.options)
            self.state = PipelineState.PROCESSING
            for step in rest:
                handle = await run_in_threadpool(
                    self.processing.apply, handle, step.operation, step.options
                )
            step = None
            metadata = await run_in_threadpool(self.processing.metadata, handle)
        except ProcessingError:
            self.state = PipelineState.FAILED
            raise
        except Exception as exc:
            self.state = PipelineState.FAILED
            where = f"'{step.operation.value}' operation" if step else "reading metadata"
            raise ProcessingError(f"Image processing failed at {where}: {exc}") from exc

        self.state = PipelineState.FINALIZED
        return PipelineResult(
            operations=tuple(operations),
            handle=handle,
            metadata=strip_buffer_metadata(metadata),
        )
