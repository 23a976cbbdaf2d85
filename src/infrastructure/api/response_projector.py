from __future__ import annotations

import re
from typing import Any

from fastapi.responses import JSONResponse, Response
from loguru import logger
from starlette.concurrency import run_in_threadpool

from src.application.dtos.operation_dto import DebugResponse, ValidatedOperationResponse
from src.domain.entities.operation import PipelineResult
from src.domain.exceptions import ProcessingError
from src.domain.services.processing_service import ImageProcessor

CACHE_CONTROL = "public, max-age=31536000"  # 1 year

_HEADER_UNSAFE = re.compile(r"[^a-z0-9-]+")
# Control characters other than tab are not allowed in header values.
_HEADER_CONTROL = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


def _header_name(prefix: str, key: str) -> str:
    return f"{prefix}{_HEADER_UNSAFE.sub('-', key.lower()).strip('-')}"


def _header_value(value: Any) -> str:
    text = _HEADER_CONTROL.sub("", " ".join(str(value).splitlines()))
    return text.encode("latin-1", "replace").decode("latin-1")


def build_image_headers(
    data: bytes, info: dict[str, Any], metadata: dict[str, Any]
) -> dict[str, str]:
    fmt = info["format"]
    headers = {
        "Content-Type": f"image/{fmt}",
        "Content-Length": str(len(data)),
        "Content-Disposition": f"inline; filename=image.{fmt}",
        "Cache-Control": CACHE_CONTROL,
    }
    # Attach output information as response headers.
    for key, value in info.items():
        headers[_header_name("ext-output-info-", key)] = _header_value(value)
    # Attach image metadata as response headers.
    for key, value in metadata.items():
        if value is not None:
            headers[_header_name("ext-metadata-", key)] = _header_value(value)
    return headers


async def project_response(result: PipelineResult, processing: ImageProcessor) -> Response:
    """Turn a finished pipeline into the HTTP response the caller asked for."""
    if result.output.options.debug:
        body = DebugResponse(
            operations=[
                ValidatedOperationResponse(**operation.as_dict())
                for operation in result.operations
            ],
            metadata=result.metadata,
        )
        return JSONResponse(content=body.model_dump(mode="json"))

    try:
        data, info = await run_in_threadpool(processing.encode, result.handle)
    except Exception as exc:
        raise ProcessingError(f"Image processing failed while encoding: {exc}") from exc
    logger.bind(operations=[operation.as_dict() for operation in result.operations]).debug(
        "Processed a new request."
    )
    headers = build_image_headers(data, info, result.metadata)
    return Response(content=data, status_code=200, headers=headers)
