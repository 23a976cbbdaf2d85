from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from src.application.use_cases.decode_operations import (
    decode_json_operations,
    decode_path_operations,
)
from src.application.use_cases.process_image import ProcessImageUseCase
from src.domain.services.processing_service import ProcessingService
from src.infrastructure.api.dependencies import get_processing_service
from src.infrastructure.api.response_projector import project_response

PATH_PREFIX = "/process/"

router = APIRouter(
    prefix="/process",
    tags=["Image Processing"],
    responses={
        400: {"description": "Bad Request - Invalid operations, options or operation order"},
        500: {"description": "Server Error - The image could not be processed"},
    },
)


def _raw_operations_path(request: Request) -> str:
    # Use the raw path so percent-encoded '/' inside option values survives routing.
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    path = path.split("?", 1)[0]
    _, _, operations = path.partition(PATH_PREFIX)
    return operations


@router.api_route(
    "",
    methods=["GET", "HEAD"],
    summary="Process Image (JSON operations)",
    description="""
    Apply an ordered list of operations to an image and return the result.

    The `operations` query parameter is a URL-encoded JSON array. The first
    operation must be `input`, the last one `output`:

    ```json
    [
      {"operation": "input", "options": {"type": "url", "url": "https://example.com/a.jpg"}},
      {"operation": "resize", "options": {"width": 100}},
      {"operation": "output", "options": {"format": "webp"}}
    ]
    ```

    Set `debug` on the `output` operation to receive the validated operations
    and the image metadata as JSON instead of the image.
    """,
    response_description="The processed image, or JSON when debug is set",
)
async def process_from_query(
    operations: str | None = Query(
        None, description="URL-encoded JSON array of operations to perform"
    ),
    processing: ProcessingService = Depends(get_processing_service),
):
    """Process an image described by a JSON operations parameter."""
    raw_operations = decode_json_operations(operations)
    result = await ProcessImageUseCase(processing).execute(raw_operations)
    return await project_response(result, processing)


@router.api_route(
    "/{operations:path}",
    methods=["GET", "HEAD"],
    summary="Process Image (path operations)",
    description="""
    Same pipeline as `GET /process`, with one operation per path segment:
    `name;key=value;key=value`, every part percent-encoded.

    Example: `/process/input;type=url;url=https%3A%2F%2Fexample.com%2Fa.jpg/resize;width=100/output;format=webp`
    """,
    response_description="The processed image, or JSON when debug is set",
)
async def process_from_path(
    operations: str,
    request: Request,
    processing: ProcessingService = Depends(get_processing_service),
):
    """Process an image described by path segments."""
    encoded = _raw_operations_path(request)
    if not operations.strip("/") or not encoded.strip("/"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    raw_operations = decode_path_operations(encoded)
    result = await ProcessImageUseCase(processing).execute(raw_operations, from_path=True)
    return await project_response(result, processing)
