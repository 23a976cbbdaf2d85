from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class RawOperation(BaseModel):
    """Individual operation exactly as the caller sent it."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field(
        ...,
        description="Name of the operation to apply",
        examples=["resize"],
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Operation-specific options",
        examples=[{"width": 100}],
    )


RAW_OPERATIONS = TypeAdapter(list[RawOperation])


class ValidatedOperationResponse(BaseModel):
    """Operation after validation, with every default filled in."""

    operation: str = Field(..., description="Name of the applied operation")
    options: dict[str, Any] = Field(..., description="Options used for the operation")


class DebugResponse(BaseModel):
    """Response returned instead of the image when the output operation sets `debug`."""

    operations: list[ValidatedOperationResponse] = Field(
        ..., description="Validated operations in the order they were applied"
    )
    metadata: dict[str, Any] = Field(
        ..., description="Metadata of the final image, without raw buffers"
    )
