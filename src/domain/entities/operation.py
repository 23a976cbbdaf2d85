from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

# Metadata entries that carry raw buffers (ICC profiles, EXIF blocks, ...)
FILE_METADATA_BUFFER_KEYS = ("exif", "icc_profile", "iptc", "xmp", "photoshop")


class OperationKind(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    RESIZE = "resize"
    EXTRACT = "extract"
    ROTATE = "rotate"
    FLIP = "flip"
    FLOP = "flop"
    GRAYSCALE = "grayscale"
    NEGATE = "negate"
    THRESHOLD = "threshold"
    BLUR = "blur"
    SHARPEN = "sharpen"
    MEDIAN = "median"
    GAMMA = "gamma"
    LINEAR = "linear"
    NORMALIZE = "normalize"
    MODULATE = "modulate"
    TINT = "tint"
    FLATTEN = "flatten"
    EXTEND = "extend"
    TRIM = "trim"


@dataclass(frozen=True)
class ValidatedOperation:
    operation: OperationKind
    options: BaseModel  # frozen option model registered for `operation`

    def as_dict(self) -> dict[str, Any]:
        return {"operation": self.operation.value, "options": self.options.model_dump(mode="json")}


@dataclass(frozen=True)
class PipelineResult:
    operations: tuple[ValidatedOperation, ...]
    handle: Any
    metadata: dict[str, Any]

    @property
    def output(self) -> ValidatedOperation:
        return self.operations[-1]


def omit_keys(mapping: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    return {key: value for key, value in mapping.items() if key not in keys}


def strip_buffer_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Drop buffer-valued entries so they never reach a response."""
    kept = omit_keys(metadata, FILE_METADATA_BUFFER_KEYS)
    return {
        key: value
        for key, value in kept.items()
        if not isinstance(value, (bytes, bytearray, memoryview))
    }
