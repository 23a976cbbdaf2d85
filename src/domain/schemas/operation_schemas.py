"""Option schemas for every supported operation.

Each operation name maps to a frozen pydantic model describing its options:
value kinds, ranges, enumerations and defaults. The registry is built once at
import time and is read-only afterwards, so concurrent requests share it
without locking.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Annotated, Literal, Mapping

from PIL import ImageColor
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from src.domain.entities.operation import OperationKind
from src.domain.exceptions import UnknownOperation

MAX_DIMENSION = 10000


def _check_color(value: str) -> str:
    ImageColor.getrgb(value)
    return value


Color = Annotated[str, AfterValidator(_check_color)]
Dimension = Annotated[int, Field(ge=1, le=MAX_DIMENSION)]
Offset = Annotated[int, Field(ge=0, le=MAX_DIMENSION)]


class OperationOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    def missing_options(self) -> tuple[str, ...]:
        """Keys still required given the other values; one of them must be supplied."""
        return ()


class EmptyOptions(OperationOptions):
    pass


class InputOptions(OperationOptions):
    type: Literal["url", "storage", "create"] = Field(
        "storage", description="Where the source image comes from"
    )
    url: str | None = Field(
        None, description="Image URL, required for type 'url'", pattern=r"^https?://"
    )
    source: str | None = Field(
        None, description="Storage object path; the configured default source when omitted"
    )
    width: Dimension | None = Field(None, description="Canvas width for type 'create'")
    height: Dimension | None = Field(None, description="Canvas height for type 'create'")
    channels: int = Field(4, description="Canvas channels for type 'create'", ge=3, le=4)
    background: Color = Field("#000000", description="Canvas color for type 'create'")

    def missing_options(self) -> tuple[str, ...]:
        if self.type == "url" and self.url is None:
            return ("url",)
        if self.type == "create":
            if self.width is None:
                return ("width",)
            if self.height is None:
                return ("height",)
        return ()


class OutputOptions(OperationOptions):
    format: Literal["png", "jpeg", "jpg", "webp", "gif", "tiff", "bmp"] | None = Field(
        None, description="Encoding of the result; the configured default when omitted"
    )
    quality: int | None = Field(None, description="Lossy encoder quality", ge=1, le=100)
    progressive: bool = Field(False, description="Progressive (interlaced) JPEG")
    lossless: bool = Field(False, description="Lossless WebP")
    compression_level: int | None = Field(None, description="PNG zlib level", ge=0, le=9)
    debug: bool = Field(False, description="Return operations and metadata as JSON")

    @field_validator("format")
    @classmethod
    def _normalize_format(cls, value: str | None) -> str | None:
        return "jpeg" if value == "jpg" else value


class ResizeOptions(OperationOptions):
    width: Dimension | None = Field(None, description="Target width in pixels")
    height: Dimension | None = Field(None, description="Target height in pixels")
    fit: Literal["cover", "contain", "fill", "inside", "outside"] = Field(
        "cover", description="How the image fits both dimensions"
    )
    background: Color = Field("#000000", description="Padding color for fit 'contain'")
    without_enlargement: bool = Field(False, description="Never upscale the image")

    def missing_options(self) -> tuple[str, ...]:
        if self.width is None and self.height is None:
            return ("width", "height")
        return ()


class ExtractOptions(OperationOptions):
    left: Offset = Field(..., description="Left edge of the region")
    top: Offset = Field(..., description="Top edge of the region")
    width: Dimension = Field(..., description="Region width")
    height: Dimension = Field(..., description="Region height")


class RotateOptions(OperationOptions):
    angle: float = Field(..., description="Clockwise rotation in degrees", ge=-360, le=360)
    background: Color = Field("#000000", description="Fill for uncovered corners")
    expand: bool = Field(True, description="Grow the canvas to fit the rotated image")


class GrayscaleOptions(OperationOptions):
    method: Literal["luminosity", "average", "midgray"] = Field(
        "luminosity", description="Channel weighting"
    )


class ThresholdOptions(OperationOptions):
    threshold: int = Field(128, description="Cut-off intensity", ge=0, le=255)
    grayscale: bool = Field(True, description="Convert to grayscale before thresholding")


class BlurOptions(OperationOptions):
    sigma: float = Field(1.0, description="Gaussian sigma", ge=0.3, le=1000)


class SharpenOptions(OperationOptions):
    radius: float = Field(2.0, description="Unsharp mask radius", ge=0.1, le=100)
    percent: int = Field(150, description="Unsharp mask strength", ge=0, le=1000)
    threshold: int = Field(3, description="Minimum brightness change to sharpen", ge=0, le=255)


class MedianOptions(OperationOptions):
    size: int = Field(3, description="Odd window size", ge=1, le=99)

    @field_validator("size")
    @classmethod
    def _check_odd(cls, value: int) -> int:
        if value % 2 == 0:
            raise ValueError("size must be an odd number")
        return value


class GammaOptions(OperationOptions):
    gamma: float = Field(2.2, description="Gamma exponent", ge=1.0, le=3.0)


class LinearOptions(OperationOptions):
    a: float = Field(1.0, description="Multiplier", ge=0, le=100)
    b: float = Field(0.0, description="Offset on the 0-255 scale", ge=-255, le=255)


class NormalizeOptions(OperationOptions):
    cutoff: float = Field(0, description="Percent of histogram to clip at each end", ge=0, le=49)


class ModulateOptions(OperationOptions):
    brightness: float = Field(1.0, description="Brightness multiplier", ge=0, le=100)
    saturation: float = Field(1.0, description="Saturation multiplier", ge=0, le=100)
    contrast: float = Field(1.0, description="Contrast multiplier", ge=0, le=100)


class TintOptions(OperationOptions):
    color: Color = Field(..., description="Tint color")


class FlattenOptions(OperationOptions):
    background: Color = Field("#000000", description="Color placed behind transparent pixels")


class ExtendOptions(OperationOptions):
    top: Offset = Field(0, description="Pixels added above")
    bottom: Offset = Field(0, description="Pixels added below")
    left: Offset = Field(0, description="Pixels added on the left")
    right: Offset = Field(0, description="Pixels added on the right")
    background: Color = Field("#000000", description="Color of the added border")


class TrimOptions(OperationOptions):
    threshold: int = Field(10, description="Allowed difference from the corner color", ge=0, le=255)


OPERATION_SCHEMAS: Mapping[OperationKind, type[OperationOptions]] = MappingProxyType(
    {
        OperationKind.INPUT: InputOptions,
        OperationKind.OUTPUT: OutputOptions,
        OperationKind.RESIZE: ResizeOptions,
        OperationKind.EXTRACT: ExtractOptions,
        OperationKind.ROTATE: RotateOptions,
        OperationKind.FLIP: EmptyOptions,
        OperationKind.FLOP: EmptyOptions,
        OperationKind.GRAYSCALE: GrayscaleOptions,
        OperationKind.NEGATE: EmptyOptions,
        OperationKind.THRESHOLD: ThresholdOptions,
        OperationKind.BLUR: BlurOptions,
        OperationKind.SHARPEN: SharpenOptions,
        OperationKind.MEDIAN: MedianOptions,
        OperationKind.GAMMA: GammaOptions,
        OperationKind.LINEAR: LinearOptions,
        OperationKind.NORMALIZE: NormalizeOptions,
        OperationKind.MODULATE: ModulateOptions,
        OperationKind.TINT: TintOptions,
        OperationKind.FLATTEN: FlattenOptions,
        OperationKind.EXTEND: ExtendOptions,
        OperationKind.TRIM: TrimOptions,
    }
)


def operation_kind(name: str) -> OperationKind:
    try:
        return OperationKind(name)
    except ValueError:
        raise UnknownOperation(name) from None


def schema_for(name: str) -> type[OperationOptions]:
    return OPERATION_SCHEMAS[operation_kind(name)]
