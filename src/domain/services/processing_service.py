from __future__ import annotations

from dataclasses import dataclass, field, replace
from io import BytesIO
from typing import Any, Callable, Protocol

import numpy as np
from PIL import Image, ImageChops, ImageColor, ImageEnhance, ImageFilter, ImageOps
from pydantic import BaseModel

from src.domain.entities.operation import OperationKind
from src.domain.schemas.operation_schemas import (
    BlurOptions,
    ExtendOptions,
    ExtractOptions,
    FlattenOptions,
    GammaOptions,
    GrayscaleOptions,
    InputOptions,
    LinearOptions,
    MedianOptions,
    ModulateOptions,
    NormalizeOptions,
    OutputOptions,
    ResizeOptions,
    RotateOptions,
    SharpenOptions,
    ThresholdOptions,
    TintOptions,
    TrimOptions,
)

ALPHA_MODES = ("LA", "RGBA")
OPAQUE_FORMATS = ("jpeg", "bmp")
PIL_FORMATS = {
    "png": "PNG",
    "jpeg": "JPEG",
    "webp": "WEBP",
    "gif": "GIF",
    "tiff": "TIFF",
    "bmp": "BMP",
}
RESAMPLE = Image.Resampling.LANCZOS


class ImageProcessor(Protocol):
    """What the pipeline needs from an image backend. Handles are opaque to callers."""

    def load(self, options: InputOptions) -> Any: ...

    def apply(self, handle: Any, operation: OperationKind, options: BaseModel) -> Any: ...

    def encode(self, handle: Any) -> tuple[bytes, dict[str, Any]]: ...

    def metadata(self, handle: Any) -> dict[str, Any]: ...


@dataclass(frozen=True, slots=True)
class ImageHandle:
    image: Image.Image
    source_format: str | None
    info: dict[str, Any]
    output_format: str | None = None
    save_options: dict[str, Any] = field(default_factory=dict)


def _color(value: str, mode: str) -> int | tuple[int, ...]:
    return ImageColor.getcolor(value, mode)


def _to_array(image: Image.Image) -> np.ndarray:
    return np.asarray(image, dtype=np.float32) / 255.0


def _from_array(matrix: np.ndarray) -> Image.Image:
    return Image.fromarray((np.clip(matrix, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8))


def _with_alpha(image: Image.Image, transform: Callable[[Image.Image], Image.Image]) -> Image.Image:
    """Run `transform` on the color bands only and put the original alpha back."""
    if image.mode not in ALPHA_MODES:
        return transform(image)
    alpha = image.getchannel("A")
    result = transform(image.convert("L" if image.mode == "LA" else "RGB"))
    result.putalpha(alpha)
    return result


def _normalize_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("L", "LA", "RGB", "RGBA"):
        return image
    if image.mode in ("1", "I", "I;16", "F"):
        return image.convert("L")
    if image.mode == "PA" or (image.mode == "P" and "transparency" in image.info):
        return image.convert("RGBA")
    return image.convert("RGB")


class ProcessingService:
    """Pillow/NumPy image backend. Pixel math runs on float32 arrays normalized to [0, 1].

    Channel convention:
    - Grayscale: (H, W)
    - RGB: (H, W, 3)
    """

    def __init__(
        self,
        fetch_url: Callable[[str], bytes],
        read_storage: Callable[[str], bytes],
        default_output_format: str = "png",
        default_input_source: str | None = None,
    ) -> None:
        self.fetch_url = fetch_url
        self.read_storage = read_storage
        self.default_output_format = default_output_format
        self.default_input_source = default_input_source
        self._transforms: dict[OperationKind, Callable[[Image.Image, Any], Image.Image]] = {
            OperationKind.RESIZE: self.resize,
            OperationKind.EXTRACT: self.extract,
            OperationKind.ROTATE: self.rotate,
            OperationKind.FLIP: self.flip,
            OperationKind.FLOP: self.flop,
            OperationKind.GRAYSCALE: self.grayscale,
            OperationKind.NEGATE: self.negate,
            OperationKind.THRESHOLD: self.threshold,
            OperationKind.BLUR: self.blur,
            OperationKind.SHARPEN: self.sharpen,
            OperationKind.MEDIAN: self.median,
            OperationKind.GAMMA: self.gamma,
            OperationKind.LINEAR: self.linear,
            OperationKind.NORMALIZE: self.normalize,
            OperationKind.MODULATE: self.modulate,
            OperationKind.TINT: self.tint,
            OperationKind.FLATTEN: self.flatten,
            OperationKind.EXTEND: self.extend,
            OperationKind.TRIM: self.trim,
        }

    # --------- pipeline contract ---------
    def load(self, options: InputOptions) -> ImageHandle:
        if options.type == "create":
            mode = "RGBA" if options.channels == 4 else "RGB"
            image = Image.new(
                mode, (options.width, options.height), _color(options.background, mode)
            )
            return ImageHandle(image=image, source_format=None, info={})

        if options.type == "url":
            data = self.fetch_url(options.url)
        else:
            source = options.source or self.default_input_source
            if not source:
                raise ValueError("No input source given and no default input source configured")
            data = self.read_storage(source)

        image = Image.open(BytesIO(data))
        image.load()
        source_format = image.format.lower() if image.format else None
        return ImageHandle(
            image=_normalize_mode(image), source_format=source_format, info=dict(image.info)
        )

    def apply(self, handle: ImageHandle, operation: OperationKind, options: Any) -> ImageHandle:
        if operation is OperationKind.OUTPUT:
            return self._prepare_output(handle, options)
        if operation is OperationKind.INPUT:
            raise ValueError("An input operation can only start a pipeline")
        transform = self._transforms[operation]
        return replace(handle, image=transform(handle.image, options))

    def encode(self, handle: ImageHandle) -> tuple[bytes, dict[str, Any]]:
        fmt = handle.output_format or self.default_output_format
        image = handle.image
        if fmt in OPAQUE_FORMATS and image.mode in ALPHA_MODES:
            image = image.convert("L" if image.mode == "LA" else "RGB")
        buf = BytesIO()
        image.save(buf, format=PIL_FORMATS[fmt], **handle.save_options)
        data = buf.getvalue()
        info = {
            "format": fmt,
            "size": len(data),
            "width": image.width,
            "height": image.height,
            "channels": len(image.getbands()),
        }
        return data, info

    def metadata(self, handle: ImageHandle) -> dict[str, Any]:
        image = handle.image
        # Source info may hold raw buffers (icc_profile, exif); callers strip them.
        info = {
            key: value
            for key, value in handle.info.items()
            if isinstance(value, (str, int, float, bool, bytes))
        }
        return {
            **info,
            "format": handle.source_format,
            "width": image.width,
            "height": image.height,
            "mode": image.mode,
            "channels": len(image.getbands()),
            "has_alpha": image.mode in ALPHA_MODES,
        }

    def _prepare_output(self, handle: ImageHandle, options: OutputOptions) -> ImageHandle:
        fmt = options.format or self.default_output_format
        save_options: dict[str, Any] = {}
        if fmt in ("jpeg", "webp") and options.quality is not None:
            save_options["quality"] = options.quality
        if fmt == "jpeg" and options.progressive:
            save_options["progressive"] = True
        if fmt == "webp" and options.lossless:
            save_options["lossless"] = True
        if fmt == "png" and options.compression_level is not None:
            save_options["compress_level"] = options.compression_level
        return replace(handle, output_format=fmt, save_options=save_options)

    # --------- geometry ---------
    @staticmethod
    def resize(image: Image.Image, options: ResizeOptions) -> Image.Image:
        src_w, src_h = image.size
        width, height = options.width, options.height
        keep_ratio = width is None or height is None
        if width is None:
            width = max(1, round(src_w * height / src_h))
        elif height is None:
            height = max(1, round(src_h * width / src_w))
        if options.without_enlargement and width >= src_w and height >= src_h:
            return image

        size = (width, height)
        if keep_ratio or options.fit == "fill":
            return image.resize(size, RESAMPLE)
        if options.fit == "cover":
            return ImageOps.fit(image, size, method=RESAMPLE)
        if options.fit == "contain":
            return ImageOps.pad(
                image, size, method=RESAMPLE, color=_color(options.background, image.mode)
            )
        if options.fit == "inside":
            return ImageOps.contain(image, size, method=RESAMPLE)
        # outside: smallest size that covers both dimensions
        scale = max(width / src_w, height / src_h)
        return image.resize((max(1, round(src_w * scale)), max(1, round(src_h * scale))), RESAMPLE)

    @staticmethod
    def extract(image: Image.Image, options: ExtractOptions) -> Image.Image:
        right = options.left + options.width
        bottom = options.top + options.height
        if right > image.width or bottom > image.height:
            raise ValueError(
                f"Extract area {options.left},{options.top},{right},{bottom} is outside "
                f"the {image.width}x{image.height} image"
            )
        return image.crop((options.left, options.top, right, bottom))

    # Pillow rotates counterclockwise; the angle option is clockwise.
    @staticmethod
    def rotate(image: Image.Image, options: RotateOptions) -> Image.Image:
        return image.rotate(
            -options.angle,
            resample=Image.Resampling.BICUBIC,
            expand=options.expand,
            fillcolor=_color(options.background, image.mode),
        )

    @staticmethod
    def flip(image: Image.Image, options: Any) -> Image.Image:
        return ImageOps.flip(image)

    @staticmethod
    def flop(image: Image.Image, options: Any) -> Image.Image:
        return ImageOps.mirror(image)

    @staticmethod
    def extend(image: Image.Image, options: ExtendOptions) -> Image.Image:
        border = (options.left, options.top, options.right, options.bottom)
        return ImageOps.expand(image, border=border, fill=_color(options.background, image.mode))

    @staticmethod
    def trim(image: Image.Image, options: TrimOptions) -> Image.Image:
        probe = image.convert("RGBA") if image.mode == "LA" else image
        background = Image.new(probe.mode, probe.size, probe.getpixel((0, 0)))
        diff = ImageChops.difference(probe, background).convert("L")
        mask = diff.point(lambda value: 255 if value > options.threshold else 0)
        bbox = mask.getbbox()
        return image.crop(bbox) if bbox else image

    # --------- color ---------
    def grayscale(self, image: Image.Image, options: GrayscaleOptions) -> Image.Image:
        method = {
            "average": self.grayscale_average,
            "luminosity": self.grayscale_luminosity,
            "midgray": self.grayscale_midgray,
        }[options.method]
        return _with_alpha(image, lambda img: _from_array(method(_to_array(img))))

    def negate(self, image: Image.Image, options: Any) -> Image.Image:
        return _with_alpha(image, lambda img: _from_array(self.invert_color(_to_array(img))))

    def threshold(self, image: Image.Image, options: ThresholdOptions) -> Image.Image:
        def _apply(img: Image.Image) -> Image.Image:
            mat = _to_array(img)
            if options.grayscale:
                mat = self.grayscale_luminosity(mat)
            return _from_array(self.binarize(mat, options.threshold / 255.0))

        return _with_alpha(image, _apply)

    def gamma(self, image: Image.Image, options: GammaOptions) -> Image.Image:
        return _with_alpha(
            image, lambda img: _from_array(self.adjust_gamma(_to_array(img), options.gamma))
        )

    def linear(self, image: Image.Image, options: LinearOptions) -> Image.Image:
        return _with_alpha(
            image,
            lambda img: _from_array(self.adjust_linear(_to_array(img), options.a, options.b / 255.0)),
        )

    @staticmethod
    def normalize(image: Image.Image, options: NormalizeOptions) -> Image.Image:
        return _with_alpha(image, lambda img: ImageOps.autocontrast(img, cutoff=options.cutoff))

    @staticmethod
    def modulate(image: Image.Image, options: ModulateOptions) -> Image.Image:
        def _apply(img: Image.Image) -> Image.Image:
            img = ImageEnhance.Brightness(img).enhance(options.brightness)
            img = ImageEnhance.Color(img).enhance(options.saturation)
            return ImageEnhance.Contrast(img).enhance(options.contrast)

        return _with_alpha(image, _apply)

    @staticmethod
    def tint(image: Image.Image, options: TintOptions) -> Image.Image:
        return _with_alpha(
            image,
            lambda img: ImageOps.colorize(img.convert("L"), black="black", white=options.color),
        )

    @staticmethod
    def flatten(image: Image.Image, options: FlattenOptions) -> Image.Image:
        if image.mode not in ALPHA_MODES:
            return image
        mode = "L" if image.mode == "LA" else "RGB"
        canvas = Image.new(mode, image.size, _color(options.background, mode))
        canvas.paste(image.convert(mode), mask=image.getchannel("A"))
        return canvas

    # --------- filters ---------
    @staticmethod
    def blur(image: Image.Image, options: BlurOptions) -> Image.Image:
        return _with_alpha(image, lambda img: img.filter(ImageFilter.GaussianBlur(options.sigma)))

    @staticmethod
    def sharpen(image: Image.Image, options: SharpenOptions) -> Image.Image:
        unsharp = ImageFilter.UnsharpMask(
            radius=options.radius, percent=options.percent, threshold=options.threshold
        )
        return _with_alpha(image, lambda img: img.filter(unsharp))

    @staticmethod
    def median(image: Image.Image, options: MedianOptions) -> Image.Image:
        return _with_alpha(image, lambda img: img.filter(ImageFilter.MedianFilter(options.size)))

    # --------- pixel math ---------
    # Invert: I_out = 1 - I_in
    @staticmethod
    def invert_color(matrix: np.ndarray) -> np.ndarray:
        return (1.0 - matrix.astype(np.float32)).astype(np.float32)

    # Grayscale (Average): (R + G + B) / 3
    @staticmethod
    def grayscale_average(matrix: np.ndarray) -> np.ndarray:
        mat = matrix.astype(np.float32)
        if mat.ndim == 3 and mat.shape[2] >= 3:
            return np.mean(mat[..., :3], axis=2).astype(np.float32)
        return mat

    # Grayscale (Luminosity): 0.299*R + 0.587*G + 0.114*B
    @staticmethod
    def grayscale_luminosity(matrix: np.ndarray) -> np.ndarray:
        mat = matrix.astype(np.float32)
        if mat.ndim == 3 and mat.shape[2] >= 3:
            weights = np.array([0.299, 0.587, 0.114], dtype=np.float32)
            return np.dot(mat[..., :3], weights).astype(np.float32)
        return mat

    # Grayscale (Midgray): (max(R,G,B) + min(R,G,B)) / 2
    @staticmethod
    def grayscale_midgray(matrix: np.ndarray) -> np.ndarray:
        mat = matrix.astype(np.float32)
        if mat.ndim == 3 and mat.shape[2] >= 3:
            mx = np.max(mat[..., :3], axis=2)
            mn = np.min(mat[..., :3], axis=2)
            return ((mx + mn) / 2.0).astype(np.float32)
        return mat

    # Binarize: I_out = 1 if I >= threshold else 0
    @staticmethod
    def binarize(matrix: np.ndarray, threshold: float) -> np.ndarray:
        return (matrix.astype(np.float32) >= float(threshold)).astype(np.float32)

    # Gamma: I_out = I_in ** (1 / gamma)
    @staticmethod
    def adjust_gamma(matrix: np.ndarray, gamma: float) -> np.ndarray:
        mat = np.clip(matrix.astype(np.float32), 0.0, 1.0)
        return np.power(mat, 1.0 / float(gamma)).astype(np.float32)

    # Linear: I_out = a * I_in + b
    @staticmethod
    def adjust_linear(matrix: np.ndarray, a: float, b: float) -> np.ndarray:
        out = np.clip(float(a) * matrix.astype(np.float32) + float(b), 0.0, 1.0)
        return out.astype(np.float32)
