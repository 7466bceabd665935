import enum
from dataclasses import dataclass
from typing import Any

DEFAULT_QUALITY = 85
DEFAULT_MAX_WIDTH = 1200
MIN_QUALITY = 1
MAX_QUALITY = 100

PNG_COMPRESSION_LEVEL = 9
WEBP_EFFORT = 6


class OutputFormat(str, enum.Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"

    @property
    def media_type(self) -> str:
        return f"image/{self.value}"


class FormatVariant(str, enum.Enum):
    """Encoder arm selected from a user supplied format string."""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    # Unrecognized format strings: plain jpeg without the optimized encoder
    OTHER = "other"

    @classmethod
    def resolve(cls, value: Any) -> "FormatVariant":
        if value is None:
            return cls.JPEG
        if isinstance(value, enum.Enum):
            value = value.value
        name = str(value).strip().lower()
        if not name:
            return cls.JPEG
        try:
            variant = cls(name)
        except ValueError:
            return cls.OTHER
        return variant

    def encode_options(self, quality: int) -> "EncodeOptions":
        if self is FormatVariant.JPEG:
            return EncodeOptions(OutputFormat.JPEG, quality, progressive=True, optimize=True)
        if self is FormatVariant.PNG:
            return EncodeOptions(
                OutputFormat.PNG,
                quality,
                progressive=True,
                compress_level=PNG_COMPRESSION_LEVEL,
            )
        if self is FormatVariant.WEBP:
            return EncodeOptions(OutputFormat.WEBP, quality, effort=WEBP_EFFORT)
        return EncodeOptions(OutputFormat.JPEG, quality, progressive=True)


@dataclass(frozen=True)
class EncodeOptions:
    format: OutputFormat
    quality: int
    progressive: bool = False
    # Optimized (mozjpeg-style) entropy coding, jpeg only
    optimize: bool = False
    compress_level: int | None = None
    effort: int | None = None


@dataclass(frozen=True)
class ImageMetadata:
    width: int
    height: int
    format: str | None = None


@dataclass(frozen=True)
class OptimizationRequest:
    """Raw optimization parameters as received from a caller.

    quality, max_width and format may be strings (form fields) or already typed
    values; they are normalized by the optimizer, not here.
    """

    image_bytes: bytes
    quality: int | str | None = None
    max_width: int | str | None = None
    format: OutputFormat | str | None = None
    # Reject unknown formats instead of falling back to plain jpeg
    strict_format: bool = False


@dataclass(frozen=True)
class NormalizedParameters:
    quality: int
    max_width: int
    variant: FormatVariant


@dataclass(frozen=True)
class OptimizationResult:
    output_bytes: bytes
    original_size_bytes: int
    optimized_size_bytes: int
    reduction_percent: float
    format: OutputFormat
    width: int
    height: int

    @property
    def media_type(self) -> str:
        return self.format.media_type


def reduction_percent(original_size: int, optimized_size: int) -> float:
    """Percentage saved, rounded to 2 decimals. Negative when the output grew."""
    if original_size <= 0:
        return 0.0
    return round((1 - optimized_size / original_size) * 100, 2)


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    return f"{num_bytes / 1024 / 1024:.2f} MB"
