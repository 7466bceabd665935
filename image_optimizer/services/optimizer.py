"""Service layer turning optimization requests into re-encoded images."""

import logging
import re
from contextlib import ExitStack
from typing import Any

from image_optimizer.clients.codec import PillowCodec
from image_optimizer.domain.models import (
    DEFAULT_MAX_WIDTH,
    DEFAULT_QUALITY,
    MAX_QUALITY,
    MIN_QUALITY,
    FormatVariant,
    NormalizedParameters,
    OptimizationRequest,
    OptimizationResult,
    reduction_percent,
)
from image_optimizer.services.exceptions import CodecError, ValidationError

logger = logging.getLogger(__name__)


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_int(value: Any) -> int | None:
    """Read a leading integer the way form values are usually parsed: "72.5" -> 72."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def normalize_quality(value: Any) -> int:
    """Missing, non-numeric or zero quality falls back to the default, then clamps."""
    quality = _parse_int(value) or DEFAULT_QUALITY
    return min(MAX_QUALITY, max(MIN_QUALITY, quality))


def normalize_max_width(value: Any) -> int:
    max_width = _parse_int(value) or DEFAULT_MAX_WIDTH
    if max_width < 0:
        raise ValidationError(f"maxWidth must be a positive integer, got {value!r}")
    return max_width


def normalize_format(value: Any, strict: bool = False) -> FormatVariant:
    variant = FormatVariant.resolve(value)
    if strict and variant is FormatVariant.OTHER:
        raise ValidationError(f"Unsupported format: {value}")
    return variant


def normalize_parameters(request: OptimizationRequest) -> NormalizedParameters:
    return NormalizedParameters(
        quality=normalize_quality(request.quality),
        max_width=normalize_max_width(request.max_width),
        variant=normalize_format(request.format, strict=request.strict_format),
    )


class ImageOptimizer:
    """Decode, optionally downsize and re-encode a single image.

    Stateless apart from the codec, so one instance can serve concurrent requests.
    """

    def __init__(self, codec: PillowCodec) -> None:
        self.codec = codec

    def optimize(self, request: OptimizationRequest) -> OptimizationResult:
        """Optimize ``request.image_bytes``.

        Raises ValidationError for empty input or invalid parameters and
        CodecError when the image cannot be decoded or encoded. Nothing is retried.
        """
        if not request.image_bytes:
            raise ValidationError("No image data provided")
        params = normalize_parameters(request)
        options = params.variant.encode_options(params.quality)
        original_size = len(request.image_bytes)

        try:
            with ExitStack() as stack:
                image = stack.enter_context(self.codec.decode(request.image_bytes))
                metadata = self.codec.metadata(image)
                logger.info(
                    f"Optimizing {metadata.format or 'unknown'} image "
                    f"{metadata.width}x{metadata.height} as {params.variant.value} (q={params.quality})"
                )
                if metadata.width > params.max_width:
                    image = self.codec.resize(image, params.max_width)
                    stack.callback(image.close)
                    metadata = self.codec.metadata(image)
                    logger.info(
                        f"Resized to {metadata.width}x{metadata.height} (max width {params.max_width})"
                    )
                output = self.codec.encode(image, options)
        except CodecError as exc:
            logger.warning(f"Image optimization failed: {exc}")
            raise

        optimized_size = len(output)
        result = OptimizationResult(
            output_bytes=output,
            original_size_bytes=original_size,
            optimized_size_bytes=optimized_size,
            reduction_percent=reduction_percent(original_size, optimized_size),
            format=options.format,
            width=metadata.width,
            height=metadata.height,
        )
        logger.info(
            f"Optimized {original_size} -> {optimized_size} bytes "
            f"({result.reduction_percent:.2f}% reduction)"
        )
        return result
