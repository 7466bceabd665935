"""Pillow backed codec used by the optimizer for decode, resize and encode."""

import struct
from contextlib import contextmanager
from io import BytesIO
from typing import Iterator

from PIL import Image

from image_optimizer.domain.models import EncodeOptions, ImageMetadata, OutputFormat
from image_optimizer.services.exceptions import CodecError

# Accept arbitrarily large images, the upload size limit is the only ceiling
Image.MAX_IMAGE_PIXELS = None

_JPEG_MODES = {"RGB", "L", "CMYK"}
_ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}
_PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}
# Pillow reports malformed chunks and headers as SyntaxError or struct.error
_DECODE_ERRORS = (OSError, ValueError, SyntaxError, struct.error)


class PillowCodec:
    """Thin wrapper around Pillow translating its failures into CodecError."""

    @contextmanager
    def decode(self, data: bytes) -> Iterator[Image.Image]:
        """Decode ``data`` and close the image when the scope exits."""
        try:
            image = Image.open(BytesIO(data))
        except _DECODE_ERRORS as exc:
            raise CodecError(f"Cannot identify image: {exc}") from exc
        try:
            # Force a full decode so truncated files fail here, not during encode
            image.load()
        except _DECODE_ERRORS as exc:
            image.close()
            raise CodecError(f"Cannot decode image: {exc}") from exc
        try:
            yield image
        finally:
            image.close()

    def metadata(self, image: Image.Image) -> ImageMetadata:
        width, height = image.size
        return ImageMetadata(width=width, height=height, format=image.format)

    def resize(self, image: Image.Image, width: int, height: int | None = None) -> Image.Image:
        """Fit ``image`` inside the box, keeping aspect ratio and never enlarging.

        A missing height means only the width is bounded.
        """
        src_width, src_height = image.size
        scale = width / src_width
        if height is not None:
            scale = min(scale, height / src_height)
        if scale >= 1:
            return image
        target = (
            max(1, round(src_width * scale)),
            max(1, round(src_height * scale)),
        )
        try:
            return image.resize(target, Image.Resampling.LANCZOS)
        except (OSError, ValueError, MemoryError) as exc:
            raise CodecError(f"Cannot resize image to {target[0]}x{target[1]}: {exc}") from exc

    def encode(self, image: Image.Image, options: EncodeOptions) -> bytes:
        output = BytesIO()
        try:
            if options.format is OutputFormat.JPEG:
                if image.mode not in _JPEG_MODES:
                    image = image.convert("RGB")
                image.save(
                    output,
                    format="JPEG",
                    quality=options.quality,
                    progressive=options.progressive,
                    optimize=options.optimize,
                )
            elif options.format is OutputFormat.PNG:
                image = self._quantize(self._to_png_mode(image), options.quality)
                # Pillow has no interlaced PNG writer, progressive is ignored here
                image.save(output, format="PNG", compress_level=options.compress_level)
            else:
                image.save(
                    output,
                    format="WEBP",
                    quality=options.quality,
                    method=options.effort,
                )
        except (OSError, ValueError, MemoryError) as exc:
            raise CodecError(f"Cannot encode image as {options.format.value}: {exc}") from exc
        return output.getvalue()

    @staticmethod
    def _has_alpha(image: Image.Image) -> bool:
        return image.mode in _ALPHA_MODES or (image.mode == "P" and "transparency" in image.info)

    @classmethod
    def _to_png_mode(cls, image: Image.Image) -> Image.Image:
        """Convert modes the PNG writer rejects, such as CMYK or YCbCr."""
        if image.mode in _PNG_MODES:
            return image
        return image.convert("RGBA" if cls._has_alpha(image) else "RGB")

    @classmethod
    def _quantize(cls, image: Image.Image, quality: int) -> Image.Image:
        """Reduce to a palette sized by quality, like a lossy PNG encoder would."""
        if quality >= 100:
            return image
        colors = max(2, round(256 * quality / 100))
        if cls._has_alpha(image):
            return image.convert("RGBA").quantize(colors, method=Image.Quantize.FASTOCTREE)
        return image.convert("RGB").quantize(colors)


# Global instance
codec = PillowCodec()
