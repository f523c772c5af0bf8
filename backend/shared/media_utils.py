"""
Image validation and compression utilities.
"""

import io

from PIL import Image

from .config import config

DEFAULT_ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
)

_PIL_FORMATS = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}

_LOSSY_FORMATS = {"JPEG", "WEBP"}

DOWNSCALE_STEP = 0.8
MIN_DIMENSION = 16


class ImageValidationError(ValueError):
    """Raised when an uploaded file is not an acceptable image."""

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


def allowed_mime_types() -> list[str]:
    return list(config.get_setting("upload.allowed_mime_types", DEFAULT_ALLOWED_MIME_TYPES))


def max_upload_bytes() -> int:
    return int(config.get_setting("upload.max_upload_bytes", 20 * 1024 * 1024))


def validate_image_file(content_type: str | None, size: int) -> None:
    """Reject disallowed MIME types and files over the pre-compression ceiling.

    Raises:
        ImageValidationError: with ``reason`` set to ``unsupported_type``,
            ``too_large`` or ``empty``.
    """
    normalized = (content_type or "").split(";")[0].strip().lower()
    if normalized not in allowed_mime_types():
        raise ImageValidationError(
            "Unsupported file type. Use JPG, PNG, WebP or GIF.", reason="unsupported_type"
        )

    ceiling = max_upload_bytes()
    if size > ceiling:
        raise ImageValidationError(
            f"File too large. Maximum size: {ceiling // (1024 * 1024)}MB.", reason="too_large"
        )

    if size <= 0:
        raise ImageValidationError("File is empty.", reason="empty")


def _flatten_alpha(img: Image.Image) -> Image.Image:
    """Composite transparent images onto white so they can be saved as JPEG."""
    if img.mode in ("RGBA", "LA", "P"):
        if img.mode == "P":
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def _encode(img: Image.Image, pil_format: str, quality: int | None) -> bytes:
    output = io.BytesIO()
    if quality is None:
        img.save(output, format=pil_format, optimize=True)
    else:
        img.save(output, format=pil_format, quality=quality, optimize=True)
    return output.getvalue()


def compress_image(
    data: bytes,
    content_type: str,
    max_dimension: int | None = None,
    max_bytes: int | None = None,
    initial_quality: int | None = None,
    min_quality: int | None = None,
) -> bytes:
    """Downscale and re-encode an image towards the configured size target.

    Images already within both bounds, and GIFs, are returned untouched. Lossy
    formats step the quality down by 10 until the output fits ``max_bytes`` or
    ``min_quality`` is reached. Whatever is still over ``max_bytes`` after that,
    including lossless PNGs, is shrunk by ``DOWNSCALE_STEP`` per pass until it fits.

    Raises:
        PIL.UnidentifiedImageError / OSError: when the bytes cannot be decoded.
    """
    max_dimension = max_dimension or int(config.get_setting("upload.max_dimension", 1920))
    max_bytes = max_bytes or int(config.get_setting("upload.max_output_bytes", 1024 * 1024))
    quality = initial_quality or int(config.get_setting("upload.initial_quality", 80))
    min_quality = min_quality or int(config.get_setting("upload.min_quality", 30))

    pil_format = _PIL_FORMATS.get(content_type.lower())
    if pil_format is None:
        return data

    with Image.open(io.BytesIO(data)) as source:
        source.load()
        needs_resize = max(source.size) > max_dimension
        if not needs_resize and len(data) <= max_bytes:
            return data

        img = source.copy()

    if needs_resize:
        img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

    if pil_format == "JPEG":
        img = _flatten_alpha(img)

    lossy = pil_format in _LOSSY_FORMATS
    result = _encode(img, pil_format, quality if lossy else None)
    while lossy and len(result) > max_bytes and quality - 10 >= min_quality:
        quality -= 10
        result = _encode(img, pil_format, quality)

    # Out of quality steps (or lossless): shrink until the target is met
    while len(result) > max_bytes and min(img.size) > MIN_DIMENSION:
        width, height = img.size
        img.thumbnail((int(width * DOWNSCALE_STEP), int(height * DOWNSCALE_STEP)), Image.Resampling.LANCZOS)
        result = _encode(img, pil_format, quality if lossy else None)

    if not needs_resize and len(result) >= len(data):
        return data
    return result
