"""Image upload pipeline: validate, compress, name, store."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import UnidentifiedImageError

from services.storage.service import ObjectStorage
from shared.file_utils import build_storage_key, format_file_size, reduction_percent
from shared.media_utils import compress_image, validate_image_file
from shared.utils import setup_logging

logger = setup_logging("upload-pipeline")

COMPRESSION_FALLBACK_WARNING = "Could not compress image; uploading the original file."


@dataclass
class PreparedImage:
    """Bytes ready to upload plus what happened to them on the way."""

    filename: str
    content_type: str
    data: bytes
    original_size: int
    compressed: bool
    warning: str | None = None

    @property
    def stored_size(self) -> int:
        return len(self.data)

    @property
    def reduction_percent(self) -> int:
        return reduction_percent(self.original_size, self.stored_size)


@dataclass
class UploadResult:
    storage_key: str
    public_url: str
    image: PreparedImage


class UploadPipeline:
    """Runs the same steps on the client (``prepare``) and the server (``process``)."""

    def __init__(self, storage: ObjectStorage | None = None):
        self.storage = storage or ObjectStorage()

    def prepare(self, filename: str, content_type: str, data: bytes) -> PreparedImage:
        """Validate then compress.

        Raises:
            ImageValidationError: disallowed type, empty file or over the size ceiling.
        """
        validate_image_file(content_type, len(data))
        content_type = content_type.split(";")[0].strip().lower()

        try:
            output = compress_image(data, content_type)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Compression of {filename} failed, keeping original: {e}")
            return PreparedImage(
                filename=filename,
                content_type=content_type,
                data=data,
                original_size=len(data),
                compressed=False,
                warning=COMPRESSION_FALLBACK_WARNING,
            )

        prepared = PreparedImage(
            filename=filename,
            content_type=content_type,
            data=output,
            original_size=len(data),
            compressed=output is not data,
        )
        logger.info(
            f"Prepared {filename}: {format_file_size(prepared.original_size)} -> "
            f"{format_file_size(prepared.stored_size)} ({prepared.reduction_percent}% smaller)"
        )
        return prepared

    def process(
        self,
        filename: str,
        content_type: str,
        data: bytes,
        timestamp_ms: int | None = None,
    ) -> UploadResult:
        prepared = self.prepare(filename, content_type, data)
        key = build_storage_key(filename, timestamp_ms)
        public_url = self.storage.upload(key, prepared.data, prepared.content_type)
        return UploadResult(storage_key=key, public_url=public_url, image=prepared)
