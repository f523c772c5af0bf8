"""Public object storage for slide images, backed by a local directory."""

from __future__ import annotations

from pathlib import Path

from shared.utils import config, ensure_directory, setup_logging

logger = setup_logging("object-storage")


class StorageKeyError(ValueError):
    """Raised for keys that would escape the bucket directory."""


class ObjectStorage:
    """A single public bucket: ``<media_root>/<bucket>/<key>``.

    Objects are served read-only by the API under ``/storage/<bucket>/<key>``.
    """

    def __init__(self, media_root: str | None = None, bucket: str | None = None, public_base_url: str | None = None):
        self._media_root = media_root
        self._bucket = bucket
        self._public_base_url = public_base_url

    @property
    def bucket(self) -> str:
        return self._bucket or config.get("storage_bucket", "presentation-images")

    @property
    def root(self) -> Path:
        return Path(self._media_root or config.get("media_root", "/app/media"))

    @property
    def bucket_path(self) -> Path:
        return self.root / self.bucket

    def _object_path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in {".", ".."}:
            raise StorageKeyError(f"Invalid storage key: {key!r}")
        return self.bucket_path / key

    def upload(self, key: str, data: bytes, content_type: str | None = None) -> str:
        """Write an object and return its public URL. Existing keys are not overwritten."""
        path = self._object_path(key)
        ensure_directory(str(self.bucket_path))
        if path.exists():
            raise FileExistsError(f"Object {key} already exists in bucket {self.bucket}")
        path.write_bytes(data)
        logger.info(f"Stored {key} ({len(data)} bytes, {content_type or 'unknown type'})")
        return self.public_url(key)

    def public_url(self, key: str) -> str:
        base_url = (self._public_base_url or config.get("public_base_url", "http://localhost:8000")).rstrip("/")
        return f"{base_url}/storage/{self.bucket}/{key}"
