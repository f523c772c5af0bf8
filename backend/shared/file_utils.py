"""
File name and storage key utilities.
"""

import re
import time
import unicodedata
from pathlib import Path

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")


def sanitize_filename(filename: str) -> str:
    """Strip diacritics and replace anything outside ``[A-Za-z0-9.-]`` with ``_``."""
    decomposed = unicodedata.normalize("NFD", filename)
    without_marks = "".join(char for char in decomposed if not unicodedata.combining(char))
    cleaned = _UNSAFE_CHARS.sub("_", without_marks)
    return _REPEATED_UNDERSCORES.sub("_", cleaned)


def build_storage_key(filename: str, timestamp_ms: int | None = None) -> str:
    """Build a time-prefixed storage key such as ``1723456789012_photo.jpg``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    sanitized = sanitize_filename(filename) or "upload"
    return f"{timestamp_ms}_{sanitized}"


def ensure_directory(path: str) -> None:
    """Ensure directory exists, create if not."""
    Path(path).mkdir(parents=True, exist_ok=True)


def format_file_size(size_bytes: int) -> str:
    """Human readable size, e.g. ``1.5 MB``."""
    if size_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    exponent = 0
    while size_bytes >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    value = round(size_bytes / (1024 ** exponent), 2)
    return f"{value:g} {units[exponent]}"


def reduction_percent(original_size: int, final_size: int) -> int:
    """Percentage saved going from ``original_size`` to ``final_size``."""
    if original_size <= 0:
        return 0
    return round((1 - final_size / original_size) * 100)
