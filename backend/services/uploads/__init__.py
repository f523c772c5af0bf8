"""Upload service: validation, compression and storage of slide images."""

__version__ = "1.0.0"
