"""
Consolidated utilities module.
This module re-exports commonly used utilities from specialized modules.
"""

# Logging utilities
from .logging_utils import get_logger, setup_logging

# Configuration management
from .config import ServiceConfig, config

# Caching utilities
from .cache import Cache

# File name utilities
from .file_utils import (
    build_storage_key,
    ensure_directory,
    format_file_size,
    reduction_percent,
    sanitize_filename,
)

__all__ = [
    "Cache",
    "ServiceConfig",
    "build_storage_key",
    "config",
    "ensure_directory",
    "format_file_size",
    "get_logger",
    "reduction_percent",
    "sanitize_filename",
    "setup_logging",
]
