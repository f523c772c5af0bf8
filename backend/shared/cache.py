"""
Caching utilities for the application.

The client keeps fetched query results here and drops them after mutations,
so the next read goes back to the server.
"""

from datetime import datetime, timedelta
from typing import Any


class Cache:
    """Simple in-memory cache with TTL (Time To Live) support."""

    def __init__(self, default_ttl: int = 300) -> None:
        """Initialize empty cache."""
        self._cache: dict[str, dict[str, Any]] = {}
        self.default_ttl = default_ttl

    def get(self, key: str) -> Any | None:
        """
        Get value from cache by key.

        Args:
            key: Cache key

        Returns:
            Cached value if exists and not expired, None otherwise
        """
        if key in self._cache:
            item = self._cache[key]
            if datetime.now() < item["expires"]:
                return item["value"]
            else:
                # Remove expired item
                del self._cache[key]
        return None

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """
        Set value in cache with TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (default: the cache's default_ttl)
        """
        effective_ttl = self.default_ttl if ttl is None else ttl
        self._cache[key] = {
            "value": value,
            "expires": datetime.now() + timedelta(seconds=effective_ttl),
        }

    def delete(self, key: str) -> None:
        """Delete value from cache."""
        self._cache.pop(key, None)

    def invalidate(self, prefix: str) -> int:
        """
        Delete every key equal to ``prefix`` or starting with ``prefix:``.

        Returns:
            Number of removed entries
        """
        doomed = [key for key in self._cache if key == prefix or key.startswith(f"{prefix}:")]
        for key in doomed:
            del self._cache[key]
        return len(doomed)

    def clear(self) -> None:
        """Clear all cached values."""
        self._cache.clear()

    def size(self) -> int:
        """Number of entries currently stored, expired ones included."""
        return len(self._cache)
