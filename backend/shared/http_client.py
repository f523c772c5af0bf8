"""
HTTP client utilities for talking to the SlideLoop API.
"""

import asyncio
from typing import Any

import aiohttp


class HTTPClientError(Exception):
    """Raised for non-2xx responses, carrying the server's ``detail`` message."""

    def __init__(self, status: int, detail: str) -> None:
        super().__init__(f"{status}: {detail}")
        self.status = status
        self.detail = detail


class AsyncHTTPClient:
    """Async HTTP client wrapping a single aiohttp session."""

    def __init__(self, base_url: str = "", timeout: int = 30) -> None:
        """Initialize HTTP client."""
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AsyncHTTPClient":
        """Enter async context manager."""
        self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self.session:
            await self.session.close()
            self.session = None

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    @staticmethod
    async def _prepare_request(coro_or_ctx: Any) -> Any:
        """Normalize aiohttp request result to an async context manager."""
        if asyncio.iscoroutine(coro_or_ctx):
            return await coro_or_ctx
        return coro_or_ctx

    @staticmethod
    async def _read_payload(response: Any) -> Any:
        """Decode the JSON body, tolerating empty or non-JSON bodies."""
        try:
            return await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return None

    async def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        data: Any = None,
        headers: dict[str, Any] | None = None,
    ) -> Any:
        """Perform a request and return the decoded JSON body.

        Raises:
            HTTPClientError: for any response with status >= 400.
        """
        if not self.session:
            raise RuntimeError("HTTP client not initialized. Use async context manager.")

        request_ctx = await self._prepare_request(
            self.session.request(method, self._url(path), json=json, data=data, headers=headers)
        )
        async with request_ctx as response:
            payload = await self._read_payload(response)
            if response.status >= 400:
                detail = payload.get("detail") if isinstance(payload, dict) else None
                raise HTTPClientError(response.status, str(detail or response.reason or "Request failed"))
            return payload

