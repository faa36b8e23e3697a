"""Downloading resources and placing them in the mirror."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx

from .auth import AuthConfig, build_client_kwargs
from .config import MirrorOptions
from .storage import MirrorStorage

LOGGER = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a resource cannot be downloaded or placed on disk."""

    def __init__(self, message: str, url: str):
        self.url = url
        super().__init__(message)


def build_http_client(
    options: MirrorOptions,
    auth: Optional[AuthConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the async client used as the resource transport."""
    kwargs = build_client_kwargs(auth)
    headers = {"User-Agent": options.user_agent}
    headers.update(kwargs.pop("headers", {}))
    return httpx.AsyncClient(
        headers=headers,
        timeout=options.timeout,
        follow_redirects=True,
        transport=transport,
        **kwargs,
    )


class ResourceFetcher:
    """Fetches bytes by URL and writes them to the mirror.

    Asset downloads are idempotent: when the artifact already exists on
    disk no request is made. ``asyncio.CancelledError`` is never caught
    here, so cancelling the crawl task aborts the in-flight request.
    """

    def __init__(self, client: httpx.AsyncClient, storage: MirrorStorage):
        self.client = client
        self.storage = storage

    async def __aenter__(self) -> "ResourceFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.client.aclose()

    async def fetch_bytes(self, url: str) -> bytes:
        """Download *url* fully into memory.

        Raises:
            FetchError: On any transport error or non-success status.
        """
        LOGGER.info("Downloading: %s", url)
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"HTTP {exc.response.status_code} for {url}", url
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(f"Request failed for {url}: {exc}", url) from exc
        return response.content

    async def fetch_and_save(self, url: str) -> bool:
        """Download *url* into the mirror unless it is already there.

        Returns:
            True if the file was downloaded, False if it already existed.

        Raises:
            FetchError: If the download or the write fails.
        """
        if self.storage.exists(url):
            LOGGER.info("Already exists: %s", url)
            return False
        content = await self.fetch_bytes(url)
        self.save(url, content)
        return True

    def save(self, url: str, content: bytes) -> Path:
        """Write already-fetched *content* to the mirrored path of *url*."""
        try:
            path = self.storage.write(url, content)
        except OSError as exc:
            raise FetchError(f"Cannot write {url}: {exc}", url) from exc
        LOGGER.info("Saved: %s -> %s", url, path)
        return path
