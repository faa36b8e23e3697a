"""Depth-first crawl engine for mirroring a single site."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .extractor import ExtractedPage, ExtractedReference, PageExtractor, ReferenceKind
from .fetcher import FetchError, ResourceFetcher
from .navigation import NavigationTracker
from .registry import CrawlRegistry
from .urls import (
    has_scheme,
    is_http_url,
    is_same_site,
    page_key,
    resolve,
    site_root,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrawlContext:
    """Site root plus the page whose references are being resolved."""

    base_url: str
    current_url: str

    def resolve(self, reference: str) -> str:
        return resolve(self.base_url, self.current_url, reference)

    def child(self, url: str) -> "CrawlContext":
        return CrawlContext(self.base_url, url)


class CrawlEngine:
    """Walks a site depth-first, saving pages and the assets they embed.

    One engine holds the whole mutable state of a run: the visited and
    failed URLs and the navigation history. Fetch and parse failures stay
    local to the resource; only ``asyncio.CancelledError`` escapes, after
    every open page frame has backtracked.
    """

    def __init__(
        self,
        fetcher: ResourceFetcher,
        extractor: PageExtractor,
        *,
        registry: Optional[CrawlRegistry] = None,
        navigation: Optional[NavigationTracker] = None,
    ):
        self.fetcher = fetcher
        self.extractor = extractor
        self.registry = registry or CrawlRegistry()
        self.navigation = navigation or NavigationTracker()
        self.pages_saved = 0
        self.assets_saved = 0
        self.assets_skipped = 0

    async def crawl(self, seed_url: str) -> None:
        """Mirror everything reachable from *seed_url*."""
        base_url = site_root(seed_url)
        await self.visit(CrawlContext(base_url, page_key(seed_url, base_url)))

    async def visit(self, context: CrawlContext) -> None:
        url = context.current_url
        if not self.registry.check_and_mark(url):
            LOGGER.info("Already visited: %s", url)
            return

        with self.navigation.visiting(url):
            try:
                content = await self.fetcher.fetch_bytes(url)
            except FetchError as exc:
                self._record_failure(exc)
                return

            page = self.extractor.extract(content, url)
            if page is None:
                LOGGER.info("No content: %s", url)
                return

            try:
                self.fetcher.save(url, content)
                self.pages_saved += 1
            except FetchError as exc:
                self._record_failure(exc)

            LOGGER.info("Processing document: %s", url)
            await self._process_page(context, page)

    async def _process_page(self, context: CrawlContext, page: ExtractedPage) -> None:
        for reference in page.references():
            if reference.kind is ReferenceKind.ANCHOR:
                await self._follow_anchor(context, reference)
            else:
                await self._download_asset(context, reference)

    async def _download_asset(
        self, context: CrawlContext, reference: ExtractedReference
    ) -> None:
        LOGGER.info("Found %s: %s", reference.kind.value, reference.raw)
        # Scripts hosted off the server are left alone.
        if reference.kind is ReferenceKind.SCRIPT and has_scheme(reference.raw):
            LOGGER.debug("Skipping external script: %s", reference.raw)
            return

        url = context.resolve(reference.raw)
        if not is_http_url(url):
            LOGGER.debug("Skipping non-http %s: %s", reference.kind.value, url)
            return
        try:
            downloaded = await self.fetcher.fetch_and_save(url)
        except FetchError as exc:
            self._record_failure(exc)
            return
        if downloaded:
            self.assets_saved += 1
        else:
            self.assets_skipped += 1

    async def _follow_anchor(
        self, context: CrawlContext, reference: ExtractedReference
    ) -> None:
        LOGGER.info("Found anchor: %s", reference.raw)
        url = context.resolve(reference.raw)
        if not is_same_site(url, context.base_url):
            LOGGER.debug("Skipping off-site link: %s", url)
            return
        await self.visit(context.child(page_key(url, context.base_url)))

    def _record_failure(self, exc: FetchError) -> None:
        self.registry.record_failure(exc.url)
        LOGGER.error("Failed to download: %s (%s)", exc.url, exc)
