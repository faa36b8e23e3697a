"""Mirror run orchestration: output layout, crawl, failure report."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from time import monotonic
from typing import Any, Callable, Dict, List, Optional

import httpx

from .auth import AuthInput, resolve_auth
from .config import MirrorOptions, resolve_options
from .engine import CrawlEngine
from .extractor import PageExtractor
from .fetcher import ResourceFetcher, build_http_client
from .storage import MirrorStorage
from .urls import site_root

LOGGER = logging.getLogger(__name__)


@dataclass
class MirrorResult:
    """Result of a mirror run."""

    seed_url: str
    output_dir: Path
    pages_visited: int = 0
    pages_saved: int = 0
    assets_saved: int = 0
    assets_skipped: int = 0
    failures: List[str] = field(default_factory=list)
    failure_report: Optional[Path] = None
    elapsed: float = 0.0
    cancelled: bool = False

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "pages_visited": self.pages_visited,
            "pages_saved": self.pages_saved,
            "assets_saved": self.assets_saved,
            "assets_skipped": self.assets_skipped,
            "failed": len(self.failures),
            "elapsed_seconds": round(self.elapsed, 3),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "seed_url": self.seed_url,
            "output_dir": str(self.output_dir),
            "cancelled": self.cancelled,
            "failure_report": str(self.failure_report) if self.failure_report else None,
            "failures": list(self.failures),
            "stats": self.stats,
        }


async def mirror_site_async(
    url: str,
    *,
    options: Optional[MirrorOptions] = None,
    output_dir: Optional[Path] = None,
    auth: Optional[AuthInput] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    on_complete: Optional[Callable[[MirrorResult], None]] = None,
) -> MirrorResult:
    """
    Mirror a website starting from a seed URL (depth-first).

    Args:
        url: The seed page; its scheme and host define the site.
        options: Run options; defaults are read from the environment.
        output_dir: Shortcut to override ``options.output_dir``.
        auth: Optional AuthConfig (or dict) with headers/cookies.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``.
        on_complete: Called once with the result when the crawl completes.
            Not called when the run is cancelled.

    Returns:
        MirrorResult with counters, failed URLs and the failure report path.

    Raises:
        ValueError: If *url* is not an absolute http(s) URL.
        OutputDirectoryError: If the output root cannot be prepared.
    """
    site_root(url)
    opts = resolve_options(options, output_dir=output_dir)

    storage = MirrorStorage(opts.output_dir)
    storage.prepare(clean=opts.clean_output)

    extractor = PageExtractor(
        parser=opts.parser,
        sidebar_selector=opts.sidebar_selector,
        main_content_selector=opts.main_content_selector,
    )
    client = build_http_client(opts, resolve_auth(auth), transport)

    LOGGER.info("Starting mirror: %s -> %s", url, opts.output_dir)
    started = monotonic()
    cancelled = False

    async with ResourceFetcher(client, storage) as fetcher:
        engine = CrawlEngine(fetcher, extractor)
        try:
            await engine.crawl(url)
        except asyncio.CancelledError:
            cancelled = True
            LOGGER.info("The mirror run was cancelled.")

    registry = engine.registry
    result = MirrorResult(
        seed_url=url,
        output_dir=opts.output_dir,
        pages_visited=registry.visited_count,
        pages_saved=engine.pages_saved,
        assets_saved=engine.assets_saved,
        assets_skipped=engine.assets_skipped,
        failures=list(registry.failures),
        elapsed=monotonic() - started,
        cancelled=cancelled,
    )
    if cancelled:
        return result

    if registry.has_failures:
        result.failure_report = storage.write_failure_report(
            registry.failures, opts.failure_report_name
        )
        LOGGER.info("Completed with errors in %.2fs", result.elapsed)
        LOGGER.info("Please check: %s", result.failure_report)
    else:
        LOGGER.info("Completed in %.2fs", result.elapsed)

    if on_complete is not None:
        on_complete(result)
    return result


def mirror_site(
    url: str,
    *,
    options: Optional[MirrorOptions] = None,
    output_dir: Optional[Path] = None,
    auth: Optional[AuthInput] = None,
    on_complete: Optional[Callable[[MirrorResult], None]] = None,
) -> MirrorResult:
    """Synchronous wrapper for mirror_site_async."""
    return asyncio.run(
        mirror_site_async(
            url,
            options=options,
            output_dir=output_dir,
            auth=auth,
            on_complete=on_complete,
        )
    )
