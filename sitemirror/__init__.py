"""Site-scoped web mirror.

Starting from one seed page, this package recursively discovers every
page, image, stylesheet and script of a single site and saves it under a
local output directory that mirrors the site's path layout.

Example usage:

    from sitemirror import mirror_site, mirror_site_async

    # Blocking
    result = mirror_site("http://books.toscrape.com/index.html")
    print(result.stats)

    # Async, with options
    from sitemirror import MirrorOptions

    options = MirrorOptions(output_dir="books", timeout=10)
    result = await mirror_site_async(
        "http://books.toscrape.com/index.html",
        options=options,
    )
    if result.failure_report:
        print(f"Some downloads failed, see {result.failure_report}")

    # Protected site
    from sitemirror.auth import AuthConfig

    auth = AuthConfig(headers={"Authorization": "Bearer xyz"})
    result = mirror_site("https://intranet.example.com/", auth=auth)
"""

from __future__ import annotations

from .auth import AuthConfig, AuthConfigError
from .config import MirrorOptions
from .engine import CrawlContext, CrawlEngine
from .extractor import (
    ExtractedPage,
    ExtractedReference,
    PageExtractor,
    ReferenceKind,
    RegionClassifier,
)
from .fetcher import FetchError, ResourceFetcher
from .navigation import NavigationTracker
from .registry import CrawlRegistry
from .site import MirrorResult, mirror_site, mirror_site_async
from .storage import MirrorStorage, OutputDirectoryError
from .urls import resolve

__all__ = [
    # Run API
    "mirror_site",
    "mirror_site_async",
    "MirrorResult",
    "MirrorOptions",
    # Auth
    "AuthConfig",
    "AuthConfigError",
    # Components
    "CrawlContext",
    "CrawlEngine",
    "CrawlRegistry",
    "NavigationTracker",
    "PageExtractor",
    "RegionClassifier",
    "ResourceFetcher",
    "MirrorStorage",
    "resolve",
    # Extracted references
    "ExtractedPage",
    "ExtractedReference",
    "ReferenceKind",
    # Errors
    "FetchError",
    "OutputDirectoryError",
    # MCP Server
    "mcp",
]


def get_mcp_server():
    """Get the MCP server instance (lazy import to avoid dependency if not needed)."""
    from .mcp_server import mcp

    return mcp


# Lazy import for mcp to avoid requiring fastmcp if not used
def __getattr__(name):
    if name == "mcp":
        from .mcp_server import mcp

        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
