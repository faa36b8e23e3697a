"""MCP Server exposing the site mirror.

Provides one tool, ``mirror_site``, which mirrors a site into a local
directory and reports what was saved and what failed.

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for desktop MCP clients)
    python -m sitemirror.mcp_server

    # HTTP (for remote access)
    python -m sitemirror.mcp_server --transport http --port 8000

Environment Variables:
    SITEMIRROR_OUTPUT_DIR: Default output directory (default: ./Output)
    SITEMIRROR_TIMEOUT: Request timeout in seconds
    SITEMIRROR_USER_AGENT: User-Agent header
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .config import MirrorOptions
from .site import MirrorResult

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

# Create the MCP server
mcp = FastMCP(
    name="Site Mirror",
    instructions="""
    A site mirroring server that provides:

    - mirror_site: Download every page, image, stylesheet and script of a
      single site into a local directory, preserving its path layout.

    Output formats:
    - markdown: Short human-readable summary (default)
    - json: Full summary including failed URLs and statistics
    """,
)


class OutputFormat(str, Enum):
    """Output format for mirror results."""

    markdown = "markdown"
    json = "json"


def _format_timestamp() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _format_markdown(result: MirrorResult) -> str:
    stats = result.stats
    lines = [
        f"# Mirror of {result.seed_url}",
        f"_Finished: {_format_timestamp()}_",
        "",
        f"- Output directory: `{result.output_dir}`",
        f"- Pages visited: {stats['pages_visited']}",
        f"- Assets saved: {stats['assets_saved']}",
        f"- Assets already present: {stats['assets_skipped']}",
        f"- Failed downloads: {stats['failed']}",
        f"- Elapsed: {stats['elapsed_seconds']}s",
    ]
    if result.cancelled:
        lines.append("")
        lines.append("**The run was cancelled before it completed.**")
    if result.failures:
        lines.append("")
        lines.append(f"## Failed downloads (see `{result.failure_report}`)")
        lines.extend(f"- {url}" for url in result.failures)
    return "\n".join(lines)


def _format_output(result: MirrorResult, output_format: OutputFormat) -> str:
    if output_format == OutputFormat.json:
        payload = result.to_dict()
        payload["finished_at"] = _format_timestamp()
        return json.dumps(payload, indent=2, ensure_ascii=False)
    return _format_markdown(result)


async def mirror_site(
    url: str,
    output_dir: Optional[str] = None,
    output_format: str = "markdown",
    keep_output: bool = False,
):
    """
    Mirror a website into a local directory, starting from a seed page.

    Every reachable page of the seed's host is saved together with its
    scripts, stylesheets and images. Downloads that fail are listed in the
    result and in a failure report file inside the output directory.

    Args:
        url: Seed page URL (its scheme and host define the site)
        output_dir: Target directory (default: SITEMIRROR_OUTPUT_DIR or ./Output)
        output_format: "markdown" (default) or "json"
        keep_output: Keep existing files instead of recreating the directory

    Returns:
        Summary of the mirror run in the specified format.

    Examples:
        mirror_site(url="http://books.toscrape.com/index.html")
        mirror_site(url="https://docs.example.com/", output_dir="docs", output_format="json")
    """
    from . import mirror_site_async

    try:
        fmt = OutputFormat(output_format.lower())
    except ValueError:
        fmt = OutputFormat.markdown

    options = MirrorOptions.from_env(
        output_dir=Path(output_dir) if output_dir else None,
        clean_output=False if keep_output else None,
    )
    LOGGER.info("Mirroring %s into %s", url, options.output_dir)
    result = await mirror_site_async(url, options=options)
    LOGGER.info(
        "Mirror complete: %d pages, %d failed",
        result.pages_visited,
        len(result.failures),
    )
    return _format_output(result, fmt)


mcp.tool(mirror_site)


def main() -> None:
    """Run the MCP server."""
    parser = argparse.ArgumentParser(
        description="MCP Server for mirroring a website",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # STDIO transport (default, for desktop MCP clients)
    python -m sitemirror.mcp_server

    # HTTP transport (for remote access)
    python -m sitemirror.mcp_server --transport http --port 8000

    # Custom host/port
    python -m sitemirror.mcp_server --transport http --host 0.0.0.0 --port 9000
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args()

    LOGGER.info("Default output directory: %s", MirrorOptions.from_env().output_dir)

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
