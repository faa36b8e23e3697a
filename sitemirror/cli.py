"""Command-line interface for mirroring a site."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import shutil
import signal
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .cli_config import load_config

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "sitemirror"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"


def _load_config() -> None:
    load_config(
        config_dir=CONFIG_DIR,
        config_env_file=CONFIG_ENV_FILE,
        cwd=Path.cwd(),
        load_env=load_dotenv,
        copy_file=shutil.copy,
    )


_load_config()

from .auth import AuthConfig, load_auth_from_env, load_auth_from_file
from .config import MirrorOptions
from .site import MirrorResult, mirror_site_async


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_header(value: str) -> tuple:
    """Parse a ``'Name: value'`` header argument."""
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(
            f"Header must look like 'Name: value', got {value!r}"
        )
    return name.strip(), header_value.strip()


def _parse_mirror_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sitemirror",
        description="Mirror every page, image, stylesheet and script of one site.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Mirror into ./Output (recreated on every run)
  sitemirror http://books.toscrape.com/index.html

  # Custom output directory, keep what is already there
  sitemirror http://books.toscrape.com/index.html -o books --keep-output

  # Different page regions for anchor scoping
  sitemirror https://shop.example.com/ --sidebar-selector nav.categories \\
      --main-selector div.product

  # Authenticated site, JSON summary on stdout
  sitemirror https://intranet.example.com/ --header 'Authorization: Bearer xyz' --json
""",
    )

    parser.add_argument(
        "url",
        help="Seed page URL; its scheme and host define the site",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output directory (default: $SITEMIRROR_OUTPUT_DIR or ./Output)",
    )
    parser.add_argument(
        "--keep-output",
        action="store_true",
        help="Do not delete the output directory first; existing files are not re-downloaded",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Request timeout in seconds (default: 30)",
    )
    parser.add_argument(
        "--user-agent",
        type=str,
        default=None,
        help="User-Agent header sent with every request",
    )

    scope_group = parser.add_argument_group("Anchor scoping")
    scope_group.add_argument(
        "--sidebar-selector",
        type=str,
        default=None,
        help="CSS selector of the navigation region whose links are always followed "
             "(default: .sidebar)",
    )
    scope_group.add_argument(
        "--main-selector",
        type=str,
        default=None,
        help="CSS selector of the main content region whose links are not followed "
             "(default: article.product_page)",
    )
    scope_group.add_argument(
        "--parser",
        type=str,
        default=None,
        help="BeautifulSoup parser name (default: html.parser)",
    )

    auth_group = parser.add_argument_group("Authentication")
    auth_group.add_argument(
        "--header",
        action="append",
        type=_parse_header,
        default=[],
        metavar="'NAME: VALUE'",
        help="Extra request header (repeatable)",
    )
    auth_group.add_argument(
        "--auth-file",
        type=str,
        default=None,
        help="JSON file with 'headers' and/or 'cookies' objects",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Print the run summary as JSON",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def _build_options(args: argparse.Namespace) -> MirrorOptions:
    return MirrorOptions.from_env(
        output_dir=Path(args.output) if args.output else None,
        timeout=args.timeout,
        user_agent=args.user_agent,
        sidebar_selector=args.sidebar_selector,
        main_content_selector=args.main_selector,
        parser=args.parser,
        clean_output=False if args.keep_output else None,
    )


def _build_cli_auth(args: argparse.Namespace) -> Optional[AuthConfig]:
    """Combine --auth-file, --header and SITEMIRROR_AUTH_* settings."""
    if args.auth_file:
        auth = load_auth_from_file(args.auth_file)
    else:
        auth = load_auth_from_env() or AuthConfig()

    if args.header:
        headers: Dict[str, str] = dict(auth.headers or {})
        headers.update(dict(args.header))
        auth.headers = headers

    return None if auth.is_empty else auth


def _install_cancel_handler(task: asyncio.Task) -> bool:
    """Cancel *task* on SIGTERM. SIGINT is already handled by ``asyncio.run``."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
    except (NotImplementedError, RuntimeError):
        return False
    return True


def _print_summary(result: MirrorResult, json_output: bool) -> None:
    if json_output:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return
    stats = result.stats
    logging.info(
        "Mirror complete: %d pages visited, %d assets saved, %d already present, %d failed",
        stats["pages_visited"],
        stats["assets_saved"],
        stats["assets_skipped"],
        stats["failed"],
    )


async def _run_mirror_async(args: argparse.Namespace) -> int:
    """Main async entry point for the mirror command."""
    options = _build_options(args)
    auth = _build_cli_auth(args)

    task = asyncio.current_task()
    handler_installed = task is not None and _install_cancel_handler(task)
    try:
        result = await mirror_site_async(args.url, options=options, auth=auth)
    finally:
        if handler_installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGTERM)

    if result.cancelled:
        logging.info("Interrupted")
        return 130

    _print_summary(result, args.json_output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the sitemirror command."""
    args = _parse_mirror_args(argv)
    _setup_logging(args.verbose)

    try:
        return asyncio.run(_run_mirror_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
