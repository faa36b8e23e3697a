"""URL resolution, local path mapping and site scoping."""

from __future__ import annotations

import posixpath
import re
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote, urldefrag, urlsplit

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")

# Characters left untouched when re-quoting a joined path.
_PATH_SAFE = "/%:@!$&'()*+,;=~-._"

DIRECTORY_INDEX = "index.html"


def has_scheme(reference: str) -> bool:
    """Return True if *reference* already starts with a URL scheme."""
    return bool(_SCHEME_RE.match(reference.strip()))


def site_root(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url*.

    Raises:
        ValueError: If *url* is not an absolute http(s) URL.
    """
    parts = urlsplit(url.strip())
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"Not an absolute http(s) URL: {url!r}")
    return f"{parts.scheme}://{parts.netloc}"


def resolve(base_url: str, current_url: str, reference: str) -> str:
    """Resolve a page-relative *reference* into an absolute, site-rooted URL.

    The reference is joined onto the directory of the current page with
    POSIX path semantics, so ``..`` segments climb out of that directory::

        >>> resolve("http://site", "http://site/test/index.html", "../index.html")
        'http://site/index.html'
        >>> resolve("http://site", "http://site/test/index.html", "index.html")
        'http://site/test/index.html'

    References that already carry a scheme are returned unchanged.
    """
    reference = reference.strip()
    if has_scheme(reference):
        return reference

    base_url = base_url.rstrip("/")
    if reference.startswith("//"):
        scheme = urlsplit(base_url).scheme or "http"
        return f"{scheme}:{reference}".split("#", 1)[0]

    ref = urlsplit(reference)
    current_path = urlsplit(current_url).path or "/"
    if not ref.path:
        # "#top" or "?page=2" stay on the current page.
        joined = current_path
    elif ref.path.startswith("/"):
        joined = ref.path
    else:
        directory = posixpath.dirname(current_path) or "/"
        joined = posixpath.join(directory, ref.path)

    path = _normalize_path(joined, keep_trailing_slash=joined.endswith("/"))
    url = base_url + quote(path, safe=_PATH_SAFE)
    if ref.query:
        url = f"{url}?{ref.query}"
    return url


def _normalize_path(path: str, *, keep_trailing_slash: bool) -> str:
    normalized = posixpath.normpath("/" + path.lstrip("/"))
    if keep_trailing_slash and not normalized.endswith("/"):
        normalized += "/"
    return normalized


def local_path(url: str, root: Path) -> Path:
    """Map *url* onto its mirrored location under *root*.

    The URL path is percent-decoded and stripped of its leading separator,
    e.g. ``/catalogue/foo.html`` becomes ``<root>/catalogue/foo.html``.
    Directory URLs map to ``index.html`` inside that directory.
    """
    path = unquote(urlsplit(url).path)
    relative = path.lstrip("/")
    if not relative or relative.endswith("/"):
        relative += DIRECTORY_INDEX
    parts = [part for part in relative.split("/") if part not in ("", ".", "..")]
    return Path(root).joinpath(*parts)


def _normalize_host(host: Optional[str]) -> str:
    """Normalize hostname by removing port and lowercasing."""
    if not host:
        return ""
    return host.split(":")[0].lower()


def is_same_site(url: str, base_url: str) -> bool:
    """Return True if *url* is an http(s) URL on the host of *base_url*."""
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        return False
    host = _normalize_host(parts.netloc)
    return bool(host) and host == _normalize_host(urlsplit(base_url).netloc)


def is_http_url(url: str) -> bool:
    """Return True if *url* can be downloaded over http(s)."""
    return urlsplit(url.strip()).scheme in ("http", "https")


def page_key(url: str, base_url: str) -> str:
    """Canonical form of a same-site page URL, used to deduplicate visits.

    The fragment is dropped and the scheme and host are replaced by
    *base_url*, so ``https://SITE/a.html#top`` and ``http://site/a.html``
    name the same page.
    """
    url, _ = urldefrag(url)
    parts = urlsplit(url)
    key = base_url.rstrip("/") + (parts.path or "/")
    if parts.query:
        key = f"{key}?{parts.query}"
    return key
