"""Crawl-wide bookkeeping of visited pages and failed downloads."""

from __future__ import annotations

from typing import Dict, Set, Tuple


class CrawlRegistry:
    """Visited page URLs plus the URLs whose download failed.

    Both collections only grow during a run. Failures keep insertion order
    so the failure report lists them in the order they happened.
    """

    def __init__(self) -> None:
        self._visited: Set[str] = set()
        self._failures: Dict[str, None] = {}

    def has_visited(self, url: str) -> bool:
        return url in self._visited

    def mark_visited(self, url: str) -> None:
        self._visited.add(url)

    def check_and_mark(self, url: str) -> bool:
        """Mark *url* visited; return False if it already was."""
        if url in self._visited:
            return False
        self._visited.add(url)
        return True

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    def record_failure(self, url: str) -> None:
        self._failures.setdefault(url, None)

    @property
    def has_failures(self) -> bool:
        return bool(self._failures)

    @property
    def failures(self) -> Tuple[str, ...]:
        return tuple(self._failures)
