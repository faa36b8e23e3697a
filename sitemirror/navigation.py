"""Current-page tracking with a backtracking history stack."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

LOGGER = logging.getLogger(__name__)


class NavigationTracker:
    """Keeps the page being processed and the pages it was reached from.

    ``enter`` pushes the previous current page, ``leave`` pops it back.
    The crawl engine pairs them through :meth:`visiting` so that every exit
    path of a page frame backtracks exactly once.
    """

    def __init__(self) -> None:
        self._history: List[str] = []
        self._current: Optional[str] = None

    @property
    def current(self) -> Optional[str]:
        return self._current

    @property
    def history(self) -> Tuple[str, ...]:
        return tuple(self._history)

    @property
    def depth(self) -> int:
        return len(self._history)

    def enter(self, url: str) -> None:
        if self._current is not None:
            self._history.append(self._current)
        self._current = url
        LOGGER.info("Navigated to: %s", url)

    def leave(self) -> None:
        LOGGER.info("Leaving: %s", self._current)
        self._current = self._history.pop() if self._history else None

    @contextmanager
    def visiting(self, url: str) -> Iterator[str]:
        """Enter *url* for the duration of the block, leaving on any exit."""
        self.enter(url)
        try:
            yield url
        finally:
            self.leave()
