"""Parsing fetched pages and collecting the references they embed."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Set

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from .config import DEFAULT_PARSER, MAIN_CONTENT_SELECTOR, SIDEBAR_SELECTOR

LOGGER = logging.getLogger(__name__)


class ReferenceKind(str, Enum):
    """Category of an embedded reference, in processing order."""

    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    ANCHOR = "anchor"


@dataclass(frozen=True)
class ExtractedReference:
    kind: ReferenceKind
    raw: str


@dataclass
class ExtractedPage:
    """Raw (possibly relative) references found on one page, in document order."""

    url: str
    scripts: List[str] = field(default_factory=list)
    stylesheets: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    anchors: List[str] = field(default_factory=list)

    def references(self) -> Iterator[ExtractedReference]:
        """Yield scripts, then stylesheets, then images, then anchors."""
        for kind, values in (
            (ReferenceKind.SCRIPT, self.scripts),
            (ReferenceKind.STYLESHEET, self.stylesheets),
            (ReferenceKind.IMAGE, self.images),
            (ReferenceKind.ANCHOR, self.anchors),
        ):
            for raw in values:
                yield ExtractedReference(kind, raw)


class RegionClassifier:
    """Answers which page region an element sits in.

    Anchors are followed when they are inside the sidebar, or anywhere
    outside the main content region. Links inside the main content (a
    product's "recently viewed" rail) are left alone unless they also sit in
    the sidebar.
    """

    def __init__(
        self,
        soup: BeautifulSoup,
        sidebar_selector: str = SIDEBAR_SELECTOR,
        main_content_selector: str = MAIN_CONTENT_SELECTOR,
    ):
        self._sidebars = _node_ids(soup, sidebar_selector)
        self._main_contents = _node_ids(soup, main_content_selector)

    def in_sidebar(self, element: Tag) -> bool:
        return _has_ancestor(element, self._sidebars)

    def in_main_content(self, element: Tag) -> bool:
        return _has_ancestor(element, self._main_contents)

    def should_follow(self, element: Tag) -> bool:
        return self.in_sidebar(element) or not self.in_main_content(element)


def _node_ids(soup: BeautifulSoup, selector: str) -> Set[int]:
    if not selector:
        return set()
    return {id(node) for node in soup.select(selector)}


def _has_ancestor(element: Tag, node_ids: Set[int]) -> bool:
    if not node_ids:
        return False
    return any(id(parent) in node_ids for parent in element.parents)


class PageExtractor:
    """Turns page bytes into an :class:`ExtractedPage`."""

    def __init__(
        self,
        parser: str = DEFAULT_PARSER,
        sidebar_selector: str = SIDEBAR_SELECTOR,
        main_content_selector: str = MAIN_CONTENT_SELECTOR,
    ):
        self.parser = parser
        self.sidebar_selector = sidebar_selector
        self.main_content_selector = main_content_selector

    def parse(self, content: bytes) -> Optional[BeautifulSoup]:
        """Parse *content*, returning None if no usable document comes out."""
        if not content or not content.strip():
            return None
        try:
            soup = BeautifulSoup(content, self.parser)
        except ParserRejectedMarkup as exc:
            LOGGER.debug("Parser rejected markup: %s", exc)
            return None
        if soup.find(True) is None:
            return None
        return soup

    def extract(self, content: bytes, url: str) -> Optional[ExtractedPage]:
        soup = self.parse(content)
        if soup is None:
            return None

        regions = RegionClassifier(
            soup, self.sidebar_selector, self.main_content_selector
        )
        return ExtractedPage(
            url=url,
            scripts=_attribute_values(soup.find_all("script"), "src"),
            stylesheets=_attribute_values(soup.find_all("link"), "href"),
            images=_attribute_values(soup.find_all("img"), "src"),
            anchors=_attribute_values(
                (a for a in soup.find_all("a") if regions.should_follow(a)), "href"
            ),
        )


def _attribute_values(elements, attribute: str) -> List[str]:
    values = []
    for element in elements:
        value = element.get(attribute)
        if isinstance(value, list):
            value = " ".join(value)
        if value and value.strip():
            values.append(value.strip())
    return values
