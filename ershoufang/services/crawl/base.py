from __future__ import annotations

from typing import Any, Optional, Sequence

from selectolax.parser import HTMLParser, Node

NO_DATA = "暂无数据"


class CrawlError(Exception):
    """Base class for crawler errors."""


class FetchError(CrawlError):
    """Transport failure, non-2xx response or a URL outside the allowed domains."""


class CapacityExceeded(CrawlError):
    """Raised by a frontier that already holds its maximum number of items."""


def child_text(node: Any, selector: str) -> str:
    """Concatenated text of every node matching selector under node, stripped."""
    return "".join(n.text(deep=True) for n in node.css(selector)).strip()


def attr(node: Optional[Node], name: str) -> Optional[str]:
    if node is None:
        return None
    return node.attributes.get(name)


def remove_comma(text: str) -> str:
    return text.replace(",", " ").replace("，", " ")


def remove_space(text: str) -> str:
    # Drops every whitespace character, including tabs, CR and NBSP.
    return "".join(text.split())


def set_null(text: str) -> str:
    return "" if text == NO_DATA else text


class Spider:
    """Minimal spider contract.

    Subclasses implement parse() as a pure mapping from a fetched document to
    whatever the stage discovers (URLs for discovery stages, a record for the
    house stage).
    """

    name: str = "base"

    def parse(self, doc: HTMLParser, url: str) -> Any:
        raise NotImplementedError


class LinkSpider(Spider):
    """Spider that discovers URLs. ``parse`` returns a sized sequence of them."""

    def parse(self, doc: HTMLParser, url: str) -> Sequence[str]:
        raise NotImplementedError

    def dedupe_key(self, url: str) -> str:
        return url
