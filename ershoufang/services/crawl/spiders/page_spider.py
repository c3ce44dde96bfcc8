from __future__ import annotations

import json
import logging
import sys
from collections.abc import Sequence

from selectolax.parser import HTMLParser

from ..base import LinkSpider, attr

logger = logging.getLogger(__name__)


class PageUrls(Sequence):
    """``<url>pg1/`` .. ``<url>pgN/``, built on access rather than up front."""

    def __init__(self, url: str, total: int) -> None:
        self.url = url
        self.total = total

    def __len__(self) -> int:
        return self.total

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(self.total))]
        if index < 0:
            index += self.total
        if not 0 <= index < self.total:
            raise IndexError(index)
        return f"{self.url}pg{index + 1}/"

    def __repr__(self) -> str:
        return f"PageUrls({self.url!r}, {self.total})"


class PageSpider(LinkSpider):
    """Result pages of a sub-area, synthesized from the pagination widget.

    The widget carries ``page-data='{"totalPage":N,"curPage":1}'``; pages are
    ``<sub-area url>pg1/`` .. ``pgN/``.
    """

    name = "page"

    def __init__(self, *, box_sel: str = "div.page-box.house-lst-page-box", attr_name: str = "page-data") -> None:
        self.box_sel = box_sel
        self.attr_name = attr_name

    def parse(self, doc: HTMLParser, url: str) -> PageUrls:
        total = self.total_pages(doc, url)
        logger.info("Adding %d pages for %s", total, url)
        return PageUrls(url, total)

    def total_pages(self, doc: HTMLParser, url: str) -> int:
        raw = attr(doc.css_first(self.box_sel), self.attr_name)
        if not raw:
            logger.info("No page data on %s", url)
            return 0
        try:
            total = int(json.loads(raw).get("totalPage") or 0)
        except (ValueError, TypeError, AttributeError, OverflowError) as exc:
            logger.warning("Malformed page data %r on %s: %s", raw, url, exc)
            return 0
        return min(max(total, 0), sys.maxsize)
