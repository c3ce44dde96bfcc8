from __future__ import annotations

import re
from typing import List, Pattern

from selectolax.parser import HTMLParser

from ..base import LinkSpider, attr


def detail_pattern(base_url: str) -> Pattern[str]:
    return re.compile(re.escape(base_url.rstrip("/")) + r"/ershoufang/\d{12}\.html")


class DetailSpider(LinkSpider):
    """Listing links on one result page.

    Only hrefs shaped like ``<base>/ershoufang/<12 digits>.html`` are kept;
    anything else (ads, recommendations) is dropped silently.
    """

    name = "detail"

    def __init__(
        self,
        base_url: str,
        *,
        list_sel: str = "div.content > div.leftContent > ul.sellListContent",
        link_sel: str = "li > a",
    ) -> None:
        self.pattern = detail_pattern(base_url)
        self.list_sel = list_sel
        self.link_sel = link_sel

    def accepts(self, href: str) -> bool:
        return self.pattern.fullmatch(href) is not None

    def parse(self, doc: HTMLParser, url: str) -> List[str]:
        links: List[str] = []
        for ul in doc.css(self.list_sel):
            for a in ul.css(self.link_sel):
                href = attr(a, "href") or ""
                if self.accepts(href):
                    links.append(href)
        return links
