from __future__ import annotations

from typing import List

from selectolax.parser import HTMLParser

from ..base import LinkSpider, attr


class AreaSpider(LinkSpider):
    """Districts listed on the second-hand housing index page."""

    name = "area"

    def __init__(self, base_url: str, *, container_sel: str = "div[data-role='ershoufang']") -> None:
        self.base_url = base_url.rstrip("/")
        self.container_sel = container_sel

    def parse(self, doc: HTMLParser, url: str) -> List[str]:
        links: List[str] = []
        for container in doc.css(self.container_sel):
            for a in container.css("a"):
                href = attr(a, "href")
                if href:
                    links.append(self.base_url + href)
        return links
