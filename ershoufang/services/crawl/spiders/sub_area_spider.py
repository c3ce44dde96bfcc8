from __future__ import annotations

import urllib.parse

from .area_spider import AreaSpider


class SubAreaSpider(AreaSpider):
    """Sub-areas (neighbourhoods) listed on a district page.

    They sit in the second child of the same container that holds the
    district links. Dedupe keys are the URL suffix as it appears in the href.
    """

    name = "sub_area"

    def __init__(self, base_url: str, *, container_sel: str = "div[data-role='ershoufang'] > div:nth-child(2)") -> None:
        super().__init__(base_url, container_sel=container_sel)

    def dedupe_key(self, url: str) -> str:
        if url.startswith(self.base_url):
            return url[len(self.base_url):]
        parts = urllib.parse.urlsplit(url)
        return parts.path + ("?" + parts.query if parts.query else "")
