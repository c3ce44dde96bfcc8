from __future__ import annotations

import logging
import threading
from typing import Optional

from selectolax.parser import HTMLParser

from .base import CapacityExceeded, LinkSpider
from .frontier import Frontier
from .pipeline import CsvSink, DedupeStore
from .spiders.house_spider import HouseSpider

logger = logging.getLogger(__name__)


class Counter:
    """Thread-safe monotonically increasing counter."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self, n: int = 1) -> int:
        """Add n and return the new value."""
        with self._lock:
            self._value += n
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class DiscoveryStage:
    """Frontier handler for the four URL-discovery stages.

    Runs the spider on a fetched document and feeds every discovered URL into
    the next stage's frontier, skipping keys already seen when a dedupe store
    is attached. Once the frontier is full the rest of the document's URLs
    are dropped together: one ERROR line, all of them counted in ``dropped``.
    """

    def __init__(
        self,
        label: str,
        spider: LinkSpider,
        out: Frontier,
        *,
        counter: Optional[Counter] = None,
        dropped: Optional[Counter] = None,
        store: Optional[DedupeStore] = None,
    ) -> None:
        self.label = label
        self.spider = spider
        self.out = out
        self.counter = counter or Counter()
        self.dropped = dropped or Counter()
        self.store = store

    def __call__(self, doc: HTMLParser, url: str) -> None:
        links = self.spider.parse(doc, url)
        for i, link in enumerate(links):
            try:
                self.offer(link)
            except CapacityExceeded as exc:
                n = len(links) - i
                total = self.dropped.increment(n)
                logger.error(
                    "Dropped %d %s URLs from %s starting at %s (%d dropped so far): %s",
                    n, self.label, url, link, total, exc,
                )
                return

    def offer(self, link: str) -> bool:
        """Queue link unless already seen. Raises CapacityExceeded when the frontier is full."""
        if self.store is not None and not self.store.seen_and_mark(self.spider.dedupe_key(link)):
            logger.debug("Skipping already queued %s URL %s", self.label, link)
            return False
        self.out.enqueue(link)
        n = self.counter.increment()
        logger.info("Adding %s URL [%d]: %s", self.label, n, link)
        return True


class HouseStage:
    """Frontier handler for listing-detail pages: one House row per page.

    Ids come from their own counter when a page is handled; ``counter`` only
    counts rows the sink actually wrote.
    """

    def __init__(self, spider: HouseSpider, sink: CsvSink, *, counter: Optional[Counter] = None) -> None:
        self.spider = spider
        self.sink = sink
        self.counter = counter or Counter()
        self.ids = Counter()

    def __call__(self, doc: HTMLParser, url: str) -> None:
        house_id = self.ids.increment() - 1
        house = self.spider.parse(doc, url, house_id=house_id)
        self.sink.write(house)
        self.counter.increment()
        logger.info("Adding house [%d]: %s", house_id, house)
