"""Five-stage crawl of Lianjia second-hand listings.

seed -> areas -> sub-areas -> result pages -> listing pages -> CSV rows

Each stage has its own frontier. ``CrawlPipeline.run`` drains them strictly
one after another: a stage's frontier is only run once the previous one has
fully drained, and it is only ever fed by the previous stage's handler.
"""

from __future__ import annotations

import logging
import time
import urllib.parse
from dataclasses import dataclass
from typing import Dict, Optional

from ershoufang.config import CrawlSettings, StageSettings

from .base import FetchError
from .fetch import Fetcher
from .frontier import Fetch, Frontier, Handler
from .pipeline import CsvSink, DedupeStore
from .spiders import AreaSpider, DetailSpider, HouseSpider, PageSpider, SubAreaSpider
from .stages import Counter, DiscoveryStage, HouseStage

logger = logging.getLogger(__name__)

STAGES = ("area", "sub_area", "page", "detail")


@dataclass
class CrawlStats:
    areas: int = 0
    sub_areas: int = 0
    pages: int = 0
    details: int = 0
    houses: int = 0
    dropped: int = 0
    elapsed: float = 0.0


class CrawlPipeline:
    def __init__(self, settings: CrawlSettings, sink: CsvSink, *, fetch: Optional[Fetch] = None) -> None:
        self.settings = settings
        self.sink = sink
        self._fetcher: Optional[Fetcher] = None
        if fetch is None:
            self._fetcher = Fetcher(
                allowed_domains=_allowed_domains(settings),
                timeout=settings.timeout,
                headers={"User-Agent": settings.user_agent},
            )
            fetch = self._fetcher
        self.fetch = fetch

        # Keyed by the kind of URL each frontier holds.
        self.frontiers: Dict[str, Frontier] = {
            name: Frontier(name, getattr(settings, name).max_size) for name in STAGES
        }
        self.sub_area_store = DedupeStore()
        self.detail_store = DedupeStore() if settings.dedupe_details else None
        self.dropped = Counter()

        base = settings.base_url
        self.area_stage = DiscoveryStage(
            "Area", AreaSpider(base), self.frontiers["area"], dropped=self.dropped
        )
        self.sub_area_stage = DiscoveryStage(
            "SubArea", SubAreaSpider(base), self.frontiers["sub_area"], dropped=self.dropped, store=self.sub_area_store
        )
        self.page_stage = DiscoveryStage("Page", PageSpider(), self.frontiers["page"], dropped=self.dropped)
        self.detail_stage = DiscoveryStage(
            "house detail", DetailSpider(base), self.frontiers["detail"], dropped=self.dropped, store=self.detail_store
        )
        self.house_stage = HouseStage(HouseSpider(), sink)

    def run(self) -> CrawlStats:
        start = time.monotonic()
        try:
            self.visit_seed()
            self.run_stage("area", self.sub_area_stage)
            self.run_stage("sub_area", self.page_stage)
            self.run_stage("page", self.detail_stage)
            self.run_stage("detail", self.house_stage)
        finally:
            if self._fetcher is not None:
                self._fetcher.close()
        stats = self.stats(time.monotonic() - start)
        self.report(stats)
        return stats

    def visit_seed(self) -> None:
        """Fetch the seed page directly (no frontier) and discover the areas."""
        url = self.settings.seed_url
        logger.info("Visiting %s", url)
        try:
            doc = self.fetch(url)
        except FetchError as exc:
            logger.error("Could not fetch seed page %s: %s", url, exc)
            return
        except Exception:
            logger.exception("Fetch failed on seed page %s", url)
            return
        try:
            self.area_stage(doc, url)
        except Exception:
            logger.exception("Handler failed on seed page %s", url)

    def run_stage(self, name: str, handler: Handler) -> None:
        """Drain the named frontier completely before returning."""
        frontier = self.frontiers[name]
        stage: StageSettings = getattr(self.settings, name)
        logger.info("Visiting %d queued %s URLs", frontier.size, name)
        frontier.run(stage.workers, stage.delay, handler, self.fetch)

    def stats(self, elapsed: float = 0.0) -> CrawlStats:
        return CrawlStats(
            areas=self.area_stage.counter.value,
            sub_areas=self.sub_area_stage.counter.value,
            pages=self.page_stage.counter.value,
            details=self.detail_stage.counter.value,
            houses=self.house_stage.counter.value,
            dropped=self.dropped.value,
            elapsed=elapsed,
        )

    @staticmethod
    def report(stats: CrawlStats) -> None:
        logger.info("areaCount: %d", stats.areas)
        logger.info("subAreaCount: %d", stats.sub_areas)
        logger.info("pageCount: %d", stats.pages)
        logger.info("detailCount: %d", stats.details)
        logger.info("houseCount: %d", stats.houses)
        if stats.dropped:
            logger.warning("droppedCount: %d (frontier full)", stats.dropped)
        logger.info("total process time: %.2fs", stats.elapsed)


def _allowed_domains(settings: CrawlSettings) -> list:
    domains = list(settings.allowed_domains)
    host = urllib.parse.urlsplit(settings.base_url).hostname
    if host and host not in domains:
        domains.append(host)
    return domains
