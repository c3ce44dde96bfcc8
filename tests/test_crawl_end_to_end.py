from ershoufang.config import CrawlSettings
from ershoufang.models.house import COLUMNS
from ershoufang.services.crawl.base import FetchError
from ershoufang.services.crawl.coordinator import CrawlPipeline
from ershoufang.services.crawl.pipeline import CsvSink
from ershoufang.services.crawl.runner import run_crawl

import csv
import threading
from pathlib import Path

from selectolax.parser import HTMLParser

BASE = "https://bj.lianjia.com"


def read_fixture(name: str) -> str:
    p = Path(__file__).parent / "fixtures" / name
    return p.read_text(encoding="utf-8")


def listing_page(total_pages: int, *listing_ids: str) -> str:
    items = "".join(
        f'<li class="clear"><a class="img" href="{BASE}/ershoufang/{i}.html">{i}</a></li>' for i in listing_ids
    )
    return (
        '<div class="content"><div class="leftContent">'
        f'<ul class="sellListContent">{items}<li><a href="{BASE}/ershoufang/ad.html">ad</a></li></ul>'
        "</div></div>"
        f"<div class=\"page-box house-lst-page-box\" page-data='{{\"totalPage\":{total_pages},\"curPage\":1}}'></div>"
    )


def mock_site() -> dict:
    house = read_fixture("house_detail.html")
    return {
        BASE + "/ershoufang/": (
            '<div data-role="ershoufang"><div><a href="/ershoufang/dongcheng/">东城</a></div></div>'
        ),
        BASE + "/ershoufang/dongcheng/": (
            '<div data-role="ershoufang">'
            '<div><a href="/ershoufang/dongcheng/">东城</a></div>'
            "<div>"
            '<a href="/ershoufang/andingmen/">安定门</a>'
            '<a href="/ershoufang/jiaodaokou/">交道口</a>'
            '<a href="/ershoufang/andingmen/">安定门</a>'
            "</div></div>"
        ),
        BASE + "/ershoufang/andingmen/": listing_page(2),
        BASE + "/ershoufang/jiaodaokou/": listing_page(1),
        BASE + "/ershoufang/andingmen/pg1/": listing_page(2, "101111350001", "101111350002"),
        BASE + "/ershoufang/andingmen/pg2/": listing_page(2, "101111350003"),
        BASE + "/ershoufang/jiaodaokou/pg1/": listing_page(1),
        BASE + "/ershoufang/101111350001.html": house.replace("南北通透两居室", "房源一"),
        BASE + "/ershoufang/101111350002.html": house.replace("南北通透两居室", "房源二"),
        BASE + "/ershoufang/101111350003.html": house.replace("南北通透两居室", "房源三"),
    }


class FakeSite:
    def __init__(self, pages: dict) -> None:
        self.pages = pages
        self.visits = []
        self._lock = threading.Lock()

    def __call__(self, url: str) -> HTMLParser:
        with self._lock:
            self.visits.append(url)
        if url not in self.pages:
            raise FetchError(f"HTTP 404 for {url}")
        return HTMLParser(self.pages[url])


def fast_settings(tmp_path, **kwargs) -> CrawlSettings:
    return CrawlSettings(output_path=str(tmp_path / "output.csv"), **kwargs).with_pacing(workers=3, delay=0)


def test_crawl_writes_one_row_per_listing(tmp_path):
    settings = fast_settings(tmp_path)
    site = FakeSite(mock_site())

    with CsvSink(settings.output_path) as sink:
        stats = CrawlPipeline(settings, sink, fetch=site).run()

    assert (stats.areas, stats.sub_areas, stats.pages, stats.details, stats.houses) == (1, 2, 3, 3, 3)
    assert stats.dropped == 0

    raw = Path(settings.output_path).read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    with open(settings.output_path, "r", encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == COLUMNS
    assert len(rows) == 4
    assert all(len(r) == 31 for r in rows)
    assert sorted(r[1] for r in rows[1:]) == ["房源一 满五唯一", "房源三 满五唯一", "房源二 满五唯一"]
    assert sorted(r[0] for r in rows[1:]) == ["0", "1", "2"]
    assert {r[COLUMNS.index("建筑面积")] for r in rows[1:]} == {"60.00"}


def test_stages_run_in_order_with_a_barrier(tmp_path):
    site = FakeSite(mock_site())
    with CsvSink(str(tmp_path / "output.csv")) as sink:
        CrawlPipeline(fast_settings(tmp_path), sink, fetch=site).run()

    def depth(url: str) -> int:
        if url.endswith(".html"):
            return 4
        if "/pg" in url:
            return 3
        if url.endswith(("/andingmen/", "/jiaodaokou/")):
            return 2
        if url.endswith("/dongcheng/"):
            return 1
        return 0

    depths = [depth(u) for u in site.visits]
    assert depths == sorted(depths)
    # the duplicated sub-area href was fetched once
    assert site.visits.count(BASE + "/ershoufang/andingmen/") == 1


def test_duplicate_details_are_refetched_unless_deduped(tmp_path):
    pages = mock_site()
    pages[BASE + "/ershoufang/jiaodaokou/pg1/"] = listing_page(1, "101111350001")

    with CsvSink(str(tmp_path / "a.csv")) as sink:
        stats = CrawlPipeline(fast_settings(tmp_path), sink, fetch=FakeSite(pages)).run()
    assert stats.details == 4
    assert stats.houses == 4

    with CsvSink(str(tmp_path / "b.csv")) as sink:
        stats = CrawlPipeline(fast_settings(tmp_path, dedupe_details=True), sink, fetch=FakeSite(pages)).run()
    assert stats.details == 3
    assert stats.houses == 3


def test_broken_listing_pages_are_dropped_not_fatal(tmp_path, caplog):
    pages = mock_site()
    del pages[BASE + "/ershoufang/101111350002.html"]

    with CsvSink(str(tmp_path / "output.csv")) as sink:
        stats = CrawlPipeline(fast_settings(tmp_path), sink, fetch=FakeSite(pages)).run()
    assert stats.details == 3
    assert stats.houses == 2
    assert "Dropping https://bj.lianjia.com/ershoufang/101111350002.html" in caplog.text


def test_unreachable_seed_finishes_with_empty_output(tmp_path, caplog):
    settings = fast_settings(tmp_path)
    with CsvSink(settings.output_path) as sink:
        stats = CrawlPipeline(settings, sink, fetch=FakeSite({})).run()
    assert stats.houses == 0
    assert "Could not fetch seed page" in caplog.text
    with open(settings.output_path, "r", encoding="utf-8-sig", newline="") as f:
        assert list(csv.reader(f)) == [COLUMNS]


def test_unexpected_seed_errors_finish_with_empty_output(tmp_path, caplog):
    def broken_fetch(url):
        raise ValueError(f"cannot build request for {url}")

    settings = fast_settings(tmp_path)
    with CsvSink(settings.output_path) as sink:
        stats = CrawlPipeline(settings, sink, fetch=broken_fetch).run()
    assert (stats.areas, stats.houses) == (0, 0)
    assert "Fetch failed on seed page" in caplog.text
    with open(settings.output_path, "r", encoding="utf-8-sig", newline="") as f:
        assert list(csv.reader(f)) == [COLUMNS]


def test_seed_handler_failure_is_logged_not_raised(tmp_path, caplog):
    def explode(doc, url):
        raise RuntimeError("bad area markup")

    site = FakeSite(mock_site())
    with CsvSink(str(tmp_path / "output.csv")) as sink:
        pipeline = CrawlPipeline(fast_settings(tmp_path), sink, fetch=site)
        pipeline.area_stage.spider.parse = explode
        stats = pipeline.run()
    assert stats.areas == 0
    assert site.visits == [BASE + "/ershoufang/"]
    assert "Handler failed on seed page" in caplog.text


def test_full_frontier_is_reported(tmp_path):
    settings = fast_settings(tmp_path)
    settings = CrawlSettings(**{**settings.model_dump(), "page": {"workers": 2, "delay": 0, "max_size": 2}})
    with CsvSink(settings.output_path) as sink:
        stats = CrawlPipeline(settings, sink, fetch=FakeSite(mock_site())).run()
    assert stats.pages == 2
    assert stats.dropped == 1


def test_run_crawl_fails_before_crawling_when_output_unwritable(tmp_path, caplog):
    site = FakeSite(mock_site())
    settings = fast_settings(tmp_path).model_copy(update={"output_path": str(tmp_path)})
    assert run_crawl(settings, fetch=site) == 1
    assert site.visits == []
    assert "Cannot open output file" in caplog.text


def test_run_crawl_success(tmp_path):
    settings = fast_settings(tmp_path)
    assert run_crawl(settings, fetch=FakeSite(mock_site())) == 0
    assert Path(settings.output_path).is_file()
