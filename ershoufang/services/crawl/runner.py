from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from typing import Optional

from ershoufang.config import CrawlSettings

from .coordinator import CrawlPipeline
from .frontier import Fetch
from .pipeline import CsvSink, ensure_dir

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(*, log_dir: Optional[str] = None, verbose: bool = False) -> None:
    handlers: list = [logging.StreamHandler(sys.stdout)]
    file_error: Optional[OSError] = None
    if log_dir:
        path = os.path.join(log_dir, f"log-{time.strftime('%Y-%m-%d')}.log")
        try:
            ensure_dir(log_dir)
            handlers.append(logging.FileHandler(path, mode="a", encoding="utf-8"))
        except OSError as exc:
            file_error = exc
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO; the frontier already logs each visit.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    if file_error is not None:
        logger.info("Failed to log to file, using stdout only: %s", file_error)


def build_settings(args: argparse.Namespace) -> CrawlSettings:
    settings = CrawlSettings.from_env()
    updates = {}
    if args.base_url:
        updates["base_url"] = args.base_url
    if args.output:
        updates["output_path"] = args.output
    if args.timeout is not None:
        updates["timeout"] = args.timeout
    if args.dedupe_details:
        updates["dedupe_details"] = True
    if updates:
        settings = CrawlSettings(**{**settings.model_dump(), **updates})
    if args.workers is not None or args.delay is not None:
        settings = settings.with_pacing(workers=args.workers, delay=args.delay)
    return settings


def run_crawl(settings: CrawlSettings, *, fetch: Optional[Fetch] = None) -> int:
    try:
        sink = CsvSink(settings.output_path)
    except OSError as exc:
        logger.critical("Cannot open output file %s: %s", settings.output_path, exc)
        return 1
    with sink:
        stats = CrawlPipeline(settings, sink, fetch=fetch).run()
    logger.info("Wrote %d houses to %s", stats.houses, settings.output_path)
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Crawl Lianjia second-hand listings into a CSV file")
    parser.add_argument("--base-url", help="Site root, e.g. https://bj.lianjia.com")
    parser.add_argument("--output", help="CSV output path (default: output/output.csv)")
    parser.add_argument("--workers", type=int, help="Workers per stage (the area stage always uses one)")
    parser.add_argument("--delay", type=float, help="Seconds each worker waits between its requests")
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds")
    parser.add_argument("--dedupe-details", action="store_true", help="Skip listing URLs already queued")
    parser.add_argument("--log-dir", help="Also append logs to <dir>/log-YYYY-MM-DD.log")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be >= 1")
    if args.delay is not None and args.delay < 0:
        parser.error("--delay must be >= 0")
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be > 0")

    setup_logging(log_dir=args.log_dir, verbose=args.verbose)
    settings = build_settings(args)
    code = run_crawl(settings)
    if code == 0:
        print(settings.output_path)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
