"""Five-stage crawl of Lianjia second-hand listings.

Structure:
- base.py: errors, the spider contract and text helpers
- fetch.py: httpx-backed fetcher returning selectolax documents
- frontier.py: bounded per-stage work queue drained by a worker pool
- pipeline.py: dedupe store + CSV sink
- fields.py: label-driven extraction of listing attributes
- spiders/: one selector-driven extractor per stage
- stages.py: frontier handlers that connect spiders to the next frontier
- coordinator.py: runs the stages in order with a barrier between them
- runner.py: CLI entrypoint
"""

__all__ = [
    "coordinator",
    "runner",
]
