"""Crawl configuration.

Defaults mirror a polite crawl of Beijing second-hand listings. Overrides can
come from environment variables (see ``CrawlSettings.from_env``) or from the
command line runner, which layers its flags on top.

Environment variables:

- ERSHOUFANG_BASE_URL (default: https://bj.lianjia.com)
- ERSHOUFANG_OUTPUT (default: output/output.csv)
- ERSHOUFANG_TIMEOUT (seconds, default: 10)
- ERSHOUFANG_WORKERS (workers per stage, area stays at 1; default: 5)
- ERSHOUFANG_DELAY (per-worker delay in seconds, default: 2)
- ERSHOUFANG_DEDUPE_DETAILS (1/true/yes to skip duplicate listing URLs)
"""

from __future__ import annotations

import os
from typing import List, Optional

from pydantic import BaseModel, Field

from ershoufang.services.crawl.fetch import DEFAULT_USER_AGENT


class StageSettings(BaseModel):
    workers: int = Field(5, ge=1)
    delay: float = Field(2.0, ge=0)
    max_size: int = Field(1000, ge=1)


class CrawlSettings(BaseModel):
    base_url: str = "https://bj.lianjia.com"
    seed_path: str = "/ershoufang/"
    allowed_domains: List[str] = ["lianjia.com", "bj.lianjia.com"]
    output_path: str = "output/output.csv"
    timeout: float = Field(10.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT
    dedupe_details: bool = False

    # One entry per frontier, named after the URLs it holds.
    area: StageSettings = StageSettings(workers=1, delay=2.0, max_size=20)
    sub_area: StageSettings = StageSettings(workers=5, delay=2.0, max_size=300)
    page: StageSettings = StageSettings(workers=5, delay=2.0, max_size=5000)
    detail: StageSettings = StageSettings(workers=5, delay=2.0, max_size=100000)

    @property
    def seed_url(self) -> str:
        return self.base_url.rstrip("/") + self.seed_path

    def with_pacing(self, *, workers: Optional[int] = None, delay: Optional[float] = None) -> "CrawlSettings":
        """Copy with workers/delay applied to every stage (area keeps one worker)."""
        updates = {}
        for name in ("area", "sub_area", "page", "detail"):
            stage: StageSettings = getattr(self, name)
            changes = {}
            if workers is not None and name != "area":
                changes["workers"] = workers
            if delay is not None:
                changes["delay"] = delay
            updates[name] = StageSettings(**{**stage.model_dump(), **changes})
        return self.model_copy(update=updates)

    @classmethod
    def from_env(cls) -> "CrawlSettings":
        kwargs = {"dedupe_details": _env_bool("ERSHOUFANG_DEDUPE_DETAILS", False)}
        if os.getenv("ERSHOUFANG_BASE_URL"):
            kwargs["base_url"] = os.environ["ERSHOUFANG_BASE_URL"]
        if os.getenv("ERSHOUFANG_OUTPUT"):
            kwargs["output_path"] = os.environ["ERSHOUFANG_OUTPUT"]
        timeout = _env_float("ERSHOUFANG_TIMEOUT", None)
        if timeout is not None:
            kwargs["timeout"] = timeout
        settings = cls(**kwargs)
        workers = _env_int("ERSHOUFANG_WORKERS", None)
        delay = _env_float("ERSHOUFANG_DELAY", None)
        if workers is not None or delay is not None:
            settings = settings.with_pacing(workers=workers, delay=delay)
        return settings


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default
