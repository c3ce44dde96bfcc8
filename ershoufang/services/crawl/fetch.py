from __future__ import annotations

import logging
import urllib.parse
from typing import Dict, Iterable, Optional

import httpx
from selectolax.parser import HTMLParser

from .base import FetchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def domain_allowed(url: str, allowed_domains: Iterable[str]) -> bool:
    host = (urllib.parse.urlsplit(url).hostname or "").lower()
    return any(host == d.lower() for d in allowed_domains)


class Fetcher:
    """Thread-safe HTML fetcher on top of one shared httpx.Client.

    Redirects are followed; non-2xx responses, transport errors and URLs
    outside ``allowed_domains`` all raise FetchError.
    """

    def __init__(
        self,
        *,
        allowed_domains: Optional[Iterable[str]] = None,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.allowed_domains = list(allowed_domains or [])
        self.headers = headers or {"User-Agent": DEFAULT_USER_AGENT}
        self._client = client or httpx.Client(timeout=float(timeout), headers=self.headers, follow_redirects=True)

    def __call__(self, url: str) -> HTMLParser:
        return self.fetch(url)

    def fetch(self, url: str) -> HTMLParser:
        if self.allowed_domains and not domain_allowed(url, self.allowed_domains):
            raise FetchError(f"domain not allowed: {url}")
        try:
            r = self._client.get(url)
            r.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(f"HTTP {exc.response.status_code} for {url}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(f"{type(exc).__name__} for {url}: {exc}") from exc
        if str(r.url) != url:
            logger.debug("Redirected %s -> %s", url, r.url)
        return HTMLParser(r.text)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
