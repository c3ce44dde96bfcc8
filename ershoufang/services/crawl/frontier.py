from __future__ import annotations

import logging
import queue
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from selectolax.parser import HTMLParser

from .base import CapacityExceeded, FetchError

logger = logging.getLogger(__name__)

Handler = Callable[[HTMLParser, str], None]
Fetch = Callable[[str], HTMLParser]

_STOP = object()


class Frontier:
    """Bounded work queue of URLs for one pipeline stage.

    ``run`` is the stage barrier: it drains the queue with a pool of worker
    threads and only returns once the queue is empty and every in-flight
    item has been handled.
    """

    def __init__(self, name: str, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.name = name
        self.max_size = int(max_size)
        self._queue: "queue.Queue" = queue.Queue(maxsize=self.max_size)

    @property
    def size(self) -> int:
        return self._queue.qsize()

    def enqueue(self, url: str) -> None:
        try:
            self._queue.put_nowait(url)
        except queue.Full:
            raise CapacityExceeded(f"{self.name} frontier is full ({self.max_size} items)") from None

    def run(
        self,
        workers: int,
        delay: float,
        handler: Handler,
        fetch: Fetch,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        logger.debug("Running %s frontier: %d items, %d workers, %.2fs delay", self.name, self.size, workers, delay)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"{self.name}-worker") as ex:
            futs = [ex.submit(self._worker, float(delay), handler, fetch, sleep) for _ in range(workers)]
            self._queue.join()
            for _ in futs:
                self._queue.put(_STOP)
            for f in futs:
                f.result()

    def _worker(self, delay: float, handler: Handler, fetch: Fetch, sleep: Callable[[float], None]) -> None:
        last_request: Optional[float] = None
        while True:
            item = self._queue.get()
            if item is _STOP:
                self._queue.task_done()
                return
            try:
                if delay > 0 and last_request is not None:
                    wait = delay - (time.monotonic() - last_request)
                    if wait > 0:
                        sleep(wait)
                last_request = time.monotonic()
                self._process(item, handler, fetch)
            finally:
                self._queue.task_done()

    def _process(self, url: str, handler: Handler, fetch: Fetch) -> None:
        logger.info("Visiting %s", url)
        try:
            doc = fetch(url)
        except FetchError as exc:
            logger.warning("Dropping %s: %s", url, exc)
            return
        except Exception:
            logger.exception("Fetch failed on %s; item dropped", url)
            return
        try:
            handler(doc, url)
        except Exception:
            logger.exception("Handler failed on %s; item dropped", url)
