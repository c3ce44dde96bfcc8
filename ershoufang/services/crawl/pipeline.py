from __future__ import annotations

import csv
import logging
import os
import threading
from typing import Set

from ershoufang.models.house import COLUMNS, House

logger = logging.getLogger(__name__)


def ensure_dir(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)


class DedupeStore:
    """Set of already-enqueued keys with an atomic test-and-insert."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()
        self._lock = threading.Lock()

    def seen_and_mark(self, key: str) -> bool:
        """Insert key if absent. Returns True when the key was newly inserted."""
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


class CsvSink:
    """Append-only CSV writer for House rows.

    The file starts with a UTF-8 BOM (via the utf-8-sig codec) so spreadsheet
    tools pick the right encoding, followed by the fixed header row. Rows are
    written under a lock; concurrent writers never interleave.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        ensure_dir(os.path.dirname(os.path.abspath(path)))
        self._file = open(path, "w", encoding="utf-8-sig", newline="")
        self._writer = csv.writer(self._file)
        self._lock = threading.Lock()
        self.rows = 0
        self._writer.writerow(COLUMNS)
        self._file.flush()
        logger.info("Writing houses to %s", path)

    def write(self, house: House) -> None:
        row = house.to_row()
        with self._lock:
            self._writer.writerow(row)
            self._file.flush()
            self.rows += 1

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()

    def __enter__(self) -> "CsvSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
