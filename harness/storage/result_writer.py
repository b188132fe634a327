"""JSON Lines output of test results."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import IO

from common.models.results import ResultEntry
from common.utils import ensure_dir

logger = logging.getLogger(__name__)

STDOUT = "-"


def open_output(path: str | Path) -> IO[str]:
    """Open the result destination; '-' is standard output."""
    if str(path) == STDOUT:
        return sys.stdout
    path = Path(path)
    ensure_dir(path.parent)
    return open(path, "w", encoding="utf-8")


class ResultWriter:
    """Write one self-contained JSON record per line."""

    def __init__(self, stream: IO[str]):
        self.stream = stream
        self.count = 0
        self._lock = threading.Lock()

    def write(self, entry: ResultEntry) -> None:
        with self._lock:
            self.stream.write(entry.to_json_line() + "\n")
            self.stream.flush()
            self.count += 1
        logger.debug(f"Wrote result for {entry.name}")

    def close(self) -> None:
        if self.stream is not sys.stdout:
            self.stream.close()

    def __enter__(self) -> "ResultWriter":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def read_results(path: str | Path) -> list[ResultEntry]:
    """Read a JSON Lines result file."""
    results = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                results.append(ResultEntry.from_json_line(line))
    return results
