"""Common utility functions."""

from __future__ import annotations

import random
import string
import time
from pathlib import Path
from typing import Any, Optional

import yaml


LETTERS = string.ascii_lowercase + string.ascii_uppercase


def random_string(length: int, rng: Optional[random.Random] = None) -> str:
    """Generate a random string of ASCII letters."""
    chooser = rng or random
    return "".join(chooser.choices(LETTERS, k=length))


def format_duration(seconds: float) -> str:
    """Format seconds to a short human-readable duration."""
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m {secs}s"


def load_yaml(path: str | Path) -> dict:
    """Load a YAML file."""
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def parse_yaml(text: str) -> Any:
    """Parse an inline YAML (or JSON) document."""
    return yaml.safe_load(text)


def ensure_dir(path: str | Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


class Timer:
    """Monotonic context manager for timing code blocks."""

    def __init__(self):
        self.start_time: float | None = None
        self.end_time: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.end_time = time.perf_counter()

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None:
            return 0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return end - self.start_time
