"""Timing helpers for lightweight observability."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager


@contextmanager
def time_block(
    name: str, *, logger: logging.Logger | None = None, level: int = logging.INFO
) -> Iterator[None]:
    log = logger or logging.getLogger(__name__)
    start = time.perf_counter()
    try:
        yield
    finally:
        dur_s = time.perf_counter() - start
        log.log(level, "%s took %s", name, format_duration(dur_s), extra={"event": "timing"})


def format_duration(seconds: float) -> str:
    """Human readable duration: ``1h 2m 3s``, ``2m 3s`` or ``3s``."""
    total = int(seconds) if seconds > 0 else 0
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
