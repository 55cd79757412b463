"""
Profiling utilities for the sales search service.

Measures a block of code so each dispatched query can be logged with:
- Wall-clock time (perf_counter)
- Resident memory before/after the block and the growth between them (psutil)
- CPU usage of the process during the block (psutil)

Usage example:
    from sales_search.utils.profiler import profile_block

    with profile_block("search:csv") as stats:
        backend.search(criteria)

    print(stats.duration_seconds, stats.rss_delta_bytes)
"""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for profiling measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    rss_start_bytes: Optional[int] = field(default=None)
    rss_end_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def rss_delta_bytes(self) -> Optional[int]:
        if self.rss_start_bytes is None or self.rss_end_bytes is None:
            return None
        return self.rss_end_bytes - self.rss_start_bytes

    def as_log_extra(self) -> Dict[str, Any]:
        """Flatten the measurements for `log.info(..., extra=...)`."""
        return {
            "profile": self.label,
            "duration_seconds": round(self.duration_seconds, 4),
            "rss_delta_bytes": self.rss_delta_bytes,
            "cpu_percent": self.cpu_percent,
            **self.extra,
        }


@contextlib.contextmanager
def profile_block(label: str) -> Generator[ProfileStats, None, None]:
    """
    Context manager to profile a block of code.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.

    Notes
    -----
    Measurements are recorded even when the block raises, so failures can be
    logged with their cost.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()

    # CPU percent needs a priming call
    process.cpu_percent(interval=None)
    stats.rss_start_bytes = process.memory_info().rss

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        stats.rss_end_bytes = process.memory_info().rss
        stats.cpu_percent = process.cpu_percent(interval=None)


__all__ = ["ProfileStats", "profile_block"]
