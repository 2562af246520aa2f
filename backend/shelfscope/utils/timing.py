"""Timing helpers for the report pipeline's debug logs."""
import time
from contextlib import contextmanager
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


def now_ms() -> float:
    """Current time in milliseconds from the high-resolution timer."""
    return time.perf_counter() * 1000


@contextmanager
def time_operation(label: str, log_fn: Optional[Callable[[str], None]] = None, min_ms: float = 0.0):
    """
    Log how long the wrapped block took, if it took at least `min_ms`.

    Example:
        with time_operation("[REPORT] derive sections"):
            dna = reading_dna(preferences, vector)
    """
    start = now_ms()
    try:
        yield
    finally:
        elapsed = now_ms() - start
        if elapsed >= min_ms:
            (log_fn or logger.debug)(f"{label}: {elapsed:.2f}ms")


def log_elapsed(start_ms: float, label: str, log_fn: Optional[Callable[[str], None]] = None) -> float:
    """Log time since `start_ms` and return the current time, so steps can be chained."""
    elapsed = now_ms() - start_ms
    (log_fn or logger.debug)(f"{label}: {elapsed:.2f}ms")
    return now_ms()
