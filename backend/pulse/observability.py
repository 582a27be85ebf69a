"""
Market Pulse — Observability

Timing spans for engine entry points. Spans are local only: each one emits
structlog debug events on entry/exit and a warning when a call runs longer
than ``Settings.slow_span_threshold_s``.

Usage:
    with trace_span("pattern_engine.detect", tags=["patterns"]):
        patterns = engine.detect_candlestick_patterns(bars)
"""

from __future__ import annotations

import functools
import time
from contextlib import contextmanager
from typing import Any, Callable, Optional

import structlog

from pulse.config import get_settings

logger = structlog.get_logger(__name__)


@contextmanager
def trace_span(
    name: str,
    metadata: Optional[dict] = None,
    tags: Optional[list[str]] = None,
):
    """Context manager that times a block of engine code.

    Args:
        name: Name of the span (e.g., "divergence_engine.detect_divergences").
        metadata: Optional key/value context attached to every event.
        tags: Optional tags for filtering log output.
    """
    start = time.perf_counter()
    extra = {"span_name": name, **(metadata or {})}
    if tags:
        extra["tags"] = tags

    logger.debug("trace_span_start", **extra)
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("trace_span_end", elapsed_ms=round(elapsed * 1000, 2), **extra)
        if elapsed > get_settings().slow_span_threshold_s:
            logger.warning("trace_span_slow", elapsed_s=round(elapsed, 2), **extra)


def traced(
    name: Optional[str] = None,
    tags: Optional[list[str]] = None,
):
    """Decorator to time a function as a span.

    Usage:
        @traced("treemap_engine.layout", tags=["treemap"])
        def layout(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        span_name = name or f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with trace_span(span_name, tags=tags):
                return func(*args, **kwargs)

        return wrapper

    return decorator
