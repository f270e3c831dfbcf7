"""Context manager for webhook latency instrumentation."""

from __future__ import annotations

import contextlib
import time
from collections.abc import Generator

from prometheus_client import Histogram

from note_tweet_connector.observability.logging import get_logger

logger = get_logger(__name__)


@contextlib.contextmanager
def timed(component: str, histogram: Histogram | None = None) -> Generator[None, None, None]:
    """Measure and log elapsed time for a relay component.

    Usage:
        with timed("misskey", metrics.webhook_request_duration):
            await relay.handle(body)

    When a labelled histogram is given, the component name is used as its
    `source` label. Elapsed time is recorded even if the block raises.
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if histogram is not None:
            histogram.labels(source=component).observe(elapsed)
        logger.debug(
            "component_latency",
            extra={
                "component": component,
                "elapsed_ms": round(elapsed * 1000, 2),
            },
        )
