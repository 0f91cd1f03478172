"""StatsD timers for requests, endpoints and object-store calls.

Timers go out over UDP in the DogStatsD format, which the CloudWatch
agent accepts. Every metric carries ``application`` and ``environment``
tags. Sending is fire-and-forget: a missing agent never affects a request.

Metric names:
- http.request: every request (method, uri, status)
- api.<resource>.<action>: each named endpoint (status)
- s3.call: each S3 operation (operation, outcome)
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager

from datadog.dogstatsd import DogStatsd

from catalog_api.core.config import settings

_statsd: DogStatsd | None = None


def get_statsd() -> DogStatsd:
    """Get or create the StatsD client singleton with the common tags."""
    global _statsd

    if _statsd is None:
        _statsd = DogStatsd(
            host=settings.statsd_host,
            port=settings.statsd_port,
            constant_tags=[
                f"application:{settings.app_name}",
                f"environment:{settings.environment}",
            ],
            disable_telemetry=True,
        )
    return _statsd


def record_timing(metric: str, duration_ms: float, **tags: object) -> None:
    """Send one timer sample, unless metrics are disabled.

    Args:
        metric: Metric name, e.g. "http.request".
        duration_ms: Elapsed time in milliseconds.
        **tags: Extra tags, rendered as ``key:value``.
    """
    if not settings.metrics_enabled:
        return
    get_statsd().timing(
        metric,
        duration_ms,
        tags=[f"{key}:{value}" for key, value in tags.items()],
    )


@contextmanager
def timed(metric: str, **tags: object) -> Iterator[dict[str, object]]:
    """Time a block and record it on exit, even when it raises.

    Yields the tag dict so the block can set tags it only learns while
    running (e.g. ``outcome``).
    """
    block_tags = dict(tags)
    started = time.perf_counter()
    try:
        yield block_tags
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        record_timing(metric, elapsed_ms, **block_tags)
