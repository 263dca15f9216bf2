"""Fixed-window time series for charts (response time, throughput, error rate)."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from .models import Statistics, TimeSeries, TimeSeriesBucket, TimeSeriesSummary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import Record

# Window width in milliseconds
BUCKET_INTERVAL_MS = 5000


def bucket_start(timestamp_ms: int, interval_ms: int = BUCKET_INTERVAL_MS) -> int:
    return (timestamp_ms // interval_ms) * interval_ms


def _time_label(start_ms: int) -> str:
    """HH:MM:SS (UTC) for a bucket start; the raw millisecond value when it is outside datetime range."""
    try:
        return datetime.fromtimestamp(start_ms / 1000, tz=timezone.utc).strftime("%H:%M:%S")
    except (OverflowError, ValueError, OSError):
        return str(start_ms)


def bucket_time_series(
    records: Sequence[Record],
    statistics: Statistics,
    interval_ms: int = BUCKET_INTERVAL_MS,
) -> TimeSeries:
    """Group records into ``interval_ms`` windows, ordered by window start.

    Windows with no samples are not emitted.
    """
    # bucket start -> [count, errors, sum elapsed]
    buckets: dict[int, list[int]] = defaultdict(lambda: [0, 0, 0])
    for r in records:
        acc = buckets[bucket_start(r.timestamp, interval_ms)]
        acc[0] += 1
        if not r.success:
            acc[1] += 1
        acc[2] += r.elapsed_ms

    window_sec = interval_ms / 1000
    series: list[TimeSeriesBucket] = []
    for start in sorted(buckets):
        count, errors, sum_elapsed = buckets[start]
        series.append(
            TimeSeriesBucket(
                start_ms=start,
                count=count,
                errors=errors,
                avg_response_time=sum_elapsed / count,
                throughput=count / window_sec,
                error_rate=errors / count * 100,
                time_label=_time_label(start),
            )
        )

    summary = TimeSeriesSummary(
        total_requests=statistics.total_samples,
        avg_response_time=statistics.total.average,
        error_rate=statistics.error_percentage,
        throughput=statistics.throughput,
    )
    return TimeSeries(summary=summary, buckets=series, interval_ms=interval_ms)
