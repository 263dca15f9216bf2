"""Statistics aggregation over parsed JTL records.

Percentiles use nearest rank on the sorted elapsed times, not interpolation,
so results match the values a reader sees in the raw data.
Throughput for every label is measured against the duration of the whole file.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import TYPE_CHECKING

from .logging_config import get_logger
from .models import EndpointStatistics, Record, Statistics

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = get_logger("metrics")

# Used when all samples share one timestamp, to keep throughput finite
MIN_DURATION_SEC = 1.0
BYTES_PER_KB = 1024


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile of an ascending sequence. 0.0 when empty."""
    n = len(sorted_values)
    if n == 0:
        return 0.0
    index = math.ceil((p / 100) * n) - 1
    return float(sorted_values[max(0, min(index, n - 1))])


def duration_seconds(records: Sequence[Record]) -> float:
    """Span between first and last timestamp in seconds; 1.0 if the span is zero."""
    if not records:
        return 0.0
    timestamps = [r.timestamp for r in records]
    span = (max(timestamps) - min(timestamps)) / 1000
    return span or MIN_DURATION_SEC


def summarize(records: Sequence[Record], duration_sec: float) -> EndpointStatistics:
    """Statistics for one group of records (a label, or all of them)."""
    count = len(records)
    if count == 0:
        return EndpointStatistics()
    failures = sum(1 for r in records if not r.success)
    times = sorted(r.elapsed_ms for r in records)
    return EndpointStatistics(
        count=count,
        failures=failures,
        error_percentage=failures / count * 100,
        min=float(times[0]),
        max=float(times[-1]),
        average=sum(times) / count,
        median=percentile(times, 50),
        percentile90=percentile(times, 90),
        percentile95=percentile(times, 95),
        percentile99=percentile(times, 99),
        throughput=count / duration_sec,
    )


def group_by_label(records: Sequence[Record]) -> dict[str, list[Record]]:
    """Partition records by label, labels in order of first appearance."""
    groups: dict[str, list[Record]] = defaultdict(list)
    for r in records:
        groups[r.label].append(r)
    return dict(groups)


def aggregate(records: Sequence[Record]) -> Statistics:
    """Global and per-label statistics. Empty input gives an all-zero Statistics."""
    if not records:
        return Statistics()

    duration = duration_seconds(records)
    total = summarize(records, duration)

    received = sum(r.bytes_received for r in records)
    sent = sum(r.bytes_sent for r in records)

    by_label = {
        label: summarize(group, duration)
        for label, group in group_by_label(records).items()
    }
    logger.debug(
        "Aggregated %d samples across %d labels over %.3fs",
        total.count, len(by_label), duration,
    )
    return Statistics(
        total=total,
        received_kb_per_sec=received / BYTES_PER_KB / duration,
        sent_kb_per_sec=sent / BYTES_PER_KB / duration,
        duration_seconds=duration,
        by_label=by_label,
    )
