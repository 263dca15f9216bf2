"""Unit tests for time-series bucketing."""

from __future__ import annotations

import pytest

from jtlcompare.metrics import aggregate
from jtlcompare.timeseries import BUCKET_INTERVAL_MS, bucket_start, bucket_time_series

T0 = 1_700_000_000_000


def test_bucket_start() -> None:
    assert bucket_start(T0) == T0
    assert bucket_start(T0 + 4999) == T0
    assert bucket_start(T0 + 5000) == T0 + 5000
    assert BUCKET_INTERVAL_MS == 5000


def test_twelve_seconds_gives_three_ordered_buckets(make_record) -> None:
    records = [
        make_record(400, ts=T0 + 11000),
        make_record(100, ts=T0 + 1000),
        make_record(300, ts=T0 + 6000, success=False),
        make_record(200, ts=T0 + 12000),
        make_record(300, ts=T0),
    ]
    series = bucket_time_series(records, aggregate(records))
    assert [b.start_ms for b in series.buckets] == [T0, T0 + 5000, T0 + 10000]
    first, second, third = series.buckets
    assert first.count == 2
    assert first.avg_response_time == 200
    assert first.throughput == pytest.approx(0.4)
    assert first.error_rate == 0
    assert second.errors == 1
    assert second.error_rate == 100
    assert third.count == 2
    assert third.avg_response_time == 300
    assert series.time_labels == ["22:13:20", "22:13:25", "22:13:30"]


def test_numeric_not_lexical_ordering(make_record) -> None:
    # 99995000 sorts after 100000000 as a string
    records = [make_record(1, ts=100_000_000), make_record(1, ts=99_995_000)]
    series = bucket_time_series(records, aggregate(records))
    assert [b.start_ms for b in series.buckets] == [99_995_000, 100_000_000]


def test_summary_repeats_global_statistics(make_record) -> None:
    records = [make_record(100, ts=T0), make_record(300, ts=T0 + 2000, success=False)]
    stats = aggregate(records)
    summary = bucket_time_series(records, stats).summary
    assert summary.total_requests == 2
    assert summary.avg_response_time == 200
    assert summary.error_rate == 50
    assert summary.throughput == stats.throughput


def test_empty_records() -> None:
    series = bucket_time_series([], aggregate([]))
    assert series.buckets == []
    assert series.summary.total_requests == 0


def test_to_dict_datasets(make_record) -> None:
    records = [make_record(100, ts=T0)]
    d = bucket_time_series(records, aggregate(records)).to_dict()
    assert d["timeLabels"] == ["22:13:20"]
    assert [ds["label"] for ds in d["datasets"]] == [
        "Response Time (ms)", "Throughput (req/sec)", "Error Rate (%)",
    ]
    assert d["datasets"][1]["values"] == [0.2]
    assert d["summary"]["totalRequests"] == 1


def test_out_of_range_timestamp_keeps_raw_label(make_record) -> None:
    records = [make_record(10, ts=99_999_999_999_999_999)]
    series = bucket_time_series(records, aggregate(records))
    assert series.buckets[0].time_label == str(series.buckets[0].start_ms)
