"""Data models for the JTL ingestion and metrics engine.

All result types are created fresh per pipeline run and carry a ``to_dict``
that yields the camelCase shape consumers (exports, dashboards) rely on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# JTL header names, in the order JMeter writes them
COL_TIMESTAMP = "timeStamp"
COL_ELAPSED = "elapsed"
COL_LABEL = "label"
COL_RESPONSE_CODE = "responseCode"
COL_RESPONSE_MESSAGE = "responseMessage"
COL_THREAD_NAME = "threadName"
COL_DATA_TYPE = "dataType"
COL_SUCCESS = "success"
COL_FAILURE_MESSAGE = "failureMessage"
COL_BYTES = "bytes"
COL_SENT_BYTES = "sentBytes"
COL_GRP_THREADS = "grpThreads"
COL_ALL_THREADS = "allThreads"
COL_URL = "URL"
COL_LATENCY = "Latency"
COL_IDLE_TIME = "IdleTime"
COL_CONNECT = "Connect"

KNOWN_COLUMNS: tuple[str, ...] = (
    COL_TIMESTAMP,
    COL_ELAPSED,
    COL_LABEL,
    COL_RESPONSE_CODE,
    COL_RESPONSE_MESSAGE,
    COL_THREAD_NAME,
    COL_DATA_TYPE,
    COL_SUCCESS,
    COL_FAILURE_MESSAGE,
    COL_BYTES,
    COL_SENT_BYTES,
    COL_GRP_THREADS,
    COL_ALL_THREADS,
    COL_URL,
    COL_LATENCY,
    COL_IDLE_TIME,
    COL_CONNECT,
)

# Column name -> Record attribute
COLUMN_FIELDS: dict[str, str] = {
    COL_TIMESTAMP: "timestamp",
    COL_ELAPSED: "elapsed_ms",
    COL_LABEL: "label",
    COL_RESPONSE_CODE: "response_code",
    COL_RESPONSE_MESSAGE: "response_message",
    COL_THREAD_NAME: "thread_name",
    COL_DATA_TYPE: "data_type",
    COL_SUCCESS: "success",
    COL_FAILURE_MESSAGE: "failure_message",
    COL_BYTES: "bytes_received",
    COL_SENT_BYTES: "bytes_sent",
    COL_GRP_THREADS: "group_threads",
    COL_ALL_THREADS: "all_threads",
    COL_URL: "url",
    COL_LATENCY: "latency_ms",
    COL_IDLE_TIME: "idle_time_ms",
    COL_CONNECT: "connect_ms",
}

NUMERIC_COLUMNS = frozenset(
    {
        COL_TIMESTAMP,
        COL_ELAPSED,
        COL_BYTES,
        COL_SENT_BYTES,
        COL_GRP_THREADS,
        COL_ALL_THREADS,
        COL_LATENCY,
        COL_IDLE_TIME,
        COL_CONNECT,
    }
)

TOTAL_LABEL = "Total"
DEFAULT_TOLERATION_MS = 500
DEFAULT_FRUSTRATION_MS = 1500


@dataclass(frozen=True, slots=True)
class Record:
    """One parsed JTL sample.

    Fields whose column was missing from the file header keep their default;
    ``columns`` lists the header columns that were actually present.
    """

    timestamp: int = 0
    elapsed_ms: int = 0
    label: str = ""
    response_code: str = ""
    response_message: str = ""
    thread_name: str = ""
    data_type: str = ""
    success: bool = False
    failure_message: str = ""
    bytes_received: int = 0
    bytes_sent: int = 0
    group_threads: int = 0
    all_threads: int = 0
    url: str = ""
    latency_ms: int = 0
    idle_time_ms: int = 0
    connect_ms: int = 0
    columns: frozenset[str] = field(default=frozenset(), repr=False, compare=False)

    def has(self, column: str) -> bool:
        """True if the source header carried ``column`` (JTL header name)."""
        return column in self.columns

    def to_dict(self) -> dict[str, Any]:
        """Only the columns present in the source file, keyed by JTL header name."""
        return {col: getattr(self, COLUMN_FIELDS[col]) for col in KNOWN_COLUMNS if col in self.columns}


@dataclass(frozen=True, slots=True)
class EndpointStatistics:
    """Summary of one label (or of every record, for the Total row)."""

    count: int = 0
    failures: int = 0
    error_percentage: float = 0.0
    min: float = 0.0
    max: float = 0.0
    average: float = 0.0
    median: float = 0.0
    percentile90: float = 0.0
    percentile95: float = 0.0
    percentile99: float = 0.0
    throughput: float = 0.0

    def metric(self, name: str) -> float:
        """Look up a metric by its camelCase export name (``errorPercentage``) or attribute name."""
        attr = METRIC_ATTRIBUTES.get(name, name)
        if attr not in ENDPOINT_METRIC_ATTRIBUTES:
            raise KeyError(name)
        return float(getattr(self, attr))

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "failures": self.failures,
            "errorPercentage": self.error_percentage,
            "min": self.min,
            "max": self.max,
            "average": self.average,
            "median": self.median,
            "percentile90": self.percentile90,
            "percentile95": self.percentile95,
            "percentile99": self.percentile99,
            "throughput": self.throughput,
        }


ENDPOINT_METRIC_ATTRIBUTES = frozenset(EndpointStatistics.__dataclass_fields__)
METRIC_ATTRIBUTES: dict[str, str] = {"errorPercentage": "error_percentage"}


@dataclass(frozen=True, slots=True)
class Statistics:
    """Global and per-label statistics for one file."""

    total: EndpointStatistics = field(default_factory=EndpointStatistics)
    received_kb_per_sec: float = 0.0
    sent_kb_per_sec: float = 0.0
    duration_seconds: float = 0.0
    by_label: dict[str, EndpointStatistics] = field(default_factory=dict)

    @property
    def total_samples(self) -> int:
        return self.total.count

    @property
    def failures(self) -> int:
        return self.total.failures

    @property
    def error_percentage(self) -> float:
        return self.total.error_percentage

    @property
    def throughput(self) -> float:
        return self.total.throughput

    def to_dict(self) -> dict[str, Any]:
        t = self.total
        return {
            "totalSamples": t.count,
            "failures": t.failures,
            "errorPercentage": t.error_percentage,
            "avgResponseTime": t.average,
            "minResponseTime": t.min,
            "maxResponseTime": t.max,
            "medianResponseTime": t.median,
            "percentile90": t.percentile90,
            "percentile95": t.percentile95,
            "percentile99": t.percentile99,
            "throughput": t.throughput,
            "receivedKBPerSec": self.received_kb_per_sec,
            "sentKBPerSec": self.sent_kb_per_sec,
            "byLabel": {label: s.to_dict() for label, s in self.by_label.items()},
        }


class ApdexRating(str, Enum):
    """Banding of an APDEX score."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    UNACCEPTABLE = "Unacceptable"


@dataclass(frozen=True, slots=True)
class ApdexThresholds:
    """Toleration / frustration cutoffs in milliseconds."""

    toleration: int = DEFAULT_TOLERATION_MS
    frustration: int = DEFAULT_FRUSTRATION_MS

    def to_dict(self) -> dict[str, int]:
        return {"toleration": self.toleration, "frustration": self.frustration}


@dataclass(frozen=True, slots=True)
class ApdexResult:
    satisfied: int
    tolerated: int
    frustrated: int
    score: float
    rating: ApdexRating

    @property
    def total(self) -> int:
        return self.satisfied + self.tolerated + self.frustrated

    def to_dict(self) -> dict[str, Any]:
        return {
            "satisfied": self.satisfied,
            "tolerated": self.tolerated,
            "frustrated": self.frustrated,
            "score": self.score,
            "rating": self.rating.value,
        }


@dataclass(frozen=True, slots=True)
class TimeSeriesBucket:
    """One fixed-width window of samples."""

    start_ms: int
    count: int
    errors: int
    avg_response_time: float
    throughput: float
    error_rate: float
    time_label: str


@dataclass(frozen=True, slots=True)
class TimeSeriesSummary:
    total_requests: int = 0
    avg_response_time: float = 0.0
    error_rate: float = 0.0
    throughput: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRequests": self.total_requests,
            "avgResponseTime": self.avg_response_time,
            "errorRate": self.error_rate,
            "throughput": self.throughput,
        }


@dataclass(frozen=True, slots=True)
class TimeSeries:
    summary: TimeSeriesSummary
    buckets: list[TimeSeriesBucket] = field(default_factory=list)
    interval_ms: int = 5000

    @property
    def time_labels(self) -> list[str]:
        return [b.time_label for b in self.buckets]

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "intervalMs": self.interval_ms,
            "timeLabels": self.time_labels,
            "bucketStarts": [b.start_ms for b in self.buckets],
            "datasets": [
                {"label": "Response Time (ms)", "values": [b.avg_response_time for b in self.buckets]},
                {"label": "Throughput (req/sec)", "values": [b.throughput for b in self.buckets]},
                {"label": "Error Rate (%)", "values": [b.error_rate for b in self.buckets]},
            ],
        }


@dataclass(frozen=True, slots=True)
class ProcessedResult:
    """Everything the pipeline produces for one file."""

    records: list[Record]
    statistics: Statistics
    apdex_by_label: dict[str, ApdexResult]
    time_series: TimeSeries
    jmeter_version: str | None = None
    thresholds: ApdexThresholds = field(default_factory=ApdexThresholds)

    def to_dict(self, include_records: bool = False) -> dict[str, Any]:
        out: dict[str, Any] = {
            "jmeterVersion": self.jmeter_version,
            "apdexThresholds": self.thresholds.to_dict(),
            "statistics": self.statistics.to_dict(),
            "apdexByLabel": {label: a.to_dict() for label, a in self.apdex_by_label.items()},
            "timeSeries": self.time_series.to_dict(),
        }
        if include_records:
            out["records"] = [r.to_dict() for r in self.records]
        return out


# --- Comparison and configuration ---

class DiffMode(str, Enum):
    """How a difference between two runs is displayed."""

    ABSOLUTE = "absolute"
    PERCENTAGE = "percentage"
    HYBRID = "hybrid"  # absolute with percentage in parentheses


# Metrics offered for comparison, keyed by export name
COMPARISON_METRICS: dict[str, str] = {
    "average": "Average (ms)",
    "median": "Median (ms)",
    "min": "Min (ms)",
    "max": "Max (ms)",
    "percentile90": "90th Percentile (ms)",
    "percentile95": "95th Percentile (ms)",
    "percentile99": "99th Percentile (ms)",
    "throughput": "Throughput (req/s)",
    "errorPercentage": "Error Rate (%)",
    "count": "Sample Count",
}
DEFAULT_COMPARISON_METRICS: tuple[str, ...] = (
    "average",
    "median",
    "percentile90",
    "percentile95",
    "percentile99",
    "throughput",
    "errorPercentage",
)


@dataclass(frozen=True, slots=True)
class MetricDifference:
    """One metric of one label, baseline vs candidate."""

    label: str
    metric: str
    baseline: float
    candidate: float
    absolute_diff: float
    percentage_diff: float
    significant: bool
    verdict: str = ""  # "better" | "worse" | "" when not significant
    is_total: bool = False

    def display(self, mode: DiffMode = DiffMode.HYBRID) -> str:
        if mode == DiffMode.ABSOLUTE:
            return f"{self.absolute_diff:.2f}"
        if mode == DiffMode.PERCENTAGE:
            return f"{self.percentage_diff:.2f}%"
        return f"{self.absolute_diff:.2f} ({self.percentage_diff:.2f}%)"

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "metric": self.metric,
            "baseline": self.baseline,
            "candidate": self.candidate,
            "absoluteDiff": self.absolute_diff,
            "percentageDiff": self.percentage_diff,
            "significant": self.significant,
            "verdict": self.verdict,
            "isTotal": self.is_total,
        }


@dataclass(frozen=True, slots=True)
class ComparisonReport:
    baseline_name: str
    candidate_name: str
    threshold_pct: float
    rows: list[MetricDifference] = field(default_factory=list)
    baseline_version: str | None = None
    candidate_version: str | None = None

    @property
    def labels(self) -> list[str]:
        return list(dict.fromkeys(r.label for r in self.rows))

    def only_significant(self) -> list[MetricDifference]:
        return [r for r in self.rows if r.significant]

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseline": self.baseline_name,
            "candidate": self.candidate_name,
            "baselineVersion": self.baseline_version,
            "candidateVersion": self.candidate_version,
            "thresholdPct": self.threshold_pct,
            "rows": [r.to_dict() for r in self.rows],
        }


@dataclass(slots=True)
class ComparisonSettings:
    diff_mode: DiffMode = DiffMode.HYBRID
    threshold_pct: float = 5.0
    metrics: tuple[str, ...] = DEFAULT_COMPARISON_METRICS


@dataclass(slots=True)
class UploadSettings:
    """Limits enforced before a file reaches the parser."""

    max_file_size_mb: float = 50.0
    extensions: tuple[str, ...] = ("jtl", "csv")

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration from YAML and CLI flags."""

    thresholds: ApdexThresholds = field(default_factory=ApdexThresholds)
    comparison: ComparisonSettings = field(default_factory=ComparisonSettings)
    upload: UploadSettings = field(default_factory=UploadSettings)
    strict_numeric: bool = False
