"""Baseline vs candidate comparison of two processed runs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import JtlConfigError
from .logging_config import get_logger
from .models import (
    COMPARISON_METRICS,
    DEFAULT_COMPARISON_METRICS,
    TOTAL_LABEL,
    ComparisonReport,
    EndpointStatistics,
    MetricDifference,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import ProcessedResult

logger = get_logger("compare")

# Metrics where a rise is an improvement; for everything else lower is better
HIGHER_IS_BETTER = frozenset({"throughput", "count"})


def calculate_difference(baseline: float, candidate: float) -> tuple[float, float]:
    """(absolute, percentage) change from baseline to candidate. Percentage is 0 for a zero baseline."""
    absolute = candidate - baseline
    percentage = 0.0 if baseline == 0 else absolute / baseline * 100
    return absolute, percentage


def verdict(metric: str, absolute_diff: float, significant: bool) -> str:
    if not significant or absolute_diff == 0:
        return ""
    improved = absolute_diff > 0 if metric in HIGHER_IS_BETTER else absolute_diff < 0
    return "better" if improved else "worse"


def compare_endpoint(
    label: str,
    baseline: EndpointStatistics,
    candidate: EndpointStatistics,
    metrics: Sequence[str],
    threshold_pct: float,
    is_total: bool = False,
) -> list[MetricDifference]:
    rows: list[MetricDifference] = []
    for metric in metrics:
        b = baseline.metric(metric)
        c = candidate.metric(metric)
        absolute, percentage = calculate_difference(b, c)
        significant = abs(percentage) >= threshold_pct
        rows.append(
            MetricDifference(
                label=label,
                metric=metric,
                baseline=b,
                candidate=c,
                absolute_diff=absolute,
                percentage_diff=percentage,
                significant=significant,
                verdict=verdict(metric, absolute, significant),
                is_total=is_total,
            )
        )
    return rows


def compare_results(
    baseline: ProcessedResult,
    candidate: ProcessedResult,
    metrics: Sequence[str] = DEFAULT_COMPARISON_METRICS,
    threshold_pct: float = 5.0,
    baseline_name: str = "baseline",
    candidate_name: str = "candidate",
) -> ComparisonReport:
    """Compare the Total row and every label of two runs.

    Labels come from both runs, sorted alphabetically; a label missing from
    one run compares against zeros.
    """
    unknown = [m for m in metrics if m not in COMPARISON_METRICS]
    if unknown:
        raise JtlConfigError(f"Unknown comparison metric(s): {', '.join(unknown)}")

    rows = compare_endpoint(
        TOTAL_LABEL,
        baseline.statistics.total,
        candidate.statistics.total,
        metrics,
        threshold_pct,
        is_total=True,
    )
    b_labels = baseline.statistics.by_label
    c_labels = candidate.statistics.by_label
    empty = EndpointStatistics()
    for label in sorted(set(b_labels) | set(c_labels)):
        rows.extend(
            compare_endpoint(
                label,
                b_labels.get(label, empty),
                c_labels.get(label, empty),
                metrics,
                threshold_pct,
            )
        )

    report = ComparisonReport(
        baseline_name=baseline_name,
        candidate_name=candidate_name,
        threshold_pct=threshold_pct,
        rows=rows,
        baseline_version=baseline.jmeter_version,
        candidate_version=candidate.jmeter_version,
    )
    logger.debug(
        "Compared %s vs %s: %d rows, %d significant",
        baseline_name, candidate_name, len(rows), len(report.only_significant()),
    )
    return report
