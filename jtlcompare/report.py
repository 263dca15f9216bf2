"""Exports of processed runs: JSON (orjson), CSV tables, and a single-file HTML report (Jinja2)."""

from __future__ import annotations

import csv
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from jinja2 import Environment, PackageLoader, select_autoescape

from . import __version__ as jtlcompare_version
from .logging_config import get_logger
from .models import COMPARISON_METRICS, TOTAL_LABEL, DiffMode

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .models import ApdexThresholds, ComparisonReport, ProcessedResult

logger = get_logger("report")

HTML_TEMPLATE = "report.html.j2"

STATISTICS_CSV_HEADER = [
    "File", "Label", "Count", "Error %", "Average (ms)", "Median (ms)",
    "90% Line (ms)", "95% Line (ms)", "99% Line (ms)", "Min (ms)", "Max (ms)",
    "Throughput (/sec)",
]
APDEX_CSV_HEADER = [
    "File", "Label", "Satisfied Count", "Tolerated Count", "Frustrated Count",
    "APDEX Score", "Rating",
]
RECORDS_CSV_HEADER = [
    "File", "Timestamp", "Label", "Elapsed Time (ms)", "Success", "ResponseCode",
    "ResponseMessage", "ThreadName", "DataType",
]


def _prepare(path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    return out


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def generate_json_report(
    output_path: str | Path,
    results: Mapping[str, ProcessedResult],
    comparisons: Sequence[ComparisonReport] = (),
    include_records: bool = False,
) -> Path:
    """Write every processed file and comparison as indented JSON."""
    payload: dict[str, Any] = {
        "generator": f"jtlcompare {jtlcompare_version}",
        "generated_at": _now_iso(),
        "files": {name: r.to_dict(include_records=include_records) for name, r in results.items()},
        "comparisons": [c.to_dict() for c in comparisons],
    }
    out = _prepare(output_path)
    out.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
    logger.info("JSON report written to %s", out)
    return out


def write_statistics_csv(output_path: str | Path, results: Mapping[str, ProcessedResult]) -> Path:
    """Per-label statistics of every file, Total row first."""
    out = _prepare(output_path)
    with out.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(STATISTICS_CSV_HEADER)
        for name, result in results.items():
            rows = [(TOTAL_LABEL, result.statistics.total), *result.statistics.by_label.items()]
            for label, s in rows:
                w.writerow([
                    name, label, s.count,
                    f"{s.error_percentage:.2f}", f"{s.average:.2f}", f"{s.median:.2f}",
                    f"{s.percentile90:.2f}", f"{s.percentile95:.2f}", f"{s.percentile99:.2f}",
                    f"{s.min:g}", f"{s.max:g}", f"{s.throughput:.2f}",
                ])
    return out


def write_apdex_csv(
    output_path: str | Path,
    results: Mapping[str, ProcessedResult],
    thresholds: ApdexThresholds,
) -> Path:
    """APDEX per label; the first line records the thresholds used."""
    out = _prepare(output_path)
    with out.open("w", newline="", encoding="utf-8") as f:
        f.write(
            f"APDEX Thresholds: Toleration={thresholds.toleration}ms, "
            f"Frustration={thresholds.frustration}ms\n"
        )
        w = csv.writer(f)
        w.writerow(APDEX_CSV_HEADER)
        for name, result in results.items():
            for label, a in result.apdex_by_label.items():
                w.writerow([
                    name, label, a.satisfied, a.tolerated, a.frustrated,
                    f"{a.score:.2f}", a.rating.value,
                ])
    return out


def write_records_csv(output_path: str | Path, results: Mapping[str, ProcessedResult]) -> Path:
    """Raw samples of every file."""
    out = _prepare(output_path)
    with out.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(RECORDS_CSV_HEADER)
        for name, result in results.items():
            for r in result.records:
                w.writerow([
                    name, r.timestamp, r.label, r.elapsed_ms, str(r.success).lower(),
                    r.response_code, r.response_message, r.thread_name, r.data_type,
                ])
    return out


def write_comparison_csv(output_path: str | Path, report: ComparisonReport) -> Path:
    """One row per (label, metric) with both values and the difference."""
    out = _prepare(output_path)
    b_head = f"{report.baseline_name} ({report.baseline_version or 'Unknown'})"
    c_head = f"{report.candidate_name} ({report.candidate_version or 'Unknown'})"
    with out.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["Endpoint", "Metric", b_head, c_head, "Difference", "% Difference"])
        for row in report.rows:
            w.writerow([
                row.label, COMPARISON_METRICS[row.metric],
                f"{row.baseline:g}", f"{row.candidate:g}",
                f"{row.absolute_diff:.2f}", f"{row.percentage_diff:.2f}%",
            ])
    return out


def write_csv_exports(
    output_dir: str | Path,
    results: Mapping[str, ProcessedResult],
    thresholds: ApdexThresholds,
    comparisons: Sequence[ComparisonReport] = (),
) -> list[Path]:
    """Write the statistics, APDEX, raw data and comparison CSVs into ``output_dir``."""
    d = Path(output_dir)
    written = [
        write_statistics_csv(d / "jmeter-statistics.csv", results),
        write_apdex_csv(d / "jmeter-apdex.csv", results, thresholds),
        write_records_csv(d / "raw-jtl-data.csv", results),
    ]
    for i, report in enumerate(comparisons, start=1):
        written.append(write_comparison_csv(d / f"jmeter-comparison-{i}.csv", report))
    logger.info("Wrote %d CSV file(s) to %s", len(written), d)
    return written


def _format_number(value: float, decimals: int = 2) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.{decimals}f}"


def generate_html_report(
    output_path: str | Path,
    results: Mapping[str, ProcessedResult],
    comparisons: Sequence[ComparisonReport] = (),
    diff_mode: DiffMode = DiffMode.HYBRID,
    only_significant: bool = False,
) -> Path:
    """Render a self-contained HTML page with statistics, APDEX, time series and comparisons."""
    env = Environment(
        loader=PackageLoader("jtlcompare", "templates"),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    env.filters["num"] = _format_number
    template = env.get_template(HTML_TEMPLATE)

    html = template.render(
        title="JMeter Results Comparison",
        generated_at=_now_iso(),
        version=jtlcompare_version,
        results=results,
        total_label=TOTAL_LABEL,
        comparisons=comparisons,
        metric_names=COMPARISON_METRICS,
        diff_mode=diff_mode,
        only_significant=only_significant,
    )
    out = _prepare(output_path)
    out.write_text(html, encoding="utf-8")
    logger.info("HTML report written to %s", out)
    return out
