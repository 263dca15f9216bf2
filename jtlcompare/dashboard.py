"""Rich terminal tables for statistics, APDEX and run comparisons."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .logging_config import get_logger
from .models import COMPARISON_METRICS, TOTAL_LABEL, ApdexRating, DiffMode

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .models import ComparisonReport, EndpointStatistics, ProcessedResult

logger = get_logger("dashboard")

RATING_STYLES = {
    ApdexRating.EXCELLENT: "bold green",
    ApdexRating.GOOD: "green",
    ApdexRating.FAIR: "yellow",
    ApdexRating.POOR: "dark_orange",
    ApdexRating.UNACCEPTABLE: "bold red",
}
VERDICT_STYLES = {"better": "green", "worse": "red"}


def _ms(value: float) -> str:
    return f"{value:.0f}" if float(value).is_integer() else f"{value:.2f}"


def _stats_row(label: str, s: EndpointStatistics) -> list[str]:
    return [
        label,
        str(s.count),
        f"{s.error_percentage:.2f}%",
        _ms(s.average),
        _ms(s.median),
        _ms(s.percentile90),
        _ms(s.percentile95),
        _ms(s.percentile99),
        _ms(s.min),
        _ms(s.max),
        f"{s.throughput:.2f}",
    ]


def build_statistics_table(name: str, result: ProcessedResult) -> Table:
    """Total row followed by each label."""
    table = Table(title=f"Statistics: {name}", title_justify="left", header_style="bold cyan")
    table.add_column("Label", style="cyan", no_wrap=True)
    for heading in ("Samples", "Error %", "Avg", "Median", "90%", "95%", "99%", "Min", "Max", "Req/s"):
        table.add_column(heading, justify="right")

    table.add_row(*_stats_row(TOTAL_LABEL, result.statistics.total), style="bold")
    for label, s in result.statistics.by_label.items():
        table.add_row(*_stats_row(label, s))
    return table


def build_apdex_table(name: str, result: ProcessedResult) -> Table:
    t = result.thresholds
    table = Table(
        title=f"APDEX: {name} (T={t.toleration}ms, F={t.frustration}ms)",
        title_justify="left",
        header_style="bold cyan",
    )
    table.add_column("Label", style="cyan", no_wrap=True)
    for heading in ("Satisfied", "Tolerated", "Frustrated", "Score"):
        table.add_column(heading, justify="right")
    table.add_column("Rating")

    for label, a in result.apdex_by_label.items():
        table.add_row(
            label,
            str(a.satisfied),
            str(a.tolerated),
            str(a.frustrated),
            f"{a.score:.3f}",
            Text(a.rating.value, style=RATING_STYLES[a.rating]),
        )
    return table


def build_comparison_table(
    report: ComparisonReport,
    mode: DiffMode = DiffMode.HYBRID,
    only_significant: bool = False,
) -> Table:
    """Metric-by-metric differences, significant ones colored by verdict."""
    table = Table(
        title=f"Comparison: {report.baseline_name} vs {report.candidate_name} (threshold {report.threshold_pct:g}%)",
        title_justify="left",
        header_style="bold cyan",
    )
    table.add_column("Endpoint", style="cyan", no_wrap=True)
    table.add_column("Metric")
    table.add_column(report.baseline_name, justify="right")
    table.add_column(report.candidate_name, justify="right")
    table.add_column("Difference", justify="right")

    rows = report.only_significant() if only_significant else report.rows
    for row in rows:
        table.add_row(
            row.label,
            COMPARISON_METRICS[row.metric],
            _ms(row.baseline),
            _ms(row.candidate),
            Text(row.display(mode), style=VERDICT_STYLES.get(row.verdict, "")),
            style="bold" if row.is_total else None,
        )
    return table


def build_summary_panel(name: str, result: ProcessedResult) -> Panel:
    """Headline numbers for one file."""
    s = result.statistics
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="cyan")
    grid.add_column(style="green")
    grid.add_row("JMeter version", result.jmeter_version or "Unknown Version")
    grid.add_row("Samples", str(s.total_samples))
    grid.add_row("Duration (s)", f"{s.duration_seconds:.1f}")
    grid.add_row("Throughput (req/s)", f"{s.throughput:.2f}")
    grid.add_row("Avg response (ms)", _ms(s.total.average))
    grid.add_row("P95 (ms)", _ms(s.total.percentile95))
    grid.add_row("Error rate %", f"{s.error_percentage:.2f}%")
    grid.add_row("Received KB/s", f"{s.received_kb_per_sec:.2f}")
    grid.add_row("Sent KB/s", f"{s.sent_kb_per_sec:.2f}")
    title = Text()
    title.append("jtlcompare ", style="bold magenta")
    title.append(f"| {name}", style="dim")
    return Panel(grid, title=title, border_style="blue")


def render_results(
    results: Mapping[str, ProcessedResult],
    comparisons: Sequence[ComparisonReport] = (),
    mode: DiffMode = DiffMode.HYBRID,
    only_significant: bool = False,
    console: Console | None = None,
) -> None:
    """Print every file's summary, statistics and APDEX, then the comparisons."""
    console = console or Console()
    for name, result in results.items():
        console.print(
            Group(
                build_summary_panel(name, result),
                build_statistics_table(name, result),
                build_apdex_table(name, result),
            )
        )
    for report in comparisons:
        console.print(build_comparison_table(report, mode, only_significant))
