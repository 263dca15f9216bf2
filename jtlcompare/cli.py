"""CLI entry point: process JTL files, print tables, compare against a baseline, export."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from . import __version__
from .compare import compare_results
from .config import load_config, validate_app_config
from .dashboard import render_results
from .exceptions import JtlConfigError, JtlError
from .logging_config import configure_logging, get_logger
from .models import AppConfig, ApdexThresholds, ComparisonReport, DiffMode, ProcessedResult
from .processor import FileOutcome, process_files_async
from .report import generate_html_report, generate_json_report, write_csv_exports

logger = get_logger("cli")


def _build_config(args: argparse.Namespace) -> AppConfig:
    """Config file (if any) with CLI overrides applied, validated."""
    config = load_config(args.config) if args.config else AppConfig()
    if args.toleration is not None or args.frustration is not None:
        config.thresholds = ApdexThresholds(
            toleration=args.toleration if args.toleration is not None else config.thresholds.toleration,
            frustration=args.frustration if args.frustration is not None else config.thresholds.frustration,
        )
    if args.threshold is not None:
        config.comparison.threshold_pct = args.threshold
    if args.diff_mode is not None:
        config.comparison.diff_mode = DiffMode(args.diff_mode)
    if args.strict:
        config.strict_numeric = True
    validate_app_config(config)
    return config


def _display_names(outcomes: list[FileOutcome]) -> list[str]:
    """Unique display names: the file name, the full path when two files share a
    name, and a "#N" suffix when the same path is given more than once.
    """
    base = [o.name for o in outcomes]
    names = [str(o.path) if base.count(o.name) > 1 else o.name for o in outcomes]
    seen: dict[str, int] = {}
    unique: list[str] = []
    for name in names:
        seen[name] = seen.get(name, 0) + 1
        unique.append(name if seen[name] == 1 else f"{name} #{seen[name]}")
    return unique


def _compare_all(results: dict[str, ProcessedResult], config: AppConfig) -> list[ComparisonReport]:
    """Compare each file after the first against the first."""
    if len(results) < 2:
        return []
    names = list(results)
    baseline = names[0]
    return [
        compare_results(
            results[baseline],
            results[name],
            metrics=config.comparison.metrics,
            threshold_pct=config.comparison.threshold_pct,
            baseline_name=baseline,
            candidate_name=name,
        )
        for name in names[1:]
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jtlcompare",
        description="Summarize and compare JMeter JTL/CSV result files. "
        "The first file is the baseline; every other file is compared against it.",
    )
    parser.add_argument("files", nargs="+", metavar="FILE", help="JTL or CSV result file(s)")
    parser.add_argument("-f", "--config", default=None, help="Path to YAML config (optional)")
    parser.add_argument("--toleration", type=int, default=None, metavar="MS", help="Override config: APDEX toleration threshold (ms)")
    parser.add_argument("--frustration", type=int, default=None, metavar="MS", help="Override config: APDEX frustration threshold (ms)")
    parser.add_argument("--threshold", type=float, default=None, metavar="PCT", help="Override config: significant difference threshold (%%)")
    parser.add_argument("--diff-mode", choices=[m.value for m in DiffMode], default=None, dest="diff_mode", help="Override config: how differences are shown")
    parser.add_argument("--only-diffs", action="store_true", dest="only_diffs", help="Show only significant differences in comparisons")
    parser.add_argument("--strict", action="store_true", help="Fail a file on non-numeric values in numeric columns")
    parser.add_argument("--json", metavar="PATH", dest="json_path", help="Write JSON report to PATH")
    parser.add_argument("--records", action="store_true", help="Include raw records in the JSON report")
    parser.add_argument("--csv", metavar="DIR", dest="csv_dir", help="Write CSV exports into DIR")
    parser.add_argument("--html", metavar="PATH", dest="html_path", help="Write HTML report to PATH")
    parser.add_argument("--no-table", action="store_true", dest="no_table", help="Do not print tables to the terminal")
    parser.add_argument("--log-level", default=None, dest="log_level", help="Log level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("-v", "--version", action="version", version=f"jtlcompare {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        configure_logging(level=args.log_level)

    def handle_error(e: BaseException) -> int:
        if isinstance(e, JtlError):
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        logger.exception("Unexpected error")
        print("Error: An unexpected error occurred. Check logs for details.", file=sys.stderr)
        return 1

    try:
        config = _build_config(args)
    except JtlConfigError as e:
        return handle_error(e)

    try:
        outcomes = asyncio.run(
            process_files_async(
                [Path(f) for f in args.files],
                thresholds=config.thresholds,
                strict=config.strict_numeric,
                limits=config.upload,
            )
        )
        for o in outcomes:
            if o.error is not None:
                print(f"Error: {o.name}: {o.error.message}", file=sys.stderr)

        results = {
            name: o.result
            for name, o in zip(_display_names(outcomes), outcomes)
            if o.result is not None
        }
        if not results:
            print("Error: no file could be processed", file=sys.stderr)
            return 1

        comparisons = _compare_all(results, config)
        if not args.no_table:
            render_results(
                results,
                comparisons,
                mode=config.comparison.diff_mode,
                only_significant=args.only_diffs,
            )
        if args.json_path:
            generate_json_report(args.json_path, results, comparisons, include_records=args.records)
        if args.csv_dir:
            write_csv_exports(args.csv_dir, results, config.thresholds, comparisons)
        if args.html_path:
            generate_html_report(
                args.html_path,
                results,
                comparisons,
                diff_mode=config.comparison.diff_mode,
                only_significant=args.only_diffs,
            )
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except JtlError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)

    return 0 if all(o.ok for o in outcomes) else 1


if __name__ == "__main__":
    sys.exit(main())
