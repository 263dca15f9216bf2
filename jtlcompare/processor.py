"""Pipeline: file text -> records -> statistics, APDEX, time series -> ProcessedResult.

Each file is processed independently; in a batch, one file's failure is
recorded in its FileOutcome and the others carry on.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .apdex import score_apdex, validate_thresholds
from .exceptions import JtlError, JtlFileError
from .logging_config import get_logger
from .metrics import aggregate
from .models import ApdexThresholds, ProcessedResult, UploadSettings
from .parser import extract_version, parse_jtl
from .timeseries import bucket_time_series

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    ProgressCallback = Callable[[int, str], None]

logger = get_logger("processor")

UNKNOWN_VERSION = "Unknown Version"


@dataclass(slots=True)
class FileOutcome:
    """Result of one file in a batch: either ``result`` or ``error`` is set."""

    path: Path
    result: ProcessedResult | None = None
    error: JtlError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @property
    def name(self) -> str:
        return self.path.name


def _notify(progress: ProgressCallback | None, percent: int, message: str) -> None:
    if progress is not None:
        progress(percent, message)


def process_text(
    raw_text: str,
    thresholds: ApdexThresholds | None = None,
    progress: ProgressCallback | None = None,
    strict: bool = False,
) -> ProcessedResult:
    """Run the four stages over the decoded text of one JTL file.

    ``progress`` is called with (percent, message) at 20, 40, 60, 80 and 100.
    """
    thresholds = thresholds or ApdexThresholds()
    validate_thresholds(thresholds)

    _notify(progress, 20, "Parsing JTL data...")
    version = extract_version(raw_text)
    records = parse_jtl(raw_text, strict=strict)

    _notify(progress, 40, "Calculating statistics...")
    statistics = aggregate(records)

    _notify(progress, 60, "Calculating APDEX scores...")
    apdex = score_apdex(records, thresholds)

    _notify(progress, 80, "Preparing visualization data...")
    series = bucket_time_series(records, statistics)

    _notify(progress, 100, "Processing complete")
    return ProcessedResult(
        records=records,
        statistics=statistics,
        apdex_by_label=apdex,
        time_series=series,
        jmeter_version=version,
        thresholds=thresholds,
    )


def check_upload(path: Path, limits: UploadSettings) -> None:
    """Reject files with a wrong extension or above the size cap. Raises JtlFileError."""
    if not path.is_file():
        raise JtlFileError(f"File not found: {path}", context={"path": str(path)})
    ext = path.suffix.lower().lstrip(".")
    if ext not in limits.extensions:
        raise JtlFileError(
            f"File must be one of: {', '.join('.' + e for e in limits.extensions)}",
            context={"path": str(path), "extension": path.suffix},
        )
    size = path.stat().st_size
    if size > limits.max_file_size_bytes:
        raise JtlFileError(
            f"File size exceeds {limits.max_file_size_mb:g}MB limit",
            context={"path": str(path), "size_bytes": size},
        )


def read_text(path: Path) -> str:
    """Read a file as UTF-8, dropping a leading BOM."""
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise JtlFileError(
            "File is not valid UTF-8 text", context={"path": str(path)}, original_error=e
        ) from e
    except OSError as e:
        raise JtlFileError(
            f"Cannot read file: {e}", context={"path": str(path)}, original_error=e
        ) from e


def process_file(
    path: str | Path,
    thresholds: ApdexThresholds | None = None,
    progress: ProgressCallback | None = None,
    strict: bool = False,
    limits: UploadSettings | None = None,
) -> ProcessedResult:
    """Validate, read and process one file. Raises a JtlError subclass on failure."""
    p = Path(path)
    check_upload(p, limits or UploadSettings())
    text = read_text(p)
    try:
        result = process_text(text, thresholds=thresholds, progress=progress, strict=strict)
    except JtlError as e:
        raise e.with_context(path=str(p))
    logger.info(
        "Processed %s: %d samples, %d labels, version=%s",
        p.name, result.statistics.total_samples, len(result.statistics.by_label),
        result.jmeter_version or UNKNOWN_VERSION,
    )
    return result


def _outcome(
    path: Path,
    thresholds: ApdexThresholds | None,
    strict: bool,
    limits: UploadSettings | None,
) -> FileOutcome:
    try:
        return FileOutcome(path=path, result=process_file(path, thresholds, strict=strict, limits=limits))
    except JtlError as e:
        logger.warning("Skipping %s: %s", path.name, e.message)
        return FileOutcome(path=path, error=e)
    except Exception as e:
        logger.exception("Unexpected error processing %s", path.name)
        return FileOutcome(
            path=path,
            error=JtlError(
                "Unexpected error processing file",
                context={"path": str(path)},
                original_error=e,
            ),
        )


def process_files(
    paths: Iterable[str | Path],
    thresholds: ApdexThresholds | None = None,
    strict: bool = False,
    limits: UploadSettings | None = None,
) -> list[FileOutcome]:
    """Process files one after another, in the given order."""
    return [_outcome(Path(p), thresholds, strict, limits) for p in paths]


async def process_files_async(
    paths: Iterable[str | Path],
    thresholds: ApdexThresholds | None = None,
    strict: bool = False,
    limits: UploadSettings | None = None,
) -> list[FileOutcome]:
    """Process files concurrently, one worker thread per file. Order of ``paths`` is kept."""
    tasks = [
        asyncio.to_thread(_outcome, Path(p), thresholds, strict, limits)
        for p in paths
    ]
    return list(await asyncio.gather(*tasks))
