"""Unit tests for the processing pipeline and batch error isolation."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from jtlcompare import processor
from jtlcompare.exceptions import JtlConfigError, JtlError, JtlFileError, JtlParseError
from jtlcompare.models import ApdexThresholds, UploadSettings
from jtlcompare.processor import process_file, process_files, process_files_async, process_text


def test_process_text_builds_full_result(sample_jtl_text: str) -> None:
    result = process_text(sample_jtl_text)
    assert len(result.records) == 6
    assert result.jmeter_version == "JMeter 5.6.3"
    assert result.statistics.total_samples == 6
    assert list(result.statistics.by_label) == ["login", "home"]
    assert result.statistics.by_label["login"].average == 2650
    assert result.apdex_by_label["login"].frustrated == 1
    assert len(result.time_series.buckets) == 3
    assert result.thresholds == ApdexThresholds()


def test_process_text_progress_milestones(sample_jtl_text: str) -> None:
    seen: list[tuple[int, str]] = []
    process_text(sample_jtl_text, progress=lambda pct, msg: seen.append((pct, msg)))
    assert [p for p, _ in seen] == [20, 40, 60, 80, 100]
    assert seen[-1][1] == "Processing complete"


def test_process_text_custom_thresholds(sample_jtl_text: str) -> None:
    result = process_text(sample_jtl_text, thresholds=ApdexThresholds(toleration=60, frustration=200))
    home = result.apdex_by_label["home"]
    assert (home.satisfied, home.tolerated, home.frustrated) == (1, 1, 0)
    assert result.thresholds.toleration == 60


def test_process_text_invalid_thresholds(sample_jtl_text: str) -> None:
    with pytest.raises(JtlConfigError):
        process_text(sample_jtl_text, thresholds=ApdexThresholds(toleration=100, frustration=50))


def test_process_text_empty_raises() -> None:
    with pytest.raises(JtlParseError):
        process_text("")


def test_process_text_without_version(make_jtl, make_row) -> None:
    result = process_text(make_jtl(make_row(1_700_000_000_000, 100)))
    assert result.jmeter_version is None
    assert result.to_dict()["jmeterVersion"] is None


def test_process_result_to_dict(sample_jtl_text: str) -> None:
    d = process_text(sample_jtl_text).to_dict(include_records=True)
    assert set(d) == {"jmeterVersion", "apdexThresholds", "statistics", "apdexByLabel", "timeSeries", "records"}
    assert d["statistics"]["byLabel"]["login"]["count"] == 4
    assert d["apdexByLabel"]["home"]["rating"] == "Excellent"
    assert d["records"][0]["label"] == "login"
    assert "records" not in process_text(sample_jtl_text).to_dict()


def test_process_file(sample_jtl_path: Path) -> None:
    result = process_file(sample_jtl_path)
    assert result.statistics.total_samples == 6


def test_process_file_strips_bom(tmp_path: Path, sample_jtl_text: str) -> None:
    p = tmp_path / "bom.csv"
    p.write_text(sample_jtl_text.split("\n", 1)[1], encoding="utf-8-sig")
    result = process_file(p)
    assert result.records[0].timestamp == 1_700_000_000_000


def test_process_file_rejects_extension(tmp_path: Path, sample_jtl_text: str) -> None:
    p = tmp_path / "results.txt"
    p.write_text(sample_jtl_text, encoding="utf-8")
    with pytest.raises(JtlFileError, match="File must be one of"):
        process_file(p)


def test_process_file_rejects_oversize(sample_jtl_path: Path) -> None:
    with pytest.raises(JtlFileError, match="exceeds"):
        process_file(sample_jtl_path, limits=UploadSettings(max_file_size_mb=0.0001))


def test_process_file_missing(tmp_path: Path) -> None:
    with pytest.raises(JtlFileError, match="File not found"):
        process_file(tmp_path / "nope.jtl")


def test_process_file_parse_error_carries_path(tmp_path: Path) -> None:
    p = tmp_path / "empty.jtl"
    p.write_text("", encoding="utf-8")
    with pytest.raises(JtlParseError) as exc:
        process_file(p)
    assert exc.value.context["path"] == str(p)


def test_process_files_isolates_failures(tmp_path: Path, sample_jtl_path: Path, candidate_jtl_path: Path) -> None:
    bad = tmp_path / "bad.jtl"
    bad.write_text("timeStamp,elapsed\n", encoding="utf-8")
    outcomes = process_files([sample_jtl_path, bad, candidate_jtl_path])
    assert [o.ok for o in outcomes] == [True, False, True]
    assert isinstance(outcomes[1].error, JtlParseError)
    assert outcomes[1].result is None
    assert outcomes[2].name == "candidate.csv"


def test_process_files_async_keeps_order(tmp_path: Path, sample_jtl_path: Path, candidate_jtl_path: Path) -> None:
    missing = tmp_path / "missing.jtl"
    outcomes = asyncio.run(process_files_async([candidate_jtl_path, missing, sample_jtl_path]))
    assert [o.path for o in outcomes] == [candidate_jtl_path, missing, sample_jtl_path]
    assert isinstance(outcomes[1].error, JtlFileError)
    assert outcomes[0].result is not None
    assert outcomes[0].result.statistics.total_samples == 5
    assert outcomes[2].result is not None
    assert outcomes[2].result.statistics.total_samples == 6


def test_process_files_async_survives_out_of_range_timestamp(
    tmp_path: Path, sample_jtl_path: Path, make_jtl, make_row
) -> None:
    far = tmp_path / "far.jtl"
    far.write_text(make_jtl(make_row(99_999_999_999_999_999, 100)), encoding="utf-8")
    outcomes = asyncio.run(process_files_async([sample_jtl_path, far]))
    assert [o.ok for o in outcomes] == [True, True]
    assert outcomes[0].result is not None
    assert outcomes[0].result.statistics.total_samples == 6


def test_process_files_wraps_unexpected_errors(tmp_path: Path, sample_jtl_path: Path, candidate_jtl_path: Path) -> None:
    real_read_text = processor.read_text

    def read_text(path: Path) -> str:
        if path == candidate_jtl_path:
            raise RuntimeError("disk on fire")
        return real_read_text(path)

    with patch.object(processor, "read_text", side_effect=read_text):
        outcomes = process_files([candidate_jtl_path, sample_jtl_path])
    assert [o.ok for o in outcomes] == [False, True]
    error = outcomes[0].error
    assert isinstance(error, JtlError)
    assert isinstance(error.original_error, RuntimeError)
    assert error.context["path"] == str(candidate_jtl_path)
