"""Unit tests for CLI (main exit codes and exports)."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import patch

import orjson
import pytest

from jtlcompare.cli import build_parser, main


def test_main_version_exits_zero() -> None:
    with patch.object(sys, "argv", ["jtlcompare", "--version"]):
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 0


def test_main_requires_files() -> None:
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["a.jtl"])
    assert args.files == ["a.jtl"]
    assert args.config is None
    assert args.diff_mode is None
    assert not args.only_diffs


def test_main_missing_file_exits_one(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main([str(tmp_path / "missing.jtl"), "--no-table"])
    assert code == 1
    assert "File not found" in capsys.readouterr().err


def test_main_missing_config_exits_one(sample_jtl_path: Path) -> None:
    assert main([str(sample_jtl_path), "-f", "/nonexistent/config.yaml"]) == 1


def test_main_invalid_threshold_override_exits_one(sample_jtl_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main([str(sample_jtl_path), "--toleration", "1000", "--frustration", "500"])
    assert code == 1
    assert "greater than toleration" in capsys.readouterr().err


def test_main_single_file_prints_tables(sample_jtl_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main([str(sample_jtl_path)]) == 0
    out = capsys.readouterr().out
    assert "baseline.jtl" in out
    assert "login" in out


def test_main_compare_writes_exports(
    tmp_path: Path,
    sample_jtl_path: Path,
    candidate_jtl_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    json_out = tmp_path / "out" / "report.json"
    csv_dir = tmp_path / "csv"
    html_out = tmp_path / "report.html"
    code = main([
        str(sample_jtl_path), str(candidate_jtl_path),
        "--json", str(json_out), "--records",
        "--csv", str(csv_dir),
        "--html", str(html_out),
        "--no-table",
    ])
    assert code == 0
    assert capsys.readouterr().out == ""
    data = orjson.loads(json_out.read_bytes())
    assert list(data["files"]) == ["baseline.jtl", "candidate.csv"]
    assert "records" in data["files"]["baseline.jtl"]
    assert len(data["comparisons"]) == 1
    assert data["comparisons"][0]["candidate"] == "candidate.csv"
    assert (csv_dir / "jmeter-comparison-1.csv").exists()
    assert html_out.exists()


def test_main_config_applies(tmp_path: Path, sample_jtl_path: Path, config_path: Path) -> None:
    json_out = tmp_path / "report.json"
    code = main([str(sample_jtl_path), "-f", str(config_path), "--json", str(json_out), "--no-table"])
    assert code == 0
    data = orjson.loads(json_out.read_bytes())
    assert data["files"]["baseline.jtl"]["apdexThresholds"] == {"toleration": 300, "frustration": 1200}


def test_main_partial_failure_still_reports(tmp_path: Path, sample_jtl_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    bad = tmp_path / "bad.jtl"
    bad.write_text("", encoding="utf-8")
    json_out = tmp_path / "report.json"
    code = main([str(sample_jtl_path), str(bad), "--json", str(json_out), "--no-table"])
    assert code == 1
    assert "bad.jtl" in capsys.readouterr().err
    data = orjson.loads(json_out.read_bytes())
    assert list(data["files"]) == ["baseline.jtl"]
    assert data["comparisons"] == []


def test_main_strict_flag_rejects_malformed(tmp_path: Path) -> None:
    p = tmp_path / "bad.jtl"
    p.write_text("timeStamp,elapsed,label\n1700000000000,abc,login\n", encoding="utf-8")
    assert main([str(p), "--no-table"]) == 0
    assert main([str(p), "--no-table", "--strict"]) == 1


def test_main_same_name_uses_full_paths(tmp_path: Path, sample_jtl_text: str) -> None:
    a = tmp_path / "a" / "run.jtl"
    b = tmp_path / "b" / "run.jtl"
    for p in (a, b):
        p.parent.mkdir()
        p.write_text(sample_jtl_text, encoding="utf-8")
    json_out = tmp_path / "report.json"
    assert main([str(a), str(b), "--json", str(json_out), "--no-table"]) == 0
    data = orjson.loads(json_out.read_bytes())
    assert list(data["files"]) == [str(a), str(b)]


def test_main_same_path_twice_compares_against_itself(tmp_path: Path, sample_jtl_path: Path) -> None:
    json_out = tmp_path / "report.json"
    code = main([str(sample_jtl_path), str(sample_jtl_path), "--json", str(json_out), "--no-table"])
    assert code == 0
    data = orjson.loads(json_out.read_bytes())
    assert list(data["files"]) == [str(sample_jtl_path), f"{sample_jtl_path} #2"]
    assert len(data["comparisons"]) == 1
    assert data["comparisons"][0]["candidate"] == f"{sample_jtl_path} #2"
