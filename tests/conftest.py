"""Pytest fixtures for jtlcompare tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from jtlcompare.models import Record

# Multiple of the 5s bucket width: 2023-11-14 22:13:20 UTC
T0 = 1_700_000_000_000

FULL_HEADER = (
    "timeStamp,elapsed,label,responseCode,responseMessage,threadName,dataType,success,"
    "failureMessage,bytes,sentBytes,grpThreads,allThreads,URL,Latency,IdleTime,Connect"
)


def jtl_row(
    ts: int,
    elapsed: int,
    label: str = "login",
    success: bool = True,
    code: str = "200",
    received: int = 1024,
    sent: int = 256,
) -> str:
    message = "OK" if success else "Internal Server Error"
    failure = "" if success else "Expected 200"
    return (
        f"{ts},{elapsed},{label},{code},{message},Thread Group 1-1,text,{str(success).lower()},"
        f"{failure},{received},{sent},1,1,https://example.com/{label},{elapsed // 2},0,{elapsed // 10}"
    )


@pytest.fixture
def make_jtl() -> Callable[..., str]:
    """Build JTL text from row strings under the full 17-column header."""

    def _make(*rows: str, header: str = FULL_HEADER, preamble: str = "") -> str:
        return preamble + "\n".join([header, *rows]) + "\n"

    return _make


@pytest.fixture
def sample_jtl_text(make_jtl: Callable[..., str]) -> str:
    """Two labels over 12 seconds, one failed login."""
    return make_jtl(
        jtl_row(T0, 100, "login"),
        jtl_row(T0 + 1000, 200, "login", success=False, code="500"),
        jtl_row(T0 + 6000, 300, "login"),
        jtl_row(T0 + 12000, 10000, "login"),
        jtl_row(T0 + 2000, 50, "home"),
        jtl_row(T0 + 7000, 70, "home"),
        preamble="# Generated by Apache JMeter 5.6.3\n",
    )


@pytest.fixture
def sample_jtl_path(tmp_path: Path, sample_jtl_text: str) -> Path:
    p = tmp_path / "baseline.jtl"
    p.write_text(sample_jtl_text, encoding="utf-8")
    return p


@pytest.fixture
def candidate_jtl_path(tmp_path: Path, make_jtl: Callable[..., str]) -> Path:
    """Faster login, slower home, plus a label the baseline lacks."""
    p = tmp_path / "candidate.csv"
    p.write_text(
        make_jtl(
            jtl_row(T0, 90, "login"),
            jtl_row(T0 + 1000, 110, "login"),
            jtl_row(T0 + 2000, 120, "login"),
            jtl_row(T0 + 3000, 500, "home"),
            jtl_row(T0 + 4000, 40, "search"),
        ),
        encoding="utf-8",
    )
    return p


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    p = tmp_path / "jtlcompare.yaml"
    p.write_text(
        """
apdex:
  toleration_ms: 300
  frustration_ms: 1200
comparison:
  diff_mode: percentage
  threshold_pct: 10
  metrics: [average, percentile95, errorPercentage]
upload:
  max_file_size_mb: 5
  extensions: [jtl, csv, txt]
strict_numeric: true
""",
        encoding="utf-8",
    )
    return p


def rec(
    elapsed: int,
    label: str = "login",
    success: bool = True,
    ts: int = T0,
    received: int = 0,
    sent: int = 0,
) -> Record:
    return Record(
        timestamp=ts,
        elapsed_ms=elapsed,
        label=label,
        success=success,
        bytes_received=received,
        bytes_sent=sent,
    )


@pytest.fixture
def make_record() -> Callable[..., Record]:
    return rec


@pytest.fixture
def make_row() -> Callable[..., str]:
    return jtl_row
