"""JTL (CSV) parsing: header-driven column detection and a quote-aware line scanner."""

from __future__ import annotations

import re

from .exceptions import JtlMalformedFieldError, JtlParseError
from .logging_config import get_logger
from .models import COL_SUCCESS, COLUMN_FIELDS, KNOWN_COLUMNS, NUMERIC_COLUMNS, Record

logger = get_logger("parser")

# Version comments are only looked for near the top of the file
VERSION_SCAN_LINES = 10
COMMENT_PREFIX = "#"

_JMETER_VERSION_RE = re.compile(r"JMeter\s+([vV]ersion\s*)?([0-9]+(\.[0-9]+)+(-[a-zA-Z0-9]+)?)")
_TEST_PLAN_VERSION_RE = re.compile(r"test-plan\s+([vV]ersion\s*)?([0-9]+(\.[0-9]+)+(-[a-zA-Z0-9]+)?)")
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_DECIMAL_RE = re.compile(r"[+-]?\d+\.\d*", re.ASCII)


def split_line(line: str) -> list[str]:
    """Split one CSV line on commas outside double quotes.

    Every ``"`` flips the in-quotes state and is dropped; fields are trimmed.
    A doubled quote inside a quoted field therefore disappears rather than
    turning into a literal quote.
    """
    values: list[str] = []
    current: list[str] = []
    in_quotes = False
    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    values.append("".join(current).strip())
    return values


def parse_int(token: str) -> int:
    """Integer value of a numeric JTL cell. Empty is 0, decimals truncate toward zero.

    Raises ValueError for anything else.
    """
    if token == "":
        return 0
    if _INT_RE.fullmatch(token):
        return int(token)
    if _DECIMAL_RE.fullmatch(token):
        return int(float(token))
    raise ValueError(f"not an integer: {token!r}")


def _column_indices(header_line: str) -> dict[str, int]:
    header = [cell.strip().strip('"').strip() for cell in header_line.split(",")]
    indices: dict[str, int] = {}
    for column in KNOWN_COLUMNS:
        if column in header:
            indices[column] = header.index(column)
    return indices


def _data_lines(raw_text: str) -> list[str]:
    lines = raw_text.strip().split("\n")
    start = 0
    while start < len(lines) and lines[start].lstrip().startswith(COMMENT_PREFIX):
        start += 1
    return lines[start:]


def parse_jtl(raw_text: str, strict: bool = False) -> list[Record]:
    """Parse the full text of a JTL/CSV file into records, one per non-blank data line.

    Args:
        raw_text: Decoded file contents, header row first (leading ``#`` comments allowed)
        strict: Raise on non-numeric tokens in numeric columns instead of coercing them to 0

    Returns:
        Records in file order

    Raises:
        JtlParseError: No header, no recognizable JTL column, or no data lines
        JtlMalformedFieldError: Only when ``strict`` is set
    """
    if not raw_text or not raw_text.strip():
        raise JtlParseError("JTL input is empty")

    lines = _data_lines(raw_text)
    if not lines:
        raise JtlParseError("JTL input has no header row")

    indices = _column_indices(lines[0])
    if not indices:
        raise JtlParseError(
            "JTL header row has no known columns",
            context={"header": lines[0][:200]},
        )
    present = frozenset(indices)

    records: list[Record] = []
    malformed = 0
    first_malformed: tuple[int, str, str] | None = None

    for line_no, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        values = split_line(line)
        kwargs: dict[str, object] = {"columns": present}
        for column, index in indices.items():
            if index >= len(values):
                continue
            value = values[index]
            if column in NUMERIC_COLUMNS:
                try:
                    kwargs[COLUMN_FIELDS[column]] = parse_int(value)
                except ValueError as e:
                    if strict:
                        raise JtlMalformedFieldError(
                            f"Non-numeric value in column {column}",
                            context={"line": line_no, "column": column, "value": value},
                            original_error=e,
                        ) from e
                    malformed += 1
                    if first_malformed is None:
                        first_malformed = (line_no, column, value)
                    kwargs[COLUMN_FIELDS[column]] = 0
            elif column == COL_SUCCESS:
                kwargs[COLUMN_FIELDS[column]] = value.lower() == "true"
            else:
                kwargs[COLUMN_FIELDS[column]] = value
        records.append(Record(**kwargs))

    if not records:
        raise JtlParseError("JTL input has a header but no data lines")

    if malformed and first_malformed is not None:
        line_no, column, value = first_malformed
        logger.warning(
            "Coerced %d non-numeric field(s) to 0 (first at line %d, column %s: %r)",
            malformed, line_no, column, value,
        )
    logger.debug("Parsed %d records with columns: %s", len(records), ", ".join(sorted(present)))
    return records


def extract_version(raw_text: str) -> str | None:
    """Find a JMeter version string in the leading comments or a test-plan token.

    Returns the matched text verbatim (e.g. ``"JMeter 5.6.3"``), or None.
    """
    if not raw_text:
        return None
    lines = raw_text.strip().split("\n")
    for line in lines[:VERSION_SCAN_LINES]:
        if line.startswith(COMMENT_PREFIX):
            m = _JMETER_VERSION_RE.search(line)
            if m:
                return m.group(0)
    m = _TEST_PLAN_VERSION_RE.search(raw_text)
    if m:
        return m.group(0)
    return None
