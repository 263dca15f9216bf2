"""
jtlcompare - JMeter JTL/CSV result ingestion, statistics, APDEX and run comparison.

Parse a results file into typed records, aggregate latency percentiles, error
rates, throughput and bandwidth, score APDEX per label, and compare runs.
"""

from .exceptions import (
    JtlConfigError,
    JtlError,
    JtlFileError,
    JtlMalformedFieldError,
    JtlParseError,
)

__all__ = [
    "__version__",
    "JtlConfigError",
    "JtlError",
    "JtlFileError",
    "JtlMalformedFieldError",
    "JtlParseError",
]

__version__ = "1.0.0"
