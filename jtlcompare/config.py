"""YAML configuration loader for jtlcompare (APDEX thresholds, comparison, upload limits)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .apdex import validate_thresholds
from .exceptions import JtlConfigError
from .logging_config import get_logger
from .models import (
    COMPARISON_METRICS,
    DEFAULT_COMPARISON_METRICS,
    DEFAULT_FRUSTRATION_MS,
    DEFAULT_TOLERATION_MS,
    AppConfig,
    ApdexThresholds,
    ComparisonSettings,
    DiffMode,
    UploadSettings,
)

logger = get_logger("config")


def validate_app_config(c: AppConfig) -> None:
    """Validate AppConfig bounds. Raises JtlConfigError if invalid."""
    validate_thresholds(c.thresholds)
    if c.comparison.threshold_pct < 0:
        raise JtlConfigError("comparison.threshold_pct must be >= 0")
    unknown = [m for m in c.comparison.metrics if m not in COMPARISON_METRICS]
    if unknown:
        raise JtlConfigError(
            f"Unknown comparison metric(s): {', '.join(unknown)}",
            context={"allowed": sorted(COMPARISON_METRICS)},
        )
    if not c.comparison.metrics:
        raise JtlConfigError("comparison.metrics must not be empty")
    if c.upload.max_file_size_mb <= 0:
        raise JtlConfigError("upload.max_file_size_mb must be > 0")
    if not c.upload.extensions:
        raise JtlConfigError("upload.extensions must not be empty")


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise JtlConfigError(
            f"Config section '{key}' must be a mapping",
            context={"actual_type": type(value).__name__},
        )
    return value


def _diff_mode(value: Any) -> DiffMode:
    mode = str(value or DiffMode.HYBRID.value).strip().lower()
    try:
        return DiffMode(mode)
    except ValueError as e:
        raise JtlConfigError(
            f"Unknown diff_mode '{mode}'",
            context={"allowed": [m.value for m in DiffMode]},
            original_error=e,
        ) from e


def _extensions(value: Any) -> tuple[str, ...]:
    if value is None:
        return UploadSettings().extensions
    if isinstance(value, str):
        value = [value]
    return tuple(str(v).strip().lstrip(".").lower() for v in value if str(v).strip())


def config_from_dict(raw: dict[str, Any]) -> AppConfig:
    """Build and validate an AppConfig from an already-parsed mapping."""
    apdex = _section(raw, "apdex")
    comparison = _section(raw, "comparison")
    upload = _section(raw, "upload")
    try:
        metrics = comparison.get("metrics")
        config = AppConfig(
            thresholds=ApdexThresholds(
                toleration=int(apdex.get("toleration_ms", DEFAULT_TOLERATION_MS)),
                frustration=int(apdex.get("frustration_ms", DEFAULT_FRUSTRATION_MS)),
            ),
            comparison=ComparisonSettings(
                diff_mode=_diff_mode(comparison.get("diff_mode")),
                threshold_pct=float(comparison.get("threshold_pct", 5.0)),
                metrics=tuple(str(m) for m in metrics) if metrics else DEFAULT_COMPARISON_METRICS,
            ),
            upload=UploadSettings(
                max_file_size_mb=float(upload.get("max_file_size_mb", 50.0)),
                extensions=_extensions(upload.get("extensions")),
            ),
            strict_numeric=bool(raw.get("strict_numeric", False)),
        )
    except (TypeError, ValueError) as e:
        raise JtlConfigError(f"Invalid config value: {e}", original_error=e) from e

    validate_app_config(config)
    return config


def load_config(path: str | Path) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        JtlConfigError: If file not found, invalid YAML, or validation fails
    """
    p = Path(path)
    if not p.exists():
        raise JtlConfigError(f"Config file not found: {path}", context={"path": str(path)})

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        logger.exception("Failed to parse YAML config file")
        raise JtlConfigError(
            f"Invalid YAML syntax in config file: {e}",
            context={"path": str(path)},
            original_error=e,
        ) from e
    except OSError as e:
        raise JtlConfigError(
            f"Cannot read config file: {e}",
            context={"path": str(path)},
            original_error=e,
        ) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise JtlConfigError(
            "Config must be a YAML object/dictionary",
            context={"path": str(path), "actual_type": type(raw).__name__},
        )

    try:
        config = config_from_dict(raw)
    except JtlConfigError as e:
        raise e.with_context(path=str(path))
    logger.debug(
        "Loaded config: toleration=%s, frustration=%s, diff_mode=%s",
        config.thresholds.toleration, config.thresholds.frustration, config.comparison.diff_mode.value,
    )
    return config
