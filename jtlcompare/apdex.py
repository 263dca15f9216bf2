"""APDEX scoring per label.

Apdex = (Satisfied + Tolerated / 2) / Total, counted over successful samples only.
Satisfied: elapsed <= toleration
Tolerated: toleration < elapsed <= frustration
Frustrated: elapsed > frustration
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import JtlConfigError
from .logging_config import get_logger
from .metrics import group_by_label
from .models import ApdexRating, ApdexResult, ApdexThresholds

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import Record

logger = get_logger("apdex")

# Lower bound (inclusive) of each rating, best first
RATING_BANDS: tuple[tuple[float, ApdexRating], ...] = (
    (0.94, ApdexRating.EXCELLENT),
    (0.85, ApdexRating.GOOD),
    (0.70, ApdexRating.FAIR),
    (0.50, ApdexRating.POOR),
)


def validate_thresholds(thresholds: ApdexThresholds) -> None:
    """Raise JtlConfigError unless 0 < toleration < frustration."""
    if thresholds.toleration <= 0:
        raise JtlConfigError(
            "APDEX toleration threshold must be > 0",
            context={"toleration": thresholds.toleration},
        )
    if thresholds.frustration <= thresholds.toleration:
        raise JtlConfigError(
            "APDEX frustration threshold must be greater than toleration",
            context={"toleration": thresholds.toleration, "frustration": thresholds.frustration},
        )


def rate_score(score: float) -> ApdexRating:
    for lower, rating in RATING_BANDS:
        if score >= lower:
            return rating
    return ApdexRating.UNACCEPTABLE


def score_apdex(
    records: Sequence[Record],
    thresholds: ApdexThresholds | None = None,
) -> dict[str, ApdexResult]:
    """APDEX result for every label seen in ``records``.

    A label whose samples all failed has nothing to score; it is reported with
    zero counts, score 0.0 and rating Unacceptable.
    """
    thresholds = thresholds or ApdexThresholds()
    validate_thresholds(thresholds)

    out: dict[str, ApdexResult] = {}
    for label, group in group_by_label(records).items():
        satisfied = tolerated = frustrated = 0
        for r in group:
            if not r.success:
                continue
            if r.elapsed_ms <= thresholds.toleration:
                satisfied += 1
            elif r.elapsed_ms <= thresholds.frustration:
                tolerated += 1
            else:
                frustrated += 1

        total = satisfied + tolerated + frustrated
        if total == 0:
            logger.debug("Label %r has no successful samples; APDEX scored as 0", label)
            score = 0.0
        else:
            score = (satisfied + tolerated / 2) / total
        out[label] = ApdexResult(
            satisfied=satisfied,
            tolerated=tolerated,
            frustrated=frustrated,
            score=score,
            rating=rate_score(score),
        )
    return out
