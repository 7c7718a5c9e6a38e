"""Severity bucket classification from hours remaining."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import ThresholdSettings
from .models import SeverityBucket

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Three cut points in hours, strictly more urgent from green to orange."""

    green_min: float = 24.0
    yellow_min: float = 12.0
    orange_min: float = 1.0

    def __post_init__(self):
        if not (self.green_min >= self.yellow_min >= self.orange_min):
            raise ValueError(
                "Thresholds must be descending: "
                f"green_min={self.green_min}, yellow_min={self.yellow_min}, orange_min={self.orange_min}"
            )

    @classmethod
    def from_settings(cls, settings: ThresholdSettings) -> Thresholds:
        """Build from settings; out-of-order cut points fall back to the defaults."""
        try:
            return cls(
                green_min=float(settings.green_min),
                yellow_min=float(settings.yellow_min),
                orange_min=float(settings.orange_min),
            )
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring threshold settings: %s", exc)
            return cls()

    def cut_points(self) -> tuple[tuple[SeverityBucket, float], ...]:
        return (
            (SeverityBucket.GREEN, self.green_min),
            (SeverityBucket.YELLOW, self.yellow_min),
            (SeverityBucket.ORANGE, self.orange_min),
        )


DEFAULT_THRESHOLDS = Thresholds()


def classify(
    hours_remaining: float | None,
    completed: bool = False,
    violated: bool = False,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> SeverityBucket | None:
    """Map a milestone to a severity bucket.

    Returns ``None`` for completed (non-violated) milestones, which are counted
    separately rather than bucketed. Open milestones without a target are
    treated as green.

    Examples
    --------
    >>> classify(30)
    <SeverityBucket.GREEN: 'green'>
    >>> classify(0.5)
    <SeverityBucket.RED: 'red'>
    >>> classify(100, violated=True)
    <SeverityBucket.RED: 'red'>
    >>> classify(5, completed=True) is None
    True
    """
    if violated:
        return SeverityBucket.RED
    if completed:
        return None
    if hours_remaining is None:
        return SeverityBucket.GREEN
    for bucket, cut in thresholds.cut_points():
        if hours_remaining > cut:
            return bucket
    return SeverityBucket.RED


def severity_class(bucket: SeverityBucket | None) -> str:
    if bucket is None:
        return ""
    return f"sla-{bucket.value}"
