"""
Behavior Consistency Rate (BCR)

Routine score in [0, 100] built from three parts:
- frequency (0-40): share of calendar days in the window with any activity
- regularity (0-30): how close the gaps between activities sit to one day
- quality stability (0-30): low spread of behavior-score quality
"""
from dataclasses import dataclass
from typing import Sequence

from salescoach.analytics.scoring_math import clamp, mean, population_stdev, round_half_up
from salescoach.models.activity import ActivityRecord
from salescoach.models.behavior_score import BehaviorScoreResult
from salescoach.models.period import PeriodWindow

FREQUENCY_MAX = 40.0
REGULARITY_MAX = 30.0
STABILITY_MAX = 30.0
TARGET_INTERVAL_HOURS = 24.0


@dataclass(frozen=True)
class BCRBreakdown:
    frequency: float
    regularity: float
    quality_stability: float

    @property
    def total(self) -> int:
        return int(clamp(round_half_up(self.frequency + self.regularity + self.quality_stability)))


def frequency_score(activities: Sequence[ActivityRecord], window: PeriodWindow) -> float:
    active_days = {a.performed_at.date() for a in activities}
    total_days = max(1, window.days)
    return min(FREQUENCY_MAX, len(active_days) / total_days * FREQUENCY_MAX)


def regularity_score(activities: Sequence[ActivityRecord]) -> float:
    if len(activities) < 2:
        return 0.0

    ordered = sorted(a.performed_at for a in activities)
    intervals = [
        (current - previous).total_seconds() / 3600
        for previous, current in zip(ordered, ordered[1:])
    ]
    avg_interval = mean(intervals)
    spread = population_stdev(intervals)

    consistency_ratio = min(1.0, TARGET_INTERVAL_HOURS / avg_interval) if avg_interval > 0 else 0.0
    regularity_ratio = min(1.0, TARGET_INTERVAL_HOURS / spread) if spread > 0 else 1.0
    return consistency_ratio * regularity_ratio * REGULARITY_MAX


def quality_stability_score(behavior_scores: Sequence[BehaviorScoreResult]) -> float:
    # A single sample has no spread to judge
    if len(behavior_scores) < 2:
        return 0.0
    spread = population_stdev([s.quality_score for s in behavior_scores])
    return max(0.0, STABILITY_MAX - spread)


def calculate_bcr_breakdown(
    activities: Sequence[ActivityRecord],
    behavior_scores: Sequence[BehaviorScoreResult],
    window: PeriodWindow,
) -> BCRBreakdown:
    if not activities:
        return BCRBreakdown(0.0, 0.0, 0.0)
    return BCRBreakdown(
        frequency=frequency_score(activities, window),
        regularity=regularity_score(activities),
        quality_stability=quality_stability_score(behavior_scores),
    )


def calculate_bcr(
    activities: Sequence[ActivityRecord],
    behavior_scores: Sequence[BehaviorScoreResult],
    window: PeriodWindow,
) -> int:
    """BCR for the window; 0 when there is no activity at all."""
    return calculate_bcr_breakdown(activities, behavior_scores, window).total
