"""
Behavior Score Calculator

Turns a window of activity records into per-category scores:

- Intensity: weighted activity count (visit 3, call 2, presentation 2,
  message 1, follow-up 1) against a fixed ceiling, as a 0-100 percentage.
- Diversity: distinct behavior categories present / 8, as a 0-100 percentage.
- Quality: avg quality * 0.4 + avg quantity * 0.3 + follow-up ratio * 100 * 0.3.

Every call yields exactly one result per category, zeroed when a category
has no activity.
"""
import datetime as dt
from typing import Callable, Iterable, List, Optional, Sequence

from salescoach.analytics.scoring_math import clamp, mean, round_half_up
from salescoach.config import ScoringConfig
from salescoach.models.activity import BEHAVIOR_CATEGORIES, ActivityRecord, BehaviorCategory
from salescoach.models.behavior_score import BehaviorScoreResult
from salescoach.models.period import PeriodWindow

# Given (all activities in the window, activities of one category), return
# the slice diversity is measured over.
DiversitySource = Callable[[Sequence[ActivityRecord], Sequence[ActivityRecord]], Sequence[ActivityRecord]]


def category_slice(
    window_activities: Sequence[ActivityRecord],
    category_activities: Sequence[ActivityRecord],
) -> Sequence[ActivityRecord]:
    """Default diversity source: only the activities of the category being scored."""
    return category_activities


def whole_window(
    window_activities: Sequence[ActivityRecord],
    category_activities: Sequence[ActivityRecord],
) -> Sequence[ActivityRecord]:
    """Alternative diversity source: every activity in the window."""
    return window_activities


def calculate_intensity_score(
    activities: Iterable[ActivityRecord],
    config: Optional[ScoringConfig] = None,
) -> int:
    config = config or ScoringConfig()
    weighted_sum = sum(
        config.activity_type_weights.get(a.activity_type.value, config.default_activity_weight)
        for a in activities
    )
    if config.intensity_ceiling <= 0:
        return 0
    return int(clamp(round_half_up(weighted_sum / config.intensity_ceiling * 100)))


def calculate_diversity_score(activities: Iterable[ActivityRecord]) -> int:
    distinct = {a.behavior for a in activities}
    return int(clamp(round_half_up(len(distinct) / len(BEHAVIOR_CATEGORIES) * 100)))


def calculate_quality_score(
    activities: Sequence[ActivityRecord],
    config: Optional[ScoringConfig] = None,
) -> int:
    if not activities:
        return 0

    config = config or ScoringConfig()
    avg_quality = mean([a.quality_score for a in activities])
    avg_quantity = mean([a.quantity_score for a in activities])
    follow_up_ratio = sum(1 for a in activities if a.behavior == BehaviorCategory.FOLLOW_UP) / len(activities)

    score = round_half_up(
        avg_quality * config.quality_weight
        + avg_quantity * config.quantity_weight
        + follow_up_ratio * 100 * config.follow_up_weight
    )
    return int(clamp(score))


def calculate_behavior_scores(
    activities: Sequence[ActivityRecord],
    window: PeriodWindow,
    owner_id: Optional[str] = None,
    config: Optional[ScoringConfig] = None,
    diversity_source: DiversitySource = category_slice,
) -> List[BehaviorScoreResult]:
    """
    Score every behavior category for the given window.

    Args:
        activities: Activities already fetched for the window
        window: The scored period
        owner_id: Salesperson the scores belong to (stored on each result)
        config: Calibration constants
        diversity_source: Picks the activities diversity is measured over

    Returns:
        One BehaviorScoreResult per category, in category order
    """
    config = config or ScoringConfig()
    results = []

    for category in BEHAVIOR_CATEGORIES:
        filtered = [a for a in activities if a.behavior == category]
        results.append(BehaviorScoreResult(
            owner_id=owner_id,
            behavior=category,
            intensity_score=calculate_intensity_score(filtered, config),
            diversity_score=calculate_diversity_score(diversity_source(activities, filtered)),
            quality_score=calculate_quality_score(filtered, config),
            period_start=window.start,
            period_end=window.end,
        ))

    return results


def latest_quality_by_category(scores: Sequence[BehaviorScoreResult]) -> dict[BehaviorCategory, int]:
    """Most recent quality score per category, keyed by category."""
    latest: dict[BehaviorCategory, tuple[dt.datetime, int]] = {}
    for score in scores:
        current = latest.get(score.behavior)
        if current is None or score.period_start > current[0]:
            latest[score.behavior] = (score.period_start, score.quality_score)
    return {behavior: quality for behavior, (_, quality) in latest.items()}
