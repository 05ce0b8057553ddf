"""
Coaching Signal Detectors

Six rule detectors over already-fetched data. Each is side-effect free and
returns zero or more CoachingSignal values; callers concatenate the lists
without cross-detector deduplication.
"""
from collections import defaultdict
from typing import Dict, List, Sequence

from salescoach.analytics.scoring_math import mean, round_half_up
from salescoach.models.activity import BEHAVIOR_CATEGORIES, BEHAVIOR_LABELS, ActivityRecord, BehaviorCategory
from salescoach.models.behavior_score import BehaviorScoreResult
from salescoach.models.coaching_signal import (
    CoachingSignal,
    CompetitorSignal,
    SignalPriority,
    SignalType,
)
from salescoach.models.period import PeriodWindow

RELATIONSHIP_DECLINE_RATIO = 0.5
CONVERSION_LACK_MIN_COUNT = 2
INTEREST_FLOOR = 30
INTEREST_DROP_RATIO = 0.7
# Accounts with no prior activity are assumed to have been fully engaged
INTEREST_DEFAULT_PREVIOUS = 100.0
WEAK_BEHAVIOR_RATIO = 0.5


def behavior_lack_threshold(days: int) -> int:
    """Minimum activities per category expected for a window of `days` days."""
    if days <= 7:
        return 1
    if days <= 30:
        return 3
    return 5


def _count_by_behavior(activities: Sequence[ActivityRecord]) -> Dict[BehaviorCategory, int]:
    counts: Dict[BehaviorCategory, int] = defaultdict(int)
    for activity in activities:
        counts[activity.behavior] += 1
    return counts


def detect_behavior_lack(
    activities: Sequence[ActivityRecord],
    window: PeriodWindow,
    owner_id: str | None = None,
) -> List[CoachingSignal]:
    days = window.days
    threshold = behavior_lack_threshold(days)
    counts = _count_by_behavior(activities)

    signals = []
    for category in BEHAVIOR_CATEGORIES:
        count = counts.get(category, 0)
        if count >= threshold:
            continue
        label = BEHAVIOR_LABELS[category]
        signals.append(CoachingSignal(
            signal_type=SignalType.BEHAVIOR_LACK,
            priority=SignalPriority.MEDIUM,
            message=f"{label} activity is low over the last {days} days ({count}, expected {threshold}).",
            recommended_action=f"Increase {label.lower()} activity.",
            owner_id=owner_id,
            behavior=category,
        ))
    return signals


def _count_by_account(activities: Sequence[ActivityRecord]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for activity in activities:
        counts[activity.account_id] = counts.get(activity.account_id, 0) + 1
    return counts


def detect_relationship_decline(
    current_activities: Sequence[ActivityRecord],
    previous_activities: Sequence[ActivityRecord],
    owner_id: str | None = None,
) -> List[CoachingSignal]:
    current_counts = _count_by_account(current_activities)
    previous_counts = _count_by_account(previous_activities)

    signals = []
    for account_id, current in current_counts.items():
        previous = previous_counts.get(account_id, 0)
        if previous > 0 and current < previous * RELATIONSHIP_DECLINE_RATIO:
            drop_pct = round_half_up((1 - current / previous) * 100)
            signals.append(CoachingSignal(
                signal_type=SignalType.RELATIONSHIP_DECLINE,
                priority=SignalPriority.HIGH,
                message=f"Activity with this account fell {drop_pct}% versus the previous period.",
                recommended_action="Review the relationship and increase contact frequency.",
                owner_id=owner_id,
                account_id=account_id,
            ))
    return signals


def touched_accounts(activities: Sequence[ActivityRecord]) -> List[str]:
    """Distinct account ids in first-seen order."""
    return list(dict.fromkeys(a.account_id for a in activities))


def detect_competitor_activity(
    activities: Sequence[ActivityRecord],
    competitor_signals: Sequence[CompetitorSignal],
    window: PeriodWindow,
    owner_id: str | None = None,
) -> List[CoachingSignal]:
    accounts = set(touched_accounts(activities))
    if not accounts:
        return []

    names_by_account: Dict[str, List[str]] = {}
    for sighting in competitor_signals:
        if sighting.account_id not in accounts or not window.contains(sighting.detected_at):
            continue
        names = names_by_account.setdefault(sighting.account_id, [])
        if sighting.competitor_name not in names:
            names.append(sighting.competitor_name)

    return [
        CoachingSignal(
            signal_type=SignalType.COMPETITOR_ACTIVITY,
            priority=SignalPriority.HIGH,
            message=f"Competitor activity detected: {', '.join(names)}",
            recommended_action="Prepare a competitive response and strengthen the customer relationship.",
            owner_id=owner_id,
            account_id=account_id,
        )
        for account_id, names in names_by_account.items()
    ]


def detect_conversion_lack(
    activities: Sequence[ActivityRecord],
    top_conversion_behaviors: Sequence[BehaviorCategory],
    owner_id: str | None = None,
) -> List[CoachingSignal]:
    counts = _count_by_behavior(activities)

    signals = []
    for category in top_conversion_behaviors:
        count = counts.get(category, 0)
        if count >= CONVERSION_LACK_MIN_COUNT:
            continue
        label = BEHAVIOR_LABELS[category]
        signals.append(CoachingSignal(
            signal_type=SignalType.CONVERSION_LACK,
            priority=SignalPriority.HIGH,
            message=f"{label} drives conversion but recent activity is low ({count}).",
            recommended_action=f"Prioritize {label.lower()} activity.",
            owner_id=owner_id,
            behavior=category,
        ))
    return signals


def _average_quality_by_account(activities: Sequence[ActivityRecord]) -> Dict[str, float]:
    grouped: Dict[str, List[float]] = defaultdict(list)
    for activity in activities:
        grouped[activity.account_id].append(activity.quality_score)
    return {account_id: mean(values) for account_id, values in grouped.items()}


def detect_interest_drop(
    current_activities: Sequence[ActivityRecord],
    previous_activities: Sequence[ActivityRecord],
    owner_id: str | None = None,
) -> List[CoachingSignal]:
    current_avgs = _average_quality_by_account(current_activities)
    previous_avgs = _average_quality_by_account(previous_activities)

    signals = []
    for account_id, current_avg in current_avgs.items():
        previous_avg = previous_avgs.get(account_id, INTEREST_DEFAULT_PREVIOUS)
        dropped = previous_avg > 0 and current_avg < previous_avg * INTEREST_DROP_RATIO
        if current_avg <= INTEREST_FLOOR or dropped:
            signals.append(CoachingSignal(
                signal_type=SignalType.INTEREST_DROP,
                priority=SignalPriority.MEDIUM,
                message=f"Account interest dropped sharply (current average quality {round_half_up(current_avg)}).",
                recommended_action="Review the relationship and adjust the approach.",
                owner_id=owner_id,
                account_id=account_id,
            ))
    return signals


def detect_weak_behavior(
    behavior_scores: Sequence[BehaviorScoreResult],
    owner_id: str | None = None,
) -> List[CoachingSignal]:
    if not behavior_scores:
        return []

    grouped: Dict[BehaviorCategory, List[float]] = {}
    for score in behavior_scores:
        grouped.setdefault(score.behavior, []).append(score.quality_score)

    overall = mean([s.quality_score for s in behavior_scores])
    if overall <= 0:
        return []

    signals = []
    for category in BEHAVIOR_CATEGORIES:
        values = grouped.get(category)
        if not values:
            continue
        avg = mean(values)
        if avg >= overall * WEAK_BEHAVIOR_RATIO:
            continue
        label = BEHAVIOR_LABELS[category]
        signals.append(CoachingSignal(
            signal_type=SignalType.WEAK_BEHAVIOR,
            priority=SignalPriority.LOW,
            message=(
                f"{label} quality is well below your own average "
                f"(average {round_half_up(avg)}, overall {round_half_up(overall)})."
            ),
            recommended_action=f"Get training or coaching to improve {label.lower()} quality.",
            owner_id=owner_id,
            behavior=category,
        ))
    return signals
