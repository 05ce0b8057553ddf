"""
BCR (Behavior Consistency Rate) Tests
"""
import datetime as dt

from salescoach.analytics.consistency import (
    calculate_bcr,
    calculate_bcr_breakdown,
    quality_stability_score,
    regularity_score,
)
from salescoach.models.activity import BehaviorCategory
from factories import WINDOW_END, make_activity, make_score


def daily_activities(days: int):
    return [
        make_activity(performed_at=WINDOW_END - dt.timedelta(days=i, hours=1))
        for i in range(days)
    ]


class TestCalculateBCR:

    def test_no_activities_is_zero(self, window):
        assert calculate_bcr([], [make_score(BehaviorCategory.VISIT, 50, window)], window) == 0

    def test_single_activity_counts_frequency_only(self, window):
        breakdown = calculate_bcr_breakdown(
            [make_activity()],
            [make_score(BehaviorCategory.VISIT, 80, window)],
            window,
        )

        assert breakdown.regularity == 0
        assert breakdown.quality_stability == 0
        # 1 active day of 30 -> 1.33 of 40
        assert breakdown.total == 1

    def test_perfect_routine_scores_100(self, window):
        scores = [
            make_score(BehaviorCategory.VISIT, 50, window),
            make_score(BehaviorCategory.CONTACT, 50, window),
        ]
        assert calculate_bcr(daily_activities(30), scores, window) == 100

    def test_result_is_clamped(self, window):
        result = calculate_bcr(daily_activities(30) * 3, [], window)
        assert 0 <= result <= 100


class TestRegularity:

    def test_same_instant_activities_score_zero(self):
        moment = WINDOW_END - dt.timedelta(days=1)
        activities = [make_activity(performed_at=moment), make_activity(performed_at=moment)]
        # average interval of 0 hours gives no consistency credit
        assert regularity_score(activities) == 0.0

    def test_sparse_activities_score_lower(self):
        activities = [
            make_activity(performed_at=WINDOW_END - dt.timedelta(days=d))
            for d in (1, 5, 9)
        ]
        # 96h gaps, no spread: 24/96 * 1 * 30
        assert regularity_score(activities) == 7.5


class TestQualityStability:

    def test_needs_two_samples(self, window):
        assert quality_stability_score([make_score(BehaviorCategory.VISIT, 90, window)]) == 0.0

    def test_spread_lowers_score(self, window):
        scores = [
            make_score(BehaviorCategory.VISIT, 40, window),
            make_score(BehaviorCategory.CONTACT, 60, window),
        ]
        # population stdev 10
        assert quality_stability_score(scores) == 20.0

    def test_never_negative(self, window):
        scores = [
            make_score(BehaviorCategory.VISIT, 0, window),
            make_score(BehaviorCategory.CONTACT, 100, window),
        ]
        assert quality_stability_score(scores) == 0.0
